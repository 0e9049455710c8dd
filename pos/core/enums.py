from enum import Enum

class CleanupState(Enum):
    IDLE = "idle"
    CLEANUP_PENDING = "cleanup_pending"

class PrintType(Enum):
    ALL = "all"
    KITCHEN = "kitchen"
    SALADS_DRINKS = "salads_drinks"

class DiscountType(Enum):
    CLIENT = "client"
    EMPLOYEE = "employee"

class WriteStatus(Enum):
    PENDING = "pending"
    FLUSHED = "flushed"
    FAILED = "failed"
