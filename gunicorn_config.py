import os

PORT = int(os.getenv('PORT', 10000))  # Same default as app.py
bind = f"0.0.0.0:{PORT}"
wsgi_app = 'app:create_app()'
# Table state lives in process memory, so a single worker serves every terminal
workers = 1
threads = int(os.getenv('POS_THREADS', 4))
