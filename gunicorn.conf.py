"""Gunicorn config: gunicorn -c gunicorn.conf.py"""
import os

wsgi_app = "boardpulse.main:app"

# Bind to the platform's PORT or default 8000
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Chat sessions live in process memory, so a session only sticks to one
# worker. Keep a single worker unless sessions are pinned upstream.
worker_class = "uvicorn.workers.UvicornWorker"
workers = int(os.environ.get("WEB_CONCURRENCY", "1"))

# A request can fetch two 500-item boards with retries
timeout = 120
graceful_timeout = 30

# Keep-alive must exceed the proxy keep-alive (60s)
keepalive = 65

# Logging
accesslog = "-"
errorlog = "-"
loglevel = "info"
