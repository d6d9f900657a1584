"""
Gunicorn Configuration

Uvicorn workers serving bought_together.main:app. Analysis requests are CPU
bound, so keep the worker count near the core count.
"""

import multiprocessing
import os

bind = os.getenv("BIND", "0.0.0.0:8000")
workers = int(os.getenv("WORKERS", multiprocessing.cpu_count()))
worker_class = "uvicorn.workers.UvicornWorker"
timeout = int(os.getenv("WORKER_TIMEOUT", 120))
keepalive = 5
graceful_timeout = 30
max_requests = 2000
max_requests_jitter = 200

proc_name = "bought-together-api"

errorlog = "-"
accesslog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
