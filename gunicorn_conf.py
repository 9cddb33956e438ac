import multiprocessing
import os

# Run with: gunicorn -c gunicorn_conf.py tracker.main:app

bind = os.getenv("BIND", f"0.0.0.0:{os.getenv('PORT', '8000')}")

# (2 x cores) + 1 unless WEB_CONCURRENCY pins it
workers = int(os.getenv("WEB_CONCURRENCY", multiprocessing.cpu_count() * 2 + 1))
worker_class = "uvicorn.workers.UvicornWorker"

# uploads go up to 25MB and are forwarded to object storage inside the request
timeout = 120
graceful_timeout = 30
keepalive = 5

# behind a proxy that sets X-Forwarded-*
forwarded_allow_ips = os.getenv("FORWARDED_ALLOW_IPS", "127.0.0.1")

# app logs are JSON on stdout; keep gunicorn's own logs on the same streams
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

proc_name = "issue_tracker_api"
