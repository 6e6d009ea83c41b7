# gunicorn.conf.py
import os

wsgi_app = "app.main:app"
bind = f"0.0.0.0:{os.getenv('PORT', '8080')}"
workers = int(os.getenv("WEB_CONCURRENCY", "2"))
# sync routes draaien in de threadpool van uvicorn; S3/DB calls blokkeren daar
threads = int(os.getenv("WEB_THREADS", "4"))
worker_class = "uvicorn.workers.UvicornWorker"
# elke worker bouwt zijn eigen S3 client + engine (niet delen over fork heen)
preload_app = False
# ruim boven S3_READ_TIMEOUT, downloads lezen het hele object in geheugen
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))
graceful_timeout = 30
keepalive = 5
accesslog = None  # request logging zit in de structlog middleware
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
