import multiprocessing
import os

# Gunicorn Production Configuration
# The counter state lives in the signed session cookie, so any worker can
# serve any request. IO-bound: (2x CPU Count) + 1 workers.
workers = int(os.environ.get('WEB_CONCURRENCY', multiprocessing.cpu_count() * 2 + 1))
threads = 2
worker_class = 'gthread'
bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

# Resilience
timeout = 60
max_requests = 1000
max_requests_jitter = 100
keepalive = 5

# Logging
accesslog = '-'       # Stdout
errorlog = '-'        # Stderr
loglevel = 'info'
capture_output = True
