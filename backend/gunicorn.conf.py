import os
import sys

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (collected by Docker)
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

forwarded_allow_ips = "*"
proxy_protocol = False


def worker_exit(server, worker):
    """Close the worker's session store client on shutdown, if the app was loaded."""
    wsgi = sys.modules.get("sessionguard.wsgi")
    if wsgi is None:
        return

    from sessionguard.core import extensions

    extensions.shutdown(wsgi.app)
