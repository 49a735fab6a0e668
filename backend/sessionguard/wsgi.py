"""WSGI entry point: ``gunicorn -c gunicorn.conf.py sessionguard.wsgi:app``."""

from __future__ import annotations

from sessionguard.factory import create_app

app = create_app()
