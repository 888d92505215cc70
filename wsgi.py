"""WSGI entrypoint for Gunicorn.

Usage:
  gunicorn -k gthread --threads 8 -w 1 -b 0.0.0.0:8000 wsgi:app

The event stream lives in process memory, so run a single worker process and
scale with threads.
"""

from charity_lottery import create_app

app = create_app()
