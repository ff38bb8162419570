"""
WSGI / Flask CLI entry point.

Usage:
    gunicorn wsgi:app
    flask --app wsgi db upgrade          # apply migrations
    flask --app wsgi seed-templates      # admin account + bundled templates
"""

from securelistify import create_app

app = create_app()
