"""
SecureListify
SQLAlchemy extension instance shared by every model and service.

The extension is created once here and bound to the Flask app inside
``create_app`` via ``db.init_app(app)``.
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
