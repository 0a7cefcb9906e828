from datetime import timedelta
from importlib import import_module

from flask import Flask
from flask_wtf.csrf import CSRFProtect

from reportcards.config import Config
from reportcards.db import get_db_connection
from reportcards.utils.formatting import format_date, format_position, format_score, to_arabic_digits

csrf = CSRFProtect()

BLUEPRINT_MODULES = ['reports', 'tahfiz', 'report_cards', 'qr_codes']


def register_extensions(app):
    """Initialize Flask extensions."""
    csrf.init_app(app)


def register_filters(app):
    app.jinja_env.filters['date_format'] = format_date
    app.jinja_env.filters['position'] = format_position
    app.jinja_env.filters['score'] = format_score
    app.jinja_env.filters['arabic_digits'] = to_arabic_digits


def register_blueprints(app):
    """Register every feature blueprint found under reportcards/<module>/routes.py."""
    for module_name in BLUEPRINT_MODULES:
        module = import_module(f'reportcards.{module_name}.routes')
        app.register_blueprint(module.blueprint)


def create_app(config_class=Config):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=7)

    register_extensions(app)
    register_filters(app)
    register_blueprints(app)

    @app.context_processor
    def inject_school_info():
        return {'school_info': app.config['SCHOOL_INFO']}

    return app


__all__ = ['create_app', 'get_db_connection', 'csrf']
