"""
Local Library - a server-rendered library catalog built with Flask and SQLAlchemy.

Features:
- Browse authors, genres, books and book copies
- Detail pages joining each record with the records that reference it
- Create / update forms with validation and sanitization
- Guarded deletes: a record still referenced by others is never removed
- Catalog home page with collection counts
"""

import os
import time

from flask import Flask, g, redirect, render_template, request, url_for
from flask_wtf.csrf import CSRFProtect
from werkzeug.exceptions import HTTPException

import fanout
import settings
from catalog import bp as catalog_bp
from data_models import db
from logging_setup import get_logger, set_level

LOG = get_logger(__name__)

csrf = CSRFProtect()


def create_app(config=None):
    """
    Application factory. ``config`` overrides values read from the environment.
    """
    app = Flask(__name__)
    app.config.update(settings.flask_config())
    if config:
        app.config.update(config)

    set_level(app.config["LOG_LEVEL"])

    db.init_app(app)
    csrf.init_app(app)
    app.register_blueprint(catalog_bp)

    _register_request_logging(app)
    _register_error_handlers(app)

    @app.route("/")
    def home():
        return redirect(url_for("catalog.index"))

    LOG.info("Catalog app created (database: %s)", app.config["SQLALCHEMY_DATABASE_URI"])
    return app


def init_db(app):
    """
    Create the tables if they do not exist yet.
    """
    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if uri.startswith("sqlite:///"):
        path = uri[len("sqlite:///"):]
        if path and path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with app.app_context():
        db.create_all()


def _register_request_logging(app):
    """
    One access-log line per response: method, path, status, duration.
    """

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.pop("request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started is not None else 0.0
        LOG.info("%s %s %s %.1fms", request.method, request.path, response.status_code, elapsed_ms)
        return response


def _register_error_handlers(app):

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        """
        Render every HTTP failure (missing record, store failure, unknown
        route) on the shared error page.
        """
        if err.code is not None and err.code >= 500:
            LOG.error("%s %s failed: %s", request.method, request.path, err.description)
        return render_template(
            "error.html",
            title=err.name,
            status=err.code,
            message=err.description,
        ), err.code


if __name__ == "__main__":
    app = create_app()
    init_db(app)
    try:
        app.run(debug=True)
    finally:
        fanout.shutdown()
