"""
Flask application factory for the email authentication checker.

Creates and configures the Flask application, registers the API
blueprint, and installs logging, error handlers and security headers.
"""

from __future__ import annotations

import logging
import sys

from flask import Flask, Response, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from mailauth.config import Config
from mailauth.exceptions import CheckerError

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure root logger for the application.

    Logging is sent to stdout so most WSGI hosts capture it automatically
    without requiring file handlers.

    Format: timestamp  level  logger-name  message

    Args:
        debug: When True, sets the root level to DEBUG.  Otherwise INFO.
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%SZ",
        )
    )

    root_logger = logging.getLogger()
    # Avoid adding duplicate handlers if create_app() is called multiple times
    # (e.g. in tests).
    if not root_logger.handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)


def create_app(config_object: object = Config) -> Flask:
    """Application factory.

    Args:
        config_object: Configuration class or object to load settings from.

    Returns:
        A fully configured Flask application instance.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)

    _configure_logging(debug=app.debug)

    # ------------------------------------------------------------------
    # Register blueprints
    # ------------------------------------------------------------------
    from mailauth.api import bp as api_bp

    app.register_blueprint(api_bp)

    # ------------------------------------------------------------------
    # Error handlers
    # InputError -> 400, oversized body -> 413, AdmissionRejected -> 429,
    # body {"error": ...}
    # ------------------------------------------------------------------

    @app.errorhandler(CheckerError)
    def handle_checker_error(exc: CheckerError):
        logger.info("Request rejected (%s): %s", exc.code, exc.message)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(exc: RequestEntityTooLarge):
        logger.info("Request rejected (body_too_large): %s", exc.description)
        return jsonify({"error": "Request body too large"}), 413

    # ------------------------------------------------------------------
    # Security headers
    # Applied to every response from this application.
    # ------------------------------------------------------------------

    @app.after_request
    def set_security_headers(response: Response) -> Response:
        """Attach security-related HTTP response headers.

        Headers applied:
        - X-Content-Type-Options: Prevents MIME-type sniffing.
        - X-Frame-Options: Blocks clickjacking by forbidding iframe embedding.
        - Content-Security-Policy: JSON-only service, nothing may be loaded.
        """
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"
        return response

    return app
