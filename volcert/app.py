from __future__ import annotations

import logging
import os

from flask import Flask

from .constants import (
    DEFAULT_LOCATION,
    DEFAULT_ORGANIZER_NAME,
    EXPORT_STAGGER_SECONDS,
    VERIFY_BASE_URL,
)
from .shared.certificates import Branding


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logging.warning("Ignoring invalid %s=%r", name, raw)
        return default


def create_app(config: dict | None = None):
    app = Flask(__name__)
    app.secret_key = os.getenv("SECRET_KEY", "dev")
    app.config["MAX_CONTENT_LENGTH"] = 25 * 1024 * 1024

    site_root = os.getenv("SITE_ROOT", "/srv")
    app.config["SITE_ROOT"] = site_root
    app.config["CERT_DEFAULT_TEMPLATE"] = os.getenv("CERT_DEFAULT_TEMPLATE", "")
    app.config["CERT_ORGANIZER_NAME"] = os.getenv(
        "CERT_ORGANIZER_NAME", DEFAULT_ORGANIZER_NAME
    )
    app.config["CERT_LOCATION"] = os.getenv("CERT_LOCATION", DEFAULT_LOCATION)
    app.config["CERT_EXPORT_STAGGER_SECONDS"] = _float_env(
        "CERT_EXPORT_STAGGER_SECONDS", EXPORT_STAGGER_SECONDS
    )
    app.config["CERT_BRANDING"] = Branding(
        verify_base_url=os.getenv("CERT_VERIFY_BASE_URL", VERIFY_BASE_URL),
    )
    if config:
        app.config.update(config)

    @app.get("/health")
    def health():  # pragma: no cover - simple healthcheck
        return "OK", 200

    from .routes.certificates import bp as certificates_bp

    app.register_blueprint(certificates_bp)

    return app
