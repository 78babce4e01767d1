"""Application factory and app-wide configuration."""

from __future__ import annotations

import weakref
from typing import Optional

from flask import Flask
from flask_cors import CORS

from leasecalc.app.api.routes import CACHE_EXTENSION, api_bp
from leasecalc.config import Settings, get_settings
from leasecalc.core.cache import CalculationCache

CACHE_SHUTDOWN_EXTENSION = "leasecalc.cache_shutdown"


def create_app(
    settings: Optional[Settings] = None,
    cache: Optional[CalculationCache] = None,
) -> Flask:
    """Build the Flask app instance.

    When no ``cache`` is passed, the app creates its own and starts its
    background sweep. ``app.extensions[CACHE_SHUTDOWN_EXTENSION]`` then holds
    a finalizer that destroys it; the finalizer runs at the latest when the
    app is garbage-collected or the interpreter exits. A cache passed in stays
    owned by the caller.
    """
    settings = settings or get_settings()
    settings.configure_logging()

    app = Flask(__name__)
    app.config["SCHEDULE_PAGE_SIZE"] = settings.schedule_page_size

    CORS(
        app,
        resources={r"/api/*": {"origins": settings.cors_origins}},
        supports_credentials=True,
    )

    if cache is None:
        cache = CalculationCache(
            max_size=settings.cache_max_size,
            default_ttl=settings.cache_default_ttl_seconds,
            cleanup_interval=settings.cache_cleanup_interval_seconds,
        )
        cache.start_cleanup()
        app.extensions[CACHE_SHUTDOWN_EXTENSION] = weakref.finalize(app, cache.destroy)

    app.extensions[CACHE_EXTENSION] = cache
    app.register_blueprint(api_bp, url_prefix="/api")
    return app
