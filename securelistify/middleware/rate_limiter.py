"""
Rate limiting configuration.

The Limiter instance is created in securelistify/__init__.py with no
default limits; this module applies limits per blueprint.

Usage:
    from securelistify.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "120/minute"
EXPORT_LIMIT = "30/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints (per remote IP).

        - auth:        AUTH_RATE_LIMIT (default 20/minute, brute-force guard)
        - checklists, templates, users:  120/minute
        - export:      30/minute (PDF rendering is CPU bound)
        - health:      exempt

    Does nothing when RATELIMIT_ENABLED is false (testing).
    """
    if not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (RATELIMIT_ENABLED=False)")
        return

    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(app.config.get("AUTH_RATE_LIMIT", "20/minute"))(bp)

    for bp_name in ("checklists", "templates", "users"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    bp = app.blueprints.get("export")
    if bp:
        limiter.limit(EXPORT_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: auth=%s api=%s export=%s",
                app.config.get("AUTH_RATE_LIMIT"), WRITE_LIMIT, EXPORT_LIMIT)
