"""CORS handling so the browser widget can call the API from its own origin."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Response, make_response, request


def init_cors(app) -> None:
    """Allow the configured widget origins, answering preflight requests directly."""

    if app.config.get("_cors_configured"):
        return

    origins = _split(app.config.get("CORS_ALLOWED_ORIGINS", ()))
    if not origins:
        return

    headers = _split(app.config.get("CORS_ALLOWED_HEADERS", ("Content-Type",)))
    methods = _split(app.config.get("CORS_ALLOWED_METHODS", ("GET", "POST", "PUT", "DELETE", "OPTIONS")))
    max_age = str(int(app.config.get("CORS_MAX_AGE", 600)))
    wildcard = "*" in origins

    def allowed(origin: str | None) -> bool:
        return bool(origin) and (wildcard or origin in origins)

    def stamp(response: Response, origin: str) -> None:
        response.headers["Access-Control-Allow-Origin"] = "*" if wildcard else origin
        vary = [item.strip() for item in (response.headers.get("Vary") or "").split(",") if item.strip()]
        if "Origin" not in vary:
            vary.append("Origin")
        response.headers["Vary"] = ", ".join(vary)

    @app.before_request
    def handle_preflight():
        origin = request.headers.get("Origin")
        if request.method != "OPTIONS" or origin is None:
            return None
        if not allowed(origin):
            return make_response("", 403)

        response = make_response("", 204)
        stamp(response, origin)
        response.headers["Access-Control-Allow-Methods"] = ", ".join(methods)
        response.headers["Access-Control-Allow-Headers"] = request.headers.get(
            "Access-Control-Request-Headers", ", ".join(headers)
        )
        response.headers["Access-Control-Max-Age"] = max_age
        return response

    @app.after_request
    def apply_cors(response: Response):
        origin = request.headers.get("Origin")
        if allowed(origin):
            stamp(response, origin)
        return response

    app.config["_cors_configured"] = True


def _split(raw: str | Iterable[str]) -> tuple[str, ...]:
    items = raw.split(",") if isinstance(raw, str) else list(raw)
    return tuple(item.strip() for item in items if item and item.strip())
