"""API error types and the JSON handler that renders them."""

from __future__ import annotations

from typing import Any

from flask import Flask, jsonify

FALLBACK_MESSAGES: dict[int, str] = {
    400: "Request could not be processed.",
    422: "Submitted data is invalid.",
    503: "Service temporarily unavailable. Please retry in a moment.",
}


class APIError(Exception):
    """An error the API reports to the client as `{"message": ...}` plus payload fields."""

    status_code: int = 400

    def __init__(
        self, message: str, *, status_code: int | None = None, payload: dict[str, Any] | None = None
    ):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = dict(payload or {})

    def to_dict(self) -> dict[str, Any]:
        message = self.message or FALLBACK_MESSAGES.get(self.status_code, "Request failed.")
        body: dict[str, Any] = {"message": message, **self.payload}

        # A payload naming a field is mirrored in the marshmallow error layout.
        field = self.payload.get("field")
        if field and "field_errors" not in body:
            body["field_errors"] = {str(field): [message]}
            body["errors"] = {"json": {str(field): [message]}}
        return body


class ValidationError(APIError):
    """Submitted amount or text was rejected."""

    status_code = 422


class ServiceUnavailableError(APIError):
    """No exchange rate is available to serve the request."""

    status_code = 503


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(APIError)
    def render_api_error(error: APIError):
        return jsonify(error.to_dict()), error.status_code
