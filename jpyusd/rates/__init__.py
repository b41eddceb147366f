"""Rates blueprint exposing the current rate state and its mutation triggers."""

from __future__ import annotations

from flask_smorest import Blueprint

blp = Blueprint("Rates", __name__, description="Exchange rate state, refresh and direction")

from . import routes  # noqa: E402,F401
