"""Routes for reading, refreshing and re-orienting the exchange rate."""

from __future__ import annotations

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any

from flask import current_app
from flask.views import MethodView

from jpyusd.errors import ServiceUnavailableError
from jpyusd.schemas import (
    DirectionUpdateSchema,
    RateQuerySchema,
    RateStateSchema,
    RefreshQuerySchema,
)
from jpyusd.services.conversion import format_date
from jpyusd.services.orchestrator import Orchestrator, RateState

from . import blp

logger = logging.getLogger(__name__)


def get_orchestrator() -> Orchestrator:
    orchestrator: Orchestrator | None = current_app.extensions.get("fx_orchestrator")  # type: ignore[assignment]
    if orchestrator is None:
        raise ServiceUnavailableError("Orchestrator unavailable.")
    return orchestrator


def wait_for_rate(orchestrator: Orchestrator) -> RateState:
    timeout = float(current_app.config.get("RATES_WAIT_TIMEOUT_SECONDS", 15))
    try:
        return orchestrator.wait(timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Rate fetch still pending after %.1fs; returning loading state", timeout)
        return orchestrator.get_state()


def serialize_state(state: RateState) -> dict[str, Any]:
    payload = state.to_dict()
    payload["last_updated_display"] = format_date(state.last_updated)
    return payload


@blp.route("")
class RateResource(MethodView):
    @blp.arguments(RateQuerySchema, location="query")
    @blp.response(200, RateStateSchema())
    def get(self, args):
        """Current rate for a direction; the first read of a direction triggers a fetch."""

        orchestrator = get_orchestrator()
        direction = args.get("direction") or orchestrator.get_state().direction
        state = orchestrator.get_rate(direction)
        if args.get("wait"):
            state = wait_for_rate(orchestrator)
        return serialize_state(state)


@blp.route("/refresh")
class RateRefresh(MethodView):
    @blp.arguments(RefreshQuerySchema, location="query")
    @blp.response(202, RateStateSchema())
    def post(self, args):
        """Re-run the primary/backup fetch sequence for the current direction."""

        orchestrator = get_orchestrator()
        orchestrator.refresh()
        state = wait_for_rate(orchestrator) if args.get("wait") else orchestrator.get_state()
        return serialize_state(state)


@blp.route("/direction")
class RateDirection(MethodView):
    @blp.arguments(DirectionUpdateSchema)
    @blp.response(202, RateStateSchema())
    def put(self, data):
        """Switch conversion direction; always fetches a fresh rate."""

        orchestrator = get_orchestrator()
        orchestrator.set_direction(data["direction"])
        state = wait_for_rate(orchestrator) if data.get("wait") else orchestrator.get_state()
        return serialize_state(state)
