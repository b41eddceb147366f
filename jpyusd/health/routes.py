"""Route handlers for health checks."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from jpyusd.schemas import HealthRatesSchema, HealthStatusSchema
from jpyusd.services.conversion import format_date
from jpyusd.services.orchestrator import Orchestrator, RateState

from . import blp


def _rate_status(state: RateState | None) -> str:
    if state is None or state.generation == 0:
        return "uninitialized"
    if state.is_loading:
        return "loading"
    if state.error:
        return "error"
    if state.is_backup:
        return "degraded"
    return "ok"


@blp.route("")
class HealthStatus(MethodView):
    @blp.response(200, HealthStatusSchema())
    def get(self):
        return {
            "status": "ok",
            "app": current_app.config.get("APP_NAME", "jpyusd-converter"),
        }


@blp.route("/rates")
class HealthRates(MethodView):
    @blp.response(200, HealthRatesSchema())
    def get(self):
        orchestrator: Orchestrator | None = current_app.extensions.get("fx_orchestrator")  # type: ignore[assignment]
        state = orchestrator.get_state() if orchestrator else None

        return {
            "status": _rate_status(state),
            "direction": state.direction.value if state else None,
            "source": state.source.value if state and state.source else None,
            "provider": state.provider if state else None,
            "last_updated": format_date(state.last_updated) or None if state else None,
            "error": state.error if state else None,
        }
