"""Route handlers for conversions and the session history."""

from __future__ import annotations

from flask import current_app
from flask.views import MethodView

from jpyusd.errors import ServiceUnavailableError, ValidationError
from jpyusd.rates.routes import get_orchestrator, wait_for_rate
from jpyusd.schemas import (
    ConversionRequestSchema,
    ConversionResponseSchema,
    HistorySchema,
    InputValidationRequestSchema,
    InputValidationResponseSchema,
)
from jpyusd.services.conversion import (
    ConversionParseError,
    convert_text,
    format_with_thousand_separators,
    is_valid_amount_input,
)
from jpyusd.services.currencies import parse_direction
from jpyusd.services.history import ConversionHistory

from . import blp

NO_RATE_MESSAGE = "Exchange rate is not available yet."


def _history() -> ConversionHistory:
    history: ConversionHistory | None = current_app.extensions.get("conversion_history")  # type: ignore[assignment]
    if history is None:
        raise ServiceUnavailableError("Conversion history unavailable.")
    return history


@blp.route("")
class Conversion(MethodView):
    @blp.arguments(ConversionRequestSchema)
    @blp.response(200, ConversionResponseSchema())
    def post(self, data):
        """Convert an amount using the current rate for the requested direction."""

        orchestrator = get_orchestrator()
        direction = parse_direction(data.get("direction") or orchestrator.get_state().direction)
        amount_text = data["amount"].strip()

        if not amount_text:
            raise ValidationError("Amount is required.", payload={"field": "amount"})
        if not is_valid_amount_input(amount_text, direction.source):
            raise ValidationError(
                f"'{amount_text}' is not a valid {direction.source.value} amount.",
                payload={"field": "amount", "kind": "InvalidAmountInput"},
            )

        state = orchestrator.get_rate(direction)
        if state.is_loading:
            state = wait_for_rate(orchestrator)
        if not state.has_rate or state.is_loading or state.direction is not direction:
            raise ServiceUnavailableError(state.error or NO_RATE_MESSAGE)

        try:
            result = convert_text(amount_text, state.rate, direction)
        except ConversionParseError as exc:
            raise ValidationError(
                exc.message, payload={"field": "amount", "kind": "ConversionParseFailure"}
            ) from exc

        entry = _history().record(result)
        return {
            "direction": direction.value,
            "from_currency": direction.source.value,
            "to_currency": direction.target.value,
            "amount": result.amount,
            "converted": result.converted,
            "rate": result.rate,
            "formatted_amount": result.formatted_amount,
            "formatted_converted": result.formatted_converted,
            "source": state.source.value if state.source else None,
            "recorded": entry is not None,
        }


@blp.route("/validate")
class InputValidation(MethodView):
    @blp.arguments(InputValidationRequestSchema)
    @blp.response(200, InputValidationResponseSchema())
    def post(self, data):
        """Keystroke gate: is this partial amount acceptable for the currency?"""

        text = data["text"]
        valid = is_valid_amount_input(text, data.get("currency"))
        return {
            "valid": valid,
            "formatted": format_with_thousand_separators(text) if valid else "",
        }


@blp.route("/history")
class History(MethodView):
    @blp.response(200, HistorySchema())
    def get(self):
        history = _history()
        return {
            "items": [entry.to_dict() for entry in history.list()],
            "max_entries": history.max_entries,
        }

    @blp.response(204)
    def delete(self):
        _history().clear()
