"""Service layer modules."""

from .conversion import (
    ConversionParseError,
    ConversionResult,
    InvalidAmountError,
    convert,
    convert_text,
    format_amount,
    format_date,
    format_for_clipboard,
    format_with_thousand_separators,
    is_valid_amount_input,
    parse_amount,
)
from .currencies import Currency, Direction, parse_currency, parse_direction
from .history import ConversionHistory, HistoryEntry, init_history
from .orchestrator import (
    FETCH_FAILED_MESSAGE,
    Orchestrator,
    RateSource,
    RateState,
    init_orchestrator,
)
from .scheduler import init_scheduler, shutdown_scheduler
