from __future__ import annotations

from datetime import UTC, datetime
from zoneinfo import ZoneInfo

import pytest

from jpyusd.providers.schemas import RateSnapshot


def test_rate_snapshot_normalizes_codes_and_rates():
    snapshot = RateSnapshot(
        base_currency="jpy",
        source="test",
        timestamp=datetime.now(UTC),
        rates={"usd": 0.0067, "eur": "0.0057", "jpy": 1},
    )

    assert snapshot.base_currency == "JPY"
    assert snapshot.rates == {"USD": 0.0067, "EUR": 0.0057, "JPY": 1.0}


@pytest.mark.parametrize("value", [True, None, "abc", {"nested": 1}])
def test_rate_snapshot_rejects_non_numeric_rates(value):
    with pytest.raises(ValueError):
        RateSnapshot(base_currency="jpy", source="test", timestamp=datetime.now(UTC), rates={"USD": value})


def test_rate_snapshot_requires_source():
    with pytest.raises(ValueError):
        RateSnapshot(base_currency="jpy", source=" ", timestamp=datetime.now(UTC))


def test_rate_snapshot_coerces_timestamps_to_utc():
    naive = datetime(2025, 1, 1, 12, 30, 15)
    snapshot = RateSnapshot(base_currency="usd", source="test", timestamp=naive)
    assert snapshot.timestamp == naive.replace(tzinfo=UTC)

    aware = datetime(2025, 1, 1, 12, 30, tzinfo=ZoneInfo("Asia/Tokyo"))
    snapshot = RateSnapshot(base_currency="usd", source="test", timestamp=aware)
    assert snapshot.timestamp.tzinfo == UTC
    assert snapshot.timestamp == aware.astimezone(UTC)
