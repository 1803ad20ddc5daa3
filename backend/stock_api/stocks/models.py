# backend/stock_api/stocks/models.py
import json
import math
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from stock_api.errors import ValidationError

Number = Union[int, float]

NUMERIC_FIELDS = ('price', 'volume', 'pe_ratio', 'dividend_yield', 'one_year_target')

# Record field -> inbound payload keys, first truthy one wins.
# Clients send the dividend yield under its historical misspelling.
INBOUND_KEYS = {
    'price': ('price',),
    'volume': ('volume',),
    'pe_ratio': ('pe_ratio',),
    'dividend_yield': ('divident_yield', 'dividend_yield'),
    'one_year_target': ('one_year_target',),
}

MISSING_SYMBOL_MESSAGE = "Missing required field: symbol."


@dataclass(frozen=True)
class StockAnalysisRecord:
    """One stock-analysis data point for a symbol at a point in time."""
    symbol: str
    timestamp: str # ISO-8601, UTC; sort key in DynamoDB
    price: Optional[Number] = None
    volume: Optional[Number] = None
    pe_ratio: Optional[Number] = None
    dividend_yield: Optional[Number] = None
    one_year_target: Optional[Number] = None
    news_summaries_json: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def format_timestamp(dt: datetime) -> str:
    """Formats a datetime like JavaScript's toISOString(): 2024-05-01T09:30:00.000Z."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt.isoformat(timespec='milliseconds') + 'Z'


def parse_timestamp(value: str) -> datetime:
    """Parses an ISO-8601 string into a naive UTC datetime."""
    dt = datetime.fromisoformat(value.replace('Z', '+00:00') if value.endswith('Z') else value)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def coerce_number(field_name: str, value: Any) -> Optional[Number]:
    """Turns a truthy value into a number, anything falsy into None.

    0 and 0.0 are falsy, so they come back as None as well.
    """
    if not value:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                raise ValidationError(f"Invalid number for field: {field_name}.") from None
    else:
        raise ValidationError(f"Invalid number for field: {field_name}.")

    if isinstance(number, float) and not math.isfinite(number):
        raise ValidationError(f"Invalid number for field: {field_name}.")
    return number


def normalize_payload(payload: Any, now: Optional[datetime] = None) -> StockAnalysisRecord:
    """Builds a StockAnalysisRecord from an inbound JSON object.

    `symbol` is the only required field. Numeric fields are coerced (see coerce_number),
    a missing `last_analysis_timestamp` defaults to `now` (current UTC time when not given),
    and `news_summaries_json` is kept as a string (non-string JSON values are re-serialized).
    """
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object.")

    symbol = payload.get('symbol')
    if not symbol:
        raise ValidationError(MISSING_SYMBOL_MESSAGE)
    if not isinstance(symbol, str):
        symbol = str(symbol)

    timestamp = payload.get('last_analysis_timestamp')
    if not timestamp:
        timestamp = format_timestamp(now or datetime.now(timezone.utc))
    elif not isinstance(timestamp, str):
        timestamp = str(timestamp)

    news = payload.get('news_summaries_json')
    if news is not None and not isinstance(news, str):
        news = json.dumps(news)

    numbers = {}
    for field_name, keys in INBOUND_KEYS.items():
        raw = next((payload[key] for key in keys if payload.get(key)), None)
        numbers[field_name] = coerce_number(field_name, raw)

    return StockAnalysisRecord(
        symbol=symbol,
        timestamp=timestamp,
        news_summaries_json=news,
        **numbers,
    )
