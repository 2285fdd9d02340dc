"""
Canonical Activity Event Schema: Shared by graph builder, distribution, and exports

This defines the single source of truth for the activity event record.
One event is one contractual transaction (award, subaward, obligation)
seen from the focal contractor. Events are immutable facts: every helper
here returns new records and never modifies its input.

Usage:
    from award_network.events import (
        EVENT_COLUMNS,
        EventType,
        normalize_event,
        award_window,
        order_events,
    )
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd


# =============================================================================
# Canonical Schema Columns
# =============================================================================

# Identity and parties
EVENT_IDENTITY_COLUMNS = [
    "EVENT_ID",               # Stable event identifier
    "CONTRACTOR_UEI",         # Focal contractor identifier (edge source)
    "CONTRACTOR_NAME",
    "CONTRACTOR_STATE",
    "CONTRACTOR_CITY",
    "RELATED_ENTITY_UEI",     # Counterparty identifier (edge target)
    "RELATED_ENTITY_NAME",
    "RELATED_ENTITY_TYPE",    # GOVERNMENT | CONTRACTOR | ""
    "FLOW_DIRECTION",         # INFLOW | OUTFLOW (relative to the focal entity)
    "EVENT_TYPE",             # PRIME | SUBAWARD | SUBSIDIARY_OBLIGATION
]

# Award and money
EVENT_AWARD_COLUMNS = [
    "EVENT_AMOUNT",
    "AWARD_KEY",
    "AWARD_TOTAL_VALUE",
    "AWARD_START_DATE",
    "AWARD_END_DATE",
    "AWARD_POTENTIAL_END_DATE",
    "AWARD_TYPE",
]

# Where, when, what
EVENT_CONTEXT_COLUMNS = [
    "PERFORMANCE_STATE",
    "PERFORMANCE_CITY",
    "EVENT_DATE",
    "FISCAL_YEAR",
    "NAICS_CODE",
    "NAICS_DESCRIPTION",
    "PSC_CODE",
]

EVENT_COLUMNS = EVENT_IDENTITY_COLUMNS + EVENT_AWARD_COLUMNS + EVENT_CONTEXT_COLUMNS

NUMERIC_COLUMNS = frozenset({"EVENT_AMOUNT", "AWARD_TOTAL_VALUE"})


# =============================================================================
# Vocabulary Constants
# =============================================================================

class EventType:
    """Transaction types carried by EVENT_TYPE."""
    PRIME = "PRIME"
    SUBAWARD = "SUBAWARD"
    SUBSIDIARY_OBLIGATION = "SUBSIDIARY_OBLIGATION"


class EntityType:
    """Counterparty types carried by RELATED_ENTITY_TYPE (may also be blank)."""
    GOVERNMENT = "GOVERNMENT"
    CONTRACTOR = "CONTRACTOR"


class FlowDirection:
    """Money/work direction relative to the focal entity."""
    INFLOW = "INFLOW"
    OUTFLOW = "OUTFLOW"


EVENT_TYPES = [EventType.PRIME, EventType.SUBAWARD, EventType.SUBSIDIARY_OBLIGATION]


# =============================================================================
# Errors
# =============================================================================

class MalformedEventError(ValueError):
    """An event field could not be parsed (typically a date)."""

    def __init__(self, event_id: str, field: str, value: Any):
        self.event_id = event_id
        self.field = field
        self.value = value
        super().__init__(f"event {event_id or '<no id>'}: unparseable {field}={value!r}")


# =============================================================================
# Record Normalization
# =============================================================================

def _is_missing(val) -> bool:
    if val is None:
        return True
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def safe_str(val) -> str:
    if _is_missing(val):
        return ""
    return str(val).strip()


def safe_float(val) -> float:
    if _is_missing(val):
        return 0.0
    try:
        return float(val)
    except (TypeError, ValueError):
        return 0.0


def normalize_event(raw: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create a canonical event record from a raw mapping.

    Returns a new dict with every canonical column present. Missing or
    null strings become "", non-numeric amounts become 0.0. Unknown keys
    are carried over untouched. Dates stay as given; they are parsed
    lazily by award_window() so that one bad record can be skipped.
    """
    record = dict(raw)
    for col in EVENT_COLUMNS:
        value = raw.get(col)
        if col in NUMERIC_COLUMNS:
            record[col] = safe_float(value)
        elif col == "FISCAL_YEAR":
            record[col] = value if not _is_missing(value) else None
        else:
            record[col] = safe_str(value)
    return record


def normalize_events(events: Union[pd.DataFrame, Iterable[Dict[str, Any]], None]) -> List[Dict[str, Any]]:
    """Accept a DataFrame or an iterable of mappings; return normalized records."""
    if events is None:
        return []
    if isinstance(events, pd.DataFrame):
        if events.empty:
            return []
        events = events.to_dict("records")
    return [normalize_event(e) for e in events]


def events_to_df(events: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Build a DataFrame with canonical column order (extra columns kept at the end)."""
    records = normalize_events(events)
    if not records:
        return pd.DataFrame(columns=EVENT_COLUMNS)
    df = pd.DataFrame(records)
    return df[EVENT_COLUMNS + [c for c in df.columns if c not in EVENT_COLUMNS]]


# =============================================================================
# Dates
# =============================================================================

def to_utc_datetime(value) -> Optional[datetime]:
    """
    Parse a date-like value into an aware UTC datetime.

    Naive values are interpreted as UTC. Returns None for blank or
    unparseable input.
    """
    if _is_missing(value):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def parse_event_date(event: Dict[str, Any], field: str) -> datetime:
    """Parse one date field of an event; raise MalformedEventError when it fails."""
    value = event.get(field)
    parsed = to_utc_datetime(value)
    if parsed is None:
        raise MalformedEventError(safe_str(event.get("EVENT_ID")), field, value)
    return parsed


def award_window(event: Dict[str, Any]) -> Tuple[datetime, datetime]:
    """
    Return (start, end) of the award performance window.

    The end is AWARD_END_DATE when it is present (non-blank), otherwise
    AWARD_POTENTIAL_END_DATE. A present but unparseable end date does not
    fall back to the potential end.
    """
    start = parse_event_date(event, "AWARD_START_DATE")
    end_field = "AWARD_END_DATE" if safe_str(event.get("AWARD_END_DATE")) else "AWARD_POTENTIAL_END_DATE"
    end = parse_event_date(event, end_field)
    return start, end


# =============================================================================
# Ordering
# =============================================================================

def order_events(events: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Stable-sort events by EVENT_DATE.

    "First event" rules (edge relationship type, node name and location)
    depend on this order. Events without a parseable EVENT_DATE keep their
    relative input order after all dated events.
    """
    keyed = []
    for idx, event in enumerate(events):
        event_date = to_utc_datetime(event.get("EVENT_DATE"))
        keyed.append((event_date is None, event_date or datetime.min.replace(tzinfo=timezone.utc), idx, event))
    keyed.sort(key=lambda k: (k[0], k[1], k[2]))
    return [k[3] for k in keyed]
