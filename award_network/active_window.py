"""
Active-Window Filter

Selects events whose award is in force at "as of": start <= as_of <= end.
Events with an unparseable start or end date are not verifiably active;
they are logged and skipped so one bad record cannot abort a build.
"""

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .events import MalformedEventError, award_window, normalize_events, now_utc, to_utc_datetime

logger = logging.getLogger(__name__)


def resolve_as_of(as_of=None) -> datetime:
    """Aware UTC "now" when as_of is None; naive values are taken as UTC."""
    if as_of is None:
        return now_utc()
    resolved = to_utc_datetime(as_of)
    if resolved is None:
        raise ValueError(f"as_of is not a date: {as_of!r}")
    return resolved


def is_active(event: Dict[str, Any], as_of: datetime) -> bool:
    """Raises MalformedEventError when the award window cannot be parsed."""
    start, end = award_window(event)
    return start <= as_of <= end


def filter_active_events(
    events: Iterable[Dict[str, Any]],
    as_of: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Return the normalized events whose award window contains as_of.

    Input order is preserved. as_of defaults to the current UTC time.
    """
    as_of = resolve_as_of(as_of)
    active = []
    skipped = 0

    for event in normalize_events(events):
        try:
            if is_active(event, as_of):
                active.append(event)
        except MalformedEventError as e:
            skipped += 1
            logger.warning(f"Skipping malformed event: {e}")

    logger.debug(f"Active window at {as_of.isoformat()}: {len(active)} active, {skipped} malformed")
    return active
