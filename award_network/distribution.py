"""
Network Distribution

Splits active obligations of the focal contractor into three categories:
- Agency clients: government inflows
- Prime clients: contractor inflows
- Sub vendors: all outflows

Each category aggregates EVENT_AMOUNT per related entity with a share of
the category total.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from . import config
from .active_window import resolve_as_of
from .events import EntityType, FlowDirection, normalize_events, safe_str, to_utc_datetime

logger = logging.getLogger(__name__)


# =============================================================================
# Output Schema
# =============================================================================

@dataclass
class NetworkRelationship:
    entity_uei: str
    entity_name: str
    total_amount: float
    percentage: float  # share of the category total, 0-100
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "entity_uei": self.entity_uei,
            "entity_name": self.entity_name,
            "total_amount": self.total_amount,
            "percentage": self.percentage,
            "is_active": self.is_active,
        }


@dataclass
class DistributionCategory:
    total_amount: float = 0.0
    relationships: List[NetworkRelationship] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_amount": self.total_amount,
            "relationships": [r.to_dict() for r in self.relationships],
        }


@dataclass
class NetworkDistribution:
    agency_direct_awards: DistributionCategory
    prime_sub_awards: DistributionCategory
    vendor_procurement: DistributionCategory

    def to_dict(self) -> dict:
        return {
            "agency_direct_awards": self.agency_direct_awards.to_dict(),
            "prime_sub_awards": self.prime_sub_awards.to_dict(),
            "vendor_procurement": self.vendor_procurement.to_dict(),
        }


# =============================================================================
# Activity
# =============================================================================

def is_active_obligation(event: Dict[str, Any], as_of: datetime) -> bool:
    """
    Active when the award end date is on or after as_of. Without an end
    date, active when the event happened within the recent window.
    An end date that is present but unparseable, or no date at all,
    means not active.
    """
    if safe_str(event.get("AWARD_END_DATE")):
        end_date = to_utc_datetime(event.get("AWARD_END_DATE"))
        return end_date is not None and end_date >= as_of

    event_date = to_utc_datetime(event.get("EVENT_DATE"))
    if event_date is not None:
        cutoff = pd.Timestamp(as_of) - pd.DateOffset(years=config.DISTRIBUTION_RECENT_YEARS)
        return event_date >= cutoff.to_pydatetime()

    return False


# =============================================================================
# Aggregation
# =============================================================================

def aggregate_relationships(events: List[Dict[str, Any]]) -> List[NetworkRelationship]:
    """
    Sum amounts per related entity; attach percentage of the total.

    Events without a related identifier or name are ignored. Sorted by
    amount, descending.
    """
    totals: Dict[str, dict] = {}
    for event in events:
        uei, name = event["RELATED_ENTITY_UEI"], event["RELATED_ENTITY_NAME"]
        if not uei or not name:
            continue
        entry = totals.setdefault(uei, {"name": name, "amount": 0.0})
        entry["amount"] += abs(event["EVENT_AMOUNT"])

    grand_total = sum(e["amount"] for e in totals.values())
    relationships = [
        NetworkRelationship(
            entity_uei=uei,
            entity_name=entry["name"],
            total_amount=entry["amount"],
            percentage=(entry["amount"] / grand_total * 100) if grand_total > 0 else 0.0,
        )
        for uei, entry in totals.items()
    ]
    return sorted(relationships, key=lambda r: r.total_amount, reverse=True)


def _category(events: List[Dict[str, Any]], predicate: Callable[[Dict[str, Any]], bool]) -> DistributionCategory:
    relationships = aggregate_relationships([e for e in events if predicate(e)])
    return DistributionCategory(
        total_amount=sum(r.total_amount for r in relationships),
        relationships=relationships,
    )


def process_network_distribution(events, as_of: Optional[datetime] = None) -> NetworkDistribution:
    """
    Build the three distribution categories from raw activity events.

    Args:
        events: DataFrame or iterable of activity event mappings
        as_of: Reference time (default: now, UTC)
    """
    as_of = resolve_as_of(as_of)
    active = [e for e in normalize_events(events) if is_active_obligation(e, as_of)]
    logger.debug(f"Distribution: {len(active)} active obligations")

    return NetworkDistribution(
        agency_direct_awards=_category(active, lambda e: (
            e["FLOW_DIRECTION"] == FlowDirection.INFLOW
            and e["RELATED_ENTITY_TYPE"] == EntityType.GOVERNMENT
            and e["EVENT_AMOUNT"] > 0
        )),
        prime_sub_awards=_category(active, lambda e: (
            e["FLOW_DIRECTION"] == FlowDirection.INFLOW
            and e["RELATED_ENTITY_TYPE"] == EntityType.CONTRACTOR
            and e["EVENT_AMOUNT"] > 0
        )),
        vendor_procurement=_category(active, lambda e: (
            e["FLOW_DIRECTION"] == FlowDirection.OUTFLOW
            and e["EVENT_AMOUNT"] > 0
        )),
    )


# =============================================================================
# Display Helpers
# =============================================================================

def _trim(value: float) -> str:
    text = f"{value:.1f}"
    return text[:-2] if text.endswith(".0") else text


def format_network_amount(amount: float) -> str:
    """$1.5B / $2M / $750K / $950."""
    if amount >= 1_000_000_000:
        return f"${_trim(amount / 1_000_000_000)}B"
    if amount >= 1_000_000:
        return f"${_trim(amount / 1_000_000)}M"
    if amount >= 1_000:
        return f"${_trim(amount / 1_000)}K"
    return f"${amount:.0f}"


def format_network_percentage(percentage: float) -> str:
    if percentage >= 10:
        return f"{percentage:.0f}%"
    if percentage >= 1:
        return f"{percentage:.1f}%"
    return f"{percentage:.2f}%"
