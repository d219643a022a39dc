"""Declarative role to metric table applied after computation."""

from __future__ import annotations

from typing import Any, Dict, FrozenSet, Iterable, Mapping

__all__ = [
    "COUNT_METRICS",
    "OPERATIONAL_METRICS",
    "FINANCIAL_METRICS",
    "ROLE_CAPABILITIES",
    "capabilities_for",
    "select_metrics",
]

COUNT_METRICS: FrozenSet[str] = frozenset({"counts"})

OPERATIONAL_METRICS: FrozenSet[str] = COUNT_METRICS | {
    "express_stats",
    "revenue_by_module",
    "top_clients",
    "top_products",
    "top_destinations",
    "revenue_evolution",
    "recent_orders",
    "parcels_in_transit",
}

FINANCIAL_METRICS: FrozenSet[str] = frozenset(
    {
        "total_revenue",
        "margin",
        "paid_unpaid",
        "treasury",
        "treasury_evolution",
        "recent_transactions",
    }
)

ROLE_CAPABILITIES: Mapping[str, FrozenSet[str]] = {
    "admin": OPERATIONAL_METRICS | FINANCIAL_METRICS,
    "boss": OPERATIONAL_METRICS | FINANCIAL_METRICS,
    "secretary": OPERATIONAL_METRICS,
    "traveler": OPERATIONAL_METRICS,
}


def capabilities_for(roles: Iterable[str]) -> FrozenSet[str]:
    """Union of the metric keys granted to ``roles``; unknown roles only see counts."""

    allowed = set(COUNT_METRICS)
    for role in roles:
        allowed |= ROLE_CAPABILITIES.get(role.strip().lower(), COUNT_METRICS)
    return frozenset(allowed)


def select_metrics(payload: Mapping[str, Any], roles: Iterable[str]) -> Dict[str, Any]:
    allowed = capabilities_for(roles)
    return {key: value for key, value in payload.items() if key in allowed}
