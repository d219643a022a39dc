from __future__ import annotations

from logifin.application.analytics.capabilities import (
    FINANCIAL_METRICS,
    capabilities_for,
    select_metrics,
)

PAYLOAD = {
    "counts": {"orders": 3, "parcels": 4},
    "total_revenue": 100,
    "revenue_by_module": {"business": 60, "express": 40},
    "margin": {"total_margin": 10},
    "paid_unpaid": {"paid": 50, "unpaid": 10},
    "express_stats": {"parcels": 4},
    "top_clients": [],
    "top_products": [],
    "top_destinations": [],
    "treasury": {"balances": {}},
    "revenue_evolution": {},
    "treasury_evolution": {},
    "recent_transactions": [],
    "recent_orders": [],
    "parcels_in_transit": [],
}


def test_admin_and_boss_see_everything():
    assert select_metrics(PAYLOAD, ["admin"]) == PAYLOAD
    assert select_metrics(PAYLOAD, ["boss"]) == PAYLOAD


def test_secretary_does_not_see_financial_metrics():
    visible = select_metrics(PAYLOAD, ["secretary"])

    assert FINANCIAL_METRICS.isdisjoint(visible)
    assert {"counts", "express_stats", "revenue_by_module", "revenue_evolution"} <= set(visible)


def test_unknown_role_only_sees_counts():
    assert select_metrics(PAYLOAD, ["guest"]) == {"counts": {"orders": 3, "parcels": 4}}
    assert select_metrics(PAYLOAD, []) == {"counts": {"orders": 3, "parcels": 4}}


def test_roles_combine_and_are_normalized():
    allowed = capabilities_for([" Traveler", "BOSS"])

    assert "treasury" in allowed
    assert "express_stats" in allowed


def test_recent_transactions_are_financial_but_order_feeds_are_operational():
    visible = select_metrics(PAYLOAD, ["traveler"])

    assert "recent_transactions" not in visible
    assert {"recent_orders", "parcels_in_transit"} <= set(visible)
    assert "recent_transactions" in select_metrics(PAYLOAD, ["admin"])
