from decimal import Decimal

from agency_finance.services.dashboard_service import build_kpis


def test_kpis_margin_and_percentage():
    kpis = build_kpis(
        2024,
        [{"fiscal_month": 1, "amount": Decimal("10000")}, {"fiscal_month": 2, "amount": Decimal("10000")}],
        [{"fiscal_month": 1, "amount": Decimal("2000")}],
        [{"fiscal_month": 2, "amount": Decimal("3000")}],
        Decimal("1500"),
    )
    assert kpis["revenue"] == Decimal("20000.00")
    assert kpis["margin"] == Decimal("15000.00")
    assert kpis["margin_percentage"] == Decimal("75.00")
    assert kpis["pending_payments"] == Decimal("1500.00")
    assert kpis["monthly"]["margin"][:3] == [Decimal("8000.00"), Decimal("7000.00"), Decimal("0.00")]


def test_kpis_without_revenue():
    kpis = build_kpis(2024, [], [{"fiscal_month": 5, "amount": 100}], [], None)
    assert kpis["margin"] == Decimal("-100.00")
    assert kpis["margin_percentage"] == Decimal("0.00")
    assert kpis["pending_payments"] == Decimal("0.00")
