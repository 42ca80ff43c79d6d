"""Tests for cross-board linkage, insights and confidence scoring."""
import pytest

from boardpulse.analytics.confidence import compute_confidence
from boardpulse.analytics.cross_board import cross_board_analysis, names_match
from boardpulse.analytics.deals import DealsMetrics, compute_deals_metrics
from boardpulse.analytics.work_orders import WorkOrderMetrics, compute_work_order_metrics
from boardpulse.data.schemas import DataQualityReport
from conftest import TODAY


def _row(name, **cells):
    return {"_id": name, "_name": name, **cells}


# =============================================================================
# Linkage
# =============================================================================


def test_acme_solar_linked(deal_rows, work_order_rows):
    deals = compute_deals_metrics(deal_rows)
    wos = compute_work_order_metrics(work_order_rows, today=TODAY)
    result = cross_board_analysis(deal_rows, work_order_rows, deals, wos)
    assert result.linked_count >= 1


def test_name_linkage_by_containment():
    deal_rows = [_row("Beta Mining Survey")]
    wo_rows = [_row("Beta Mining Survey - Site A"), _row("Unrelated job")]
    result = cross_board_analysis(deal_rows, wo_rows, compute_deals_metrics(deal_rows))
    assert result.linked_count == 1
    assert result.sector_linked_count == 0


def test_name_linkage_through_other_cells():
    deal_rows = [_row("Orion")]
    wo_rows = [_row("WO-17", Client="orion logistics")]
    result = cross_board_analysis(deal_rows, wo_rows, compute_deals_metrics(deal_rows))
    assert result.linked_count == 1


def test_short_deal_names_and_empty_wo_names_never_link():
    assert not names_match("ab", "ab project", "ab project")
    assert not names_match("acme", "", "")
    assert names_match("acme", "", "client acme")
    assert names_match("acme solar rollout", "acme solar", "acme solar")


def test_linked_count_is_max_not_sum():
    deal_rows = [_row("Acme Solar Rollout", Sector="Solar"), _row("Beta", Sector="Mining")]
    wo_rows = [
        _row("Acme Solar Rollout phase 1", Sector="Solar"),
        _row("Site survey", Sector="Mining"),
        _row("Other", Sector="Mining"),
    ]
    result = cross_board_analysis(deal_rows, wo_rows, compute_deals_metrics(deal_rows))
    assert result.sector_linked_count == 3
    assert result.linked_count == 3


def test_nan_deal_sector_never_links():
    deal_rows = [_row("Zeta", Sector=float("nan"))]
    wo_rows = [_row("Financing review")]
    result = cross_board_analysis(deal_rows, wo_rows, compute_deals_metrics(deal_rows))
    assert result.sector_linked_count == 0
    assert result.linked_count == 0


def test_custom_matcher_replaces_substring_rule():
    deal_rows = [_row("Acme")]
    wo_rows = [_row("Acme phase 1")]
    never = lambda deal, wo, text: False  # noqa: E731
    result = cross_board_analysis(deal_rows, wo_rows, compute_deals_metrics(deal_rows), matcher=never)
    assert result.linked_count == 0


# =============================================================================
# Insights
# =============================================================================


def test_no_linkage_insight():
    result = cross_board_analysis([_row("Alpha")], [_row("Zeta")], DealsMetrics(deal_count=1, closed_won=1))
    assert result.insights[0].startswith("No direct linkage found")


def test_risk_insights(deal_rows, work_order_rows):
    deals = DealsMetrics(deal_count=10, total_pipeline=100.0, closed_won=1)
    wos = WorkOrderMetrics(open=3, closed=1, overdue=2)
    insights = cross_board_analysis(deal_rows, work_order_rows, deals, wos).insights
    assert any(i.startswith("Risk: Close rate is 10%") for i in insights)
    assert any(i.startswith("Risk: 2 work orders overdue (50% of total)") for i in insights)
    assert any(i.startswith("Operations bottleneck: Only 25%") for i in insights)


def test_fragmentation_insight():
    deals = DealsMetrics(deal_count=40, total_pipeline=4000.0, closed_won=20)
    insights = cross_board_analysis([], [], deals).insights
    assert any(i.startswith("Pipeline fragmentation") for i in insights)
    few = DealsMetrics(deal_count=20, total_pipeline=4000.0, closed_won=20)
    assert not any(i.startswith("Pipeline fragmentation") for i in cross_board_analysis([], [], few).insights)


def test_high_value_deal_without_work_order():
    deal_rows = [
        _row("Big Deal", **{"Deal Value": 900.0}),
        _row("Small Deal", **{"Deal Value": 100.0}),
    ]
    metrics = compute_deals_metrics(deal_rows)
    insights = cross_board_analysis(deal_rows, [_row("small deal wo")], metrics).insights
    assert "1 high-value deals have no matching work orders. Ensure operational readiness." in insights
    matched = cross_board_analysis(deal_rows, [_row("Big Deal - phase 1")], metrics).insights
    assert not any("high-value" in i for i in matched)


# =============================================================================
# Confidence
# =============================================================================


def test_clean_report_scores_baseline():
    assert compute_confidence([DataQualityReport(total_rows=10)]) == 0.85
    assert compute_confidence([]) == 0.85
    assert compute_confidence([DataQualityReport(total_rows=10, warnings=("a", "b", "c"))]) == 0.85


def test_missing_and_warning_penalties():
    report = DataQualityReport(total_rows=4, missing_counts={"A": 2, "B": 2}, warnings=("w",) * 4)
    # missing ratio 4 / (4 * 2) = 0.5 -> -0.15; >3 warnings -> -0.05
    assert compute_confidence([report]) == 0.65


@pytest.mark.parametrize("reports", [
    [DataQualityReport(total_rows=1, missing_counts={"A": 1}, warnings=("w",) * 9)] * 5,
    [DataQualityReport(total_rows=0, missing_counts={"A": 3})],
])
def test_confidence_clamped(reports):
    assert 0.10 <= compute_confidence(reports) <= 1.00
