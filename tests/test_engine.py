"""
Scoring engine validation. Pure functions over hand-built SignalSets, no I/O.
"""
import dataclasses

import pytest

from chainrisk.errors import ScoringInvariantError
from chainrisk.risk import engine
from chainrisk.risk.engine import (
    COMPONENT_CAPS,
    MAX_SCORE,
    RiskBreakdown,
    RiskCategory,
    categorize,
    compute_assessment,
)
from chainrisk.risk.labels import SANCTIONED_LABEL
from chainrisk.risk.signals import SanctionsMatch, SignalResult

from conftest import ADDRESS, behavioral, cross_chain, make_signals, sanctioned, tx


def _failed_everything():
    return make_signals(
        sanctions=SignalResult.failed("HTTP 503"),
        scam_reports=SignalResult.failed("reputation store unreadable"),
        behavioral_result=SignalResult.failed("timed out after 15s"),
        cross_chain_result=SignalResult.failed("transport error: ConnectError"),
        transactions=SignalResult.failed("HTTP 502"),
    )


# ── 1. Reference scenarios ────────────────────────

def test_sanctioned_address_alone_is_medium():
    signals = make_signals(
        sanctions=SignalResult.ok(sanctioned()),
        behavioral_result=SignalResult.unavailable(),
        cross_chain_result=SignalResult.unavailable(),
    )
    result = compute_assessment(signals)

    assert result.breakdown == RiskBreakdown(sanctions=40)
    assert result.overall_score == 40
    assert result.category is RiskCategory.MEDIUM


def test_mixed_evidence_without_sanctions_is_high():
    signals = make_signals(
        scam_reports=SignalResult.ok(5),
        behavioral_result=SignalResult.ok(behavioral(indicators=3, anomalies=4)),
        cross_chain_result=SignalResult.ok(cross_chain(risk="high", chains=3)),
        transactions=SignalResult.ok((tx("12.5"), tx("0.3"), tx("10"))),
    )
    result = compute_assessment(signals)

    assert result.breakdown.to_dict() == {
        "sanctions": 0,
        "scam_reports": 20,
        "money_laundering": 24,
        "ai_anomalies": 10,
        "cross_chain": 3,
        "transaction_patterns": 1,
    }
    assert result.overall_score == 58
    assert result.category is RiskCategory.HIGH


def test_all_sources_failed_scores_zero():
    result = compute_assessment(_failed_everything())

    assert result.breakdown.total() == 0
    assert result.overall_score == 0
    assert result.category is RiskCategory.LOW


def test_every_cap_saturated_is_critical_at_100():
    signals = make_signals(
        sanctions=SignalResult.ok(sanctioned()),
        scam_reports=SignalResult.ok(10),
        behavioral_result=SignalResult.ok(behavioral(indicators=10, anomalies=10)),
        cross_chain_result=SignalResult.ok(cross_chain(risk="critical", chains=5)),
        transactions=SignalResult.ok(tuple(tx("50") for _ in range(5))),
    )
    result = compute_assessment(signals)

    assert result.breakdown.to_dict() == COMPONENT_CAPS
    assert result.overall_score == MAX_SCORE
    assert result.category is RiskCategory.CRITICAL


# ── 2. Categories ─────────────────────────────────

@pytest.mark.parametrize("score,expected", [
    (0, RiskCategory.LOW),
    (29, RiskCategory.LOW),
    (30, RiskCategory.MEDIUM),
    (49, RiskCategory.MEDIUM),
    (50, RiskCategory.HIGH),
    (79, RiskCategory.HIGH),
    (80, RiskCategory.CRITICAL),
    (100, RiskCategory.CRITICAL),
])
def test_category_lower_bounds_are_inclusive(score, expected):
    assert categorize(score) is expected


# ── 3. Components ─────────────────────────────────

@pytest.mark.parametrize("count,points", [(0, 0), (1, 4), (4, 16), (5, 20), (50, 20)])
def test_scam_reports_weight_and_cap(count, points):
    result = compute_assessment(make_signals(scam_reports=SignalResult.ok(count)))
    assert result.breakdown.scam_reports == points


@pytest.mark.parametrize("indicators,points", [(1, 8), (3, 24), (4, 25)])
def test_laundering_weight_and_cap(indicators, points):
    signals = make_signals(behavioral_result=SignalResult.ok(behavioral(indicators=indicators)))
    assert compute_assessment(signals).breakdown.money_laundering == points


@pytest.mark.parametrize("anomalies,points", [(1, 3), (3, 9), (4, 10)])
def test_anomaly_weight_and_cap(anomalies, points):
    signals = make_signals(behavioral_result=SignalResult.ok(behavioral(anomalies=anomalies)))
    assert compute_assessment(signals).breakdown.ai_anomalies == points


def test_high_value_threshold_is_strictly_greater_than_ten():
    signals = make_signals(transactions=SignalResult.ok((tx("10"), tx("10.000001"))))
    result = compute_assessment(signals)
    assert result.breakdown.transaction_patterns == 1


def test_cross_chain_low_risk_scores_zero_but_reports_chain_count():
    signals = make_signals(cross_chain_result=SignalResult.ok(cross_chain(risk="low", chains=4)))
    result = compute_assessment(signals)

    assert result.breakdown.cross_chain == 0
    assert result.explanation[4] == "Cross-Chain (0%): Active on 4 chains (low risk)"


def test_cross_chain_risk_level_is_case_insensitive():
    signals = make_signals(cross_chain_result=SignalResult.ok(cross_chain(risk="HIGH", chains=2)))
    assert compute_assessment(signals).breakdown.cross_chain == 3


@pytest.mark.parametrize("result", [SignalResult.failed("HTTP 500"), SignalResult.unavailable()])
def test_sanctions_without_answer_is_not_a_match(result):
    assessment = compute_assessment(make_signals(sanctions=result))
    assert assessment.breakdown.sanctions == 0
    assert SANCTIONED_LABEL not in assessment.labels


def test_failed_and_unavailable_are_worded_differently():
    failed = compute_assessment(make_signals(sanctions=SignalResult.failed("HTTP 500")))
    missing = compute_assessment(make_signals(sanctions=SignalResult.unavailable()))

    assert failed.explanation[0] == "Sanctions (0%): Sanctions screening failed, no evidence used"
    assert missing.explanation[0] == "Sanctions (0%): Sanctions screening unavailable"


# ── 4. Invariants ─────────────────────────────────

def test_explanation_has_one_line_per_component_in_order():
    result = compute_assessment(_failed_everything())
    prefixes = [line.split(" (")[0] for line in result.explanation]
    assert prefixes == [
        "Sanctions",
        "Scam Reports",
        "Money Laundering",
        "Anomalies",
        "Cross-Chain",
        "Transactions",
    ]


def test_overall_equals_sum_of_breakdown_within_bounds():
    for count in range(0, 8):
        signals = make_signals(
            scam_reports=SignalResult.ok(count),
            behavioral_result=SignalResult.ok(behavioral(indicators=count, anomalies=count)),
        )
        result = compute_assessment(signals)
        assert result.overall_score == result.breakdown.total()
        assert 0 <= result.overall_score <= MAX_SCORE
        for name, cap in COMPONENT_CAPS.items():
            assert 0 <= getattr(result.breakdown, name) <= cap


def test_more_evidence_never_lowers_the_score():
    previous = -1
    for count in range(0, 12):
        signals = make_signals(
            scam_reports=SignalResult.ok(count),
            behavioral_result=SignalResult.ok(behavioral(indicators=count, anomalies=count)),
            transactions=SignalResult.ok(tuple(tx("11") for _ in range(count))),
        )
        score = compute_assessment(signals).overall_score
        assert score >= previous
        previous = score


def test_same_signals_yield_equal_assessment():
    signals = make_signals(
        sanctions=SignalResult.ok(sanctioned()),
        scam_reports=SignalResult.ok(3),
        behavioral_result=SignalResult.ok(behavioral(indicators=2, anomalies=1)),
    )
    assert compute_assessment(signals) == compute_assessment(signals)


def test_assessment_is_immutable():
    result = compute_assessment(make_signals())
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.overall_score = 99


def test_out_of_range_component_is_an_internal_fault(monkeypatch):
    monkeypatch.setattr(engine, "score_scam_reports", lambda signals: (21, "Scam Reports (21%): broken"))
    with pytest.raises(ScoringInvariantError):
        compute_assessment(make_signals())


# ── 5. Labels ─────────────────────────────────────

def test_sanction_labels_come_first():
    signals = make_signals(sanctions=SignalResult.ok(sanctioned("Lazarus Group - DPRK")))
    assert compute_assessment(signals).labels == (SANCTIONED_LABEL, "Lazarus")


def test_known_entity_labels_use_normalized_address():
    signals = make_signals(address="0x28c6c06298d514db089934071355e5743bf21d60")
    assert compute_assessment(signals).labels == ("Exchange Wallet", "Binance")


def test_unlabelled_address_has_no_labels():
    signals = make_signals(sanctions=SignalResult.ok(SanctionsMatch(matched=False)), address=ADDRESS)
    assert compute_assessment(signals).labels == ()
