"""
chainrisk — Risk Scoring Engine
Weighted evidence combination with per-component caps.

Six scoring components, evaluated in a fixed order:
    Sanctions             (max 40)  — "Is the address on a sanctions list?"
    Scam Reports          (max 20)  — "Have people reported it?"
    Money Laundering      (max 25)  — "Does the AI see laundering schemes?"
    AI Anomalies          (max 10)  — "Does the AI see odd behaviour?"
    Cross-Chain           (max  3)  — "Is it hopping chains suspiciously?"
    Transaction Patterns  (max  2)  — "Is it moving large values?"
    ─────────────────────────────────
    Total possible:          100

A source that failed or is not configured is "no evidence": its components
score zero and scoring carries on. The engine is a pure function of the
SignalSet, so the same set always yields an equal assessment.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Tuple

from chainrisk.errors import ScoringInvariantError
from chainrisk.risk.labels import resolve_labels
from chainrisk.risk.signals import SignalResult, SignalSet, SignalStatus


# ── Enums ─────────────────────────────────────────

class RiskCategory(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ── Weights, caps, thresholds ─────────────────────

_SANCTIONS_CAP = 40
_SCAM_CAP = 20
_LAUNDERING_CAP = 25
_ANOMALY_CAP = 10
_CROSS_CHAIN_CAP = 3
_TX_PATTERN_CAP = 2

_SCAM_WEIGHT = 4            # per confirmed report
_LAUNDERING_WEIGHT = 8      # per laundering indicator
_ANOMALY_WEIGHT = 3         # per anomaly
_TX_PATTERN_WEIGHT = 1      # per high-value transaction

HIGH_VALUE_TX = Decimal("10")
CROSS_CHAIN_RISK_LEVELS = frozenset({"high", "critical"})

COMPONENT_CAPS: Dict[str, int] = {
    "sanctions": _SANCTIONS_CAP,
    "scam_reports": _SCAM_CAP,
    "money_laundering": _LAUNDERING_CAP,
    "ai_anomalies": _ANOMALY_CAP,
    "cross_chain": _CROSS_CHAIN_CAP,
    "transaction_patterns": _TX_PATTERN_CAP,
}

MAX_SCORE = 100

# Evaluated high to low; lower bounds are inclusive
CATEGORY_THRESHOLDS: Tuple[Tuple[int, RiskCategory], ...] = (
    (80, RiskCategory.CRITICAL),
    (50, RiskCategory.HIGH),
    (30, RiskCategory.MEDIUM),
)


# ── Output ────────────────────────────────────────

@dataclass(frozen=True)
class RiskBreakdown:
    sanctions: int = 0
    scam_reports: int = 0
    money_laundering: int = 0
    ai_anomalies: int = 0
    cross_chain: int = 0
    transaction_patterns: int = 0

    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    def to_dict(self) -> Dict[str, int]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass(frozen=True)
class RiskAssessment:
    """The final output. Every field is API-ready."""
    overall_score: int
    category: RiskCategory
    breakdown: RiskBreakdown
    explanation: Tuple[str, ...]
    labels: Tuple[str, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall": self.overall_score,
            "category": self.category.value,
            "breakdown": self.breakdown.to_dict(),
            "explanation": list(self.explanation),
            "labels": list(self.labels),
        }


# ── Component scoring ─────────────────────────────

def _no_evidence(result: SignalResult, source: str) -> str:
    if result.status is SignalStatus.UNAVAILABLE:
        return f"{source} unavailable"
    return f"{source} failed, no evidence used"


def score_sanctions(signals: SignalSet) -> Tuple[int, str]:
    result = signals.sanctions
    if not result.is_ok:
        return 0, f"Sanctions (0%): {_no_evidence(result, 'Sanctions screening')}"
    if result.payload.matched:
        return _SANCTIONS_CAP, f"Sanctions ({_SANCTIONS_CAP}%): Address is on OFAC sanctions list"
    return 0, "Sanctions (0%): No sanctions found"


def score_scam_reports(signals: SignalSet) -> Tuple[int, str]:
    result = signals.scam_reports
    if not result.is_ok:
        return 0, f"Scam Reports (0%): {_no_evidence(result, 'Scam report lookup')}"
    count = result.payload
    if count > 0:
        points = min(count * _SCAM_WEIGHT, _SCAM_CAP)
        return points, f"Scam Reports ({points}%): {count} confirmed scam report(s)"
    return 0, "Scam Reports (0%): No scam reports found"


def score_money_laundering(signals: SignalSet) -> Tuple[int, str]:
    result = signals.behavioral
    if not result.is_ok:
        return 0, f"Money Laundering (0%): {_no_evidence(result, 'Behavioral analysis')}"
    indicators = result.payload.money_laundering_indicators
    if indicators:
        points = min(len(indicators) * _LAUNDERING_WEIGHT, _LAUNDERING_CAP)
        schemes = ", ".join(i.scheme_type for i in indicators)
        return points, f"Money Laundering ({points}%): AI detected {len(indicators)} ML scheme(s) - {schemes}"
    return 0, "Money Laundering (0%): No ML schemes detected"


def score_ai_anomalies(signals: SignalSet) -> Tuple[int, str]:
    result = signals.behavioral
    if not result.is_ok:
        return 0, f"Anomalies (0%): {_no_evidence(result, 'Behavioral analysis')}"
    anomalies = result.payload.anomalies
    if anomalies:
        points = min(len(anomalies) * _ANOMALY_WEIGHT, _ANOMALY_CAP)
        return points, f"Anomalies ({points}%): {len(anomalies)} suspicious pattern(s) detected"
    return 0, "Anomalies (0%): No anomalies detected"


def score_cross_chain(signals: SignalSet) -> Tuple[int, str]:
    result = signals.cross_chain
    if not result.is_ok:
        return 0, f"Cross-Chain (0%): {_no_evidence(result, 'Cross-chain analytics')}"
    report = result.payload
    analysis = report.cross_chain_analysis
    if analysis.money_laundering_risk.lower() in CROSS_CHAIN_RISK_LEVELS:
        return _CROSS_CHAIN_CAP, (
            f"Cross-Chain ({_CROSS_CHAIN_CAP}%): {analysis.pattern_type} pattern detected "
            f"across {report.total_chains} chains"
        )
    if report.total_chains > 1:
        return 0, f"Cross-Chain (0%): Active on {report.total_chains} chains (low risk)"
    return 0, "Cross-Chain (0%): No high-risk cross-chain pattern"


def score_transaction_patterns(signals: SignalSet) -> Tuple[int, str]:
    result = signals.transactions
    if not result.is_ok:
        return 0, f"Transactions (0%): {_no_evidence(result, 'Transaction history')}"
    high_value = sum(1 for tx in result.payload if tx.value > HIGH_VALUE_TX)
    if high_value > 0:
        points = min(high_value * _TX_PATTERN_WEIGHT, _TX_PATTERN_CAP)
        return points, f"Transactions ({points}%): {high_value} high-value transaction(s)"
    return 0, "Transactions (0%): No high-value transactions"


# ── Classification ────────────────────────────────

def categorize(score: int) -> RiskCategory:
    for lower_bound, category in CATEGORY_THRESHOLDS:
        if score >= lower_bound:
            return category
    return RiskCategory.LOW


def _check_invariants(breakdown: RiskBreakdown, overall: int) -> None:
    for name, cap in COMPONENT_CAPS.items():
        value = getattr(breakdown, name)
        if not 0 <= value <= cap:
            raise ScoringInvariantError(f"component {name}={value} outside [0, {cap}]")
    if overall != min(MAX_SCORE, round(breakdown.total())):
        raise ScoringInvariantError(f"overall {overall} does not match breakdown {breakdown.total()}")
    if not 0 <= overall <= MAX_SCORE:
        raise ScoringInvariantError(f"overall {overall} outside [0, {MAX_SCORE}]")


# ── Main Entry Point ──────────────────────────────

def compute_assessment(signals: SignalSet) -> RiskAssessment:
    """
    THE scoring function. Takes a settled SignalSet, returns the assessment
    with its breakdown, explanation lines (in component order) and labels.
    """
    sanctions, sanctions_line = score_sanctions(signals)
    scam, scam_line = score_scam_reports(signals)
    laundering, laundering_line = score_money_laundering(signals)
    anomalies, anomalies_line = score_ai_anomalies(signals)
    cross_chain, cross_chain_line = score_cross_chain(signals)
    patterns, patterns_line = score_transaction_patterns(signals)

    breakdown = RiskBreakdown(
        sanctions=sanctions,
        scam_reports=scam,
        money_laundering=laundering,
        ai_anomalies=anomalies,
        cross_chain=cross_chain,
        transaction_patterns=patterns,
    )
    overall = min(MAX_SCORE, round(breakdown.total()))
    _check_invariants(breakdown, overall)

    sanctions_payload = signals.sanctions.payload if signals.sanctions.is_ok else None

    return RiskAssessment(
        overall_score=overall,
        category=categorize(overall),
        breakdown=breakdown,
        explanation=(
            sanctions_line,
            scam_line,
            laundering_line,
            anomalies_line,
            cross_chain_line,
            patterns_line,
        ),
        labels=tuple(resolve_labels(signals.address, sanctions_payload)),
    )
