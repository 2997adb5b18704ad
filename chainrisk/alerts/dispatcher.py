"""
chainrisk — Alert Dispatcher

Posts a notification to a Discord-compatible webhook when an assessment
scores at or above ALERT_THRESHOLD. Delivery is fire-and-forget: the caller
never waits for it, a failure is logged and dropped, and nothing is retried.
"""
import asyncio
from typing import Any, Dict, Optional, Set

import httpx
import structlog

from chainrisk.config import Settings
from chainrisk.risk.engine import RiskAssessment, RiskCategory
from chainrisk.risk.signals import SignalSet

logger = structlog.get_logger()

ALERT_THRESHOLD = 60
MAX_EXPLANATION_CHARS = 100
ALERT_TIMEOUT_SECONDS = 10.0

# Discord embed colours per category
_COLORS = {
    RiskCategory.LOW: 0x2ECC71,
    RiskCategory.MEDIUM: 0xF1C40F,
    RiskCategory.HIGH: 0xE67E22,
    RiskCategory.CRITICAL: 0xE74C3C,
}

# Strong references to in-flight deliveries; done tasks remove themselves
_pending: Set[asyncio.Task] = set()


def should_alert(assessment: RiskAssessment) -> bool:
    return assessment.overall_score >= ALERT_THRESHOLD


def alert_type(assessment: RiskAssessment) -> str:
    if assessment.breakdown.sanctions > 0:
        return "sanctioned"
    if assessment.breakdown.money_laundering > 0:
        return "money_laundering"
    return "anomaly"


def build_alert_payload(assessment: RiskAssessment, signals: SignalSet) -> Dict[str, Any]:
    """Bounded webhook body: category, truncated explanation, score, address."""
    summary = " | ".join(assessment.explanation)[:MAX_EXPLANATION_CHARS]
    message = f"High-risk address detected: {summary}..."
    kind = alert_type(assessment)

    fields = [
        {"name": "Address", "value": signals.address, "inline": False},
        {"name": "Chain", "value": signals.chain, "inline": True},
        {"name": "Score", "value": str(assessment.overall_score), "inline": True},
        {"name": "Severity", "value": assessment.category.value, "inline": True},
        {"name": "Type", "value": kind, "inline": True},
    ]
    if assessment.labels:
        fields.append({"name": "Labels", "value": ", ".join(assessment.labels)[:1024], "inline": False})
    if signals.behavioral.is_ok:
        fields.append({
            "name": "AI assessment",
            "value": signals.behavioral.payload.overall_assessment[:1024] or "-",
            "inline": False,
        })

    return {
        "username": "chainrisk",
        "content": message,
        "embeds": [{
            "title": f"{assessment.category.value.upper()} risk: {kind.replace('_', ' ')}",
            "color": _COLORS[assessment.category],
            "fields": fields,
        }],
    }


async def deliver_alert(
    assessment: RiskAssessment,
    signals: SignalSet,
    client: httpx.AsyncClient,
    webhook_url: str,
) -> bool:
    """One delivery attempt. Returns True on a 2xx, False otherwise. Never raises."""
    payload = build_alert_payload(assessment, signals)
    try:
        resp = await client.post(webhook_url, json=payload, timeout=ALERT_TIMEOUT_SECONDS)
        resp.raise_for_status()
    except Exception as e:
        logger.error("alert_delivery_failed",
                     address=signals.address,
                     score=assessment.overall_score,
                     error=str(e))
        return False

    logger.info("alert_dispatched",
                address=signals.address,
                chain=signals.chain,
                score=assessment.overall_score,
                category=assessment.category.value,
                type=alert_type(assessment))
    return True


def schedule_alert(
    assessment: RiskAssessment,
    signals: SignalSet,
    client: httpx.AsyncClient,
    settings: Settings,
) -> Optional[asyncio.Task]:
    """
    Start a detached delivery when the score crosses the threshold.
    The returned task is independent of the caller; cancelling the request
    that scheduled it does not cancel it.
    """
    if not should_alert(assessment):
        return None
    if not settings.alerts_enabled:
        logger.debug("alert_skipped_no_webhook", address=signals.address, score=assessment.overall_score)
        return None

    task = asyncio.get_running_loop().create_task(
        deliver_alert(assessment, signals, client, settings.ALERT_WEBHOOK_URL)
    )
    _pending.add(task)
    task.add_done_callback(_pending.discard)
    return task


async def drain_pending(timeout: float = ALERT_TIMEOUT_SECONDS) -> None:
    """Wait for in-flight deliveries, used at shutdown."""
    if _pending:
        await asyncio.wait(set(_pending), timeout=timeout)
