"""
chainrisk — Analysis Pipeline
Signal collection and scoring for one address.

Flow:
    1. Normalize the address
    2. Collect signals in parallel:
         sanctions ─┐
         scam reports ─┤
         cross-chain ─┤→ SignalSet
         history → behavioral ─┘
    3. Score (pure, engine)
    4. Schedule alert (fire-and-forget, never awaited)
    5. Return

Every source can fail independently; the SignalSet is always complete.
"""
import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import httpx
import structlog

from chainrisk.alerts.dispatcher import schedule_alert
from chainrisk.compute.collectors import (
    BehavioralAdapter,
    CrossChainAdapter,
    SanctionsAdapter,
    ScamReportAdapter,
    TransactionHistoryAdapter,
)
from chainrisk.config import Settings, get_settings
from chainrisk.errors import InvalidRequest
from chainrisk.risk.engine import RiskAssessment, compute_assessment
from chainrisk.risk.signals import (
    SignalResult,
    SignalSet,
    SignalStatus,
    normalize_address,
)

logger = structlog.get_logger()

_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Shared outbound connection pool, used concurrently by every adapter."""
    global _client
    if _client is None or _client.is_closed:
        settings = get_settings()
        _client = httpx.AsyncClient(
            headers={"User-Agent": "chainrisk/1.0"},
            follow_redirects=True,
            timeout=httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS, connect=5.0),
        )
    return _client


async def close_http_client() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None


@dataclass(frozen=True)
class AddressAnalysis:
    """An assessment together with the raw signals it was computed from."""
    address: str
    chain: str
    assessment: RiskAssessment
    signals: SignalSet
    analyzed_at: str
    collection_time_ms: float

    def to_response(self) -> Dict[str, Any]:
        s = self.signals
        a = self.assessment
        sanctions = s.sanctions.payload if s.sanctions.is_ok else None
        behavioral = s.behavioral.payload if s.behavioral.is_ok else None
        cross_chain = s.cross_chain.payload if s.cross_chain.is_ok else None

        risk_score = a.to_dict()
        labels = risk_score.pop("labels")
        risk_score.update({
            "sanctions": bool(sanctions and sanctions.matched),
            "sanction_details": sanctions.detail.model_dump() if sanctions and sanctions.detail else None,
            "scam_reports": s.scam_reports.payload if s.scam_reports.is_ok else 0,
            "money_laundering_indicators": [i.model_dump() for i in behavioral.money_laundering_indicators] if behavioral else [],
            "ai_anomalies": [x.model_dump() for x in behavioral.anomalies] if behavioral else [],
        })

        return {
            "address": self.address,
            "chain": self.chain,
            "risk_score": risk_score,
            "labels": labels,
            "transactions": [tx.to_dict() for tx in s.transaction_list],
            "behavioral_analysis": behavioral.model_dump() if behavioral else None,
            "cross_chain": cross_chain.model_dump() if cross_chain else None,
            "sources": s.statuses(),
            "analyzed_at": self.analyzed_at,
            "collection_time_ms": self.collection_time_ms,
        }


# =============================================
# COLLECTION
# =============================================

async def _history_then_behavioral(
    address: str,
    chain: str,
    history: TransactionHistoryAdapter,
    behavioral: BehavioralAdapter,
) -> Tuple[SignalResult, SignalResult]:
    """Behavioral analysis needs the transaction history, so they run in sequence."""
    txs = await history.fetch(address, chain=chain)

    if txs.status is SignalStatus.UNAVAILABLE:
        return txs, SignalResult.unavailable("transaction history unavailable")
    if not txs.is_ok:
        return txs, SignalResult.failed(f"transaction history failed: {txs.reason}")

    analysis = await behavioral.fetch(address, chain=chain, transactions=txs.payload)
    return txs, analysis


async def collect_signals(
    address: str,
    chain: str,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> SignalSet:
    """
    Gather every signal for one address/chain pair.
    Always returns a complete SignalSet; no source failure escapes.
    """
    settings = settings or get_settings()
    client = client or get_http_client()

    sanctions, scam_reports, cross_chain, (transactions, behavioral) = await asyncio.gather(
        SanctionsAdapter(client, settings).fetch(address),
        ScamReportAdapter(client, settings).fetch(address),
        CrossChainAdapter(client, settings).fetch(address),
        _history_then_behavioral(
            address,
            chain,
            TransactionHistoryAdapter(client, settings),
            BehavioralAdapter(client, settings),
        ),
    )

    return SignalSet(
        address=address,
        chain=chain,
        sanctions=sanctions,
        scam_reports=scam_reports,
        behavioral=behavioral,
        cross_chain=cross_chain,
        transactions=transactions,
    )


# =============================================
# THE PIPELINE
# =============================================

def validate_request(address: Optional[str], chain: Optional[str], settings: Settings) -> Tuple[str, str]:
    if address is None or not address.strip():
        raise InvalidRequest("Address parameter is required")
    if any(c.isspace() for c in address.strip()):
        raise InvalidRequest("Address must not contain whitespace")
    resolved_chain = (chain or "").strip().lower() or settings.DEFAULT_CHAIN
    return normalize_address(address), resolved_chain


async def analyze_address(
    address: Optional[str],
    chain: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
    settings: Optional[Settings] = None,
) -> AddressAnalysis:
    """
    AnalyzeAddress: collect, score, maybe alert, return.
    Raises InvalidRequest before any collection when the input is unusable.
    """
    settings = settings or get_settings()
    address, chain = validate_request(address, chain, settings)
    client = client or get_http_client()

    start = time.time()
    signals = await collect_signals(address, chain, client=client, settings=settings)
    collection_ms = round((time.time() - start) * 1000, 2)

    assessment = compute_assessment(signals)

    logger.info("analysis_complete",
                address=address,
                chain=chain,
                score=assessment.overall_score,
                category=assessment.category.value,
                sources={k: v["status"] for k, v in signals.statuses().items()},
                collection_time_ms=collection_ms)

    schedule_alert(assessment, signals, client=client, settings=settings)

    return AddressAnalysis(
        address=address,
        chain=chain,
        assessment=assessment,
        signals=signals,
        analyzed_at=datetime.now(timezone.utc).isoformat(),
        collection_time_ms=collection_ms,
    )
