"""
Pytest fixtures for chainrisk tests. External services are replaced with
httpx.MockTransport handlers; no test touches the network.
"""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Callable

import httpx
import pytest

from chainrisk.config import Settings
from chainrisk.risk.signals import (
    Anomaly,
    BehavioralAnalysis,
    ChainActivity,
    CrossChainPattern,
    CrossChainReport,
    Identification,
    LaunderingIndicator,
    SanctionsMatch,
    SignalResult,
    SignalSet,
    Transaction,
)

ADDRESS = "0xabcdefabcdefabcdefabcdefabcdefabcdefabcd"
CROSS_CHAIN_URL = "https://crosschain.test/v1/activity"
WEBHOOK_URL = "https://hooks.test/webhook"


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings with every collaborator configured and a fast timeout."""
    s = Settings()
    s.CHAINALYSIS_API_KEY = "chainalysis-test-key"
    s.CHAINALYSIS_API_URL = "https://public.chainalysis.com/api/v1/address"
    s.GEMINI_API_KEY = "gemini-test-key"
    s.GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta/models"
    s.GEMINI_MODEL = "gemini-2.0-flash"
    s.CROSS_CHAIN_API_URL = CROSS_CHAIN_URL
    s.CROSS_CHAIN_API_KEY = "cross-chain-test-key"
    s.ETHERSCAN_API_KEY = "etherscan-test-key"
    s.ETHERSCAN_API_URL = "https://api.etherscan.io/v2/api"
    s.SCAM_REPORTS_PATH = ""
    s.ALERT_WEBHOOK_URL = WEBHOOK_URL
    s.SOURCE_TIMEOUT_SECONDS = 2.0
    s.DEFAULT_CHAIN = "ethereum"
    return s


@pytest.fixture
def unconfigured_settings() -> Settings:
    s = Settings()
    s.CHAINALYSIS_API_KEY = ""
    s.GEMINI_API_KEY = ""
    s.CROSS_CHAIN_API_URL = ""
    s.CROSS_CHAIN_API_KEY = ""
    s.ETHERSCAN_API_KEY = ""
    s.SCAM_REPORTS_PATH = ""
    s.ALERT_WEBHOOK_URL = ""
    s.DEFAULT_CHAIN = "ethereum"
    return s


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── Payload builders ──────────────────────────────

def tx(value: str, timestamp: int = 1_700_000_000, sender: str = ADDRESS, to: str = "0x" + "1" * 40) -> Transaction:
    return Transaction(
        hash="0x" + "f" * 64,
        from_address=sender,
        to_address=to,
        value=Decimal(value),
        timestamp=timestamp,
        block_number=18_000_000,
    )


def behavioral(indicators: int = 0, anomalies: int = 0) -> BehavioralAnalysis:
    return BehavioralAnalysis(
        risk_score=70,
        confidence=85,
        money_laundering_indicators=[
            LaunderingIndicator(scheme_type="layering", severity="high", description="rapid hops")
            for _ in range(indicators)
        ],
        anomalies=[
            Anomaly(type="rapid_velocity", severity="medium", description="burst of transfers")
            for _ in range(anomalies)
        ],
        overall_assessment="Layering through intermediaries.",
    )


def cross_chain(risk: str = "low", chains: int = 1) -> CrossChainReport:
    return CrossChainReport(
        address=ADDRESS,
        chains=[
            ChainActivity(
                blockchain=name,
                transaction_count=10,
                total_value=12.5,
                first_seen=1_690_000_000_000,
                last_seen=1_700_000_000_000,
                risk_score=40,
            )
            for name in ["ethereum", "polygon", "bsc", "arbitrum", "avalanche"][:chains]
        ],
        cross_chain_analysis=CrossChainPattern(
            pattern_type="chain_hopping",
            risk_level=risk,
            money_laundering_risk=risk,
        ),
        total_chains=chains,
    )


def sanctioned(name: str = "Lazarus Group - DPRK") -> SanctionsMatch:
    return SanctionsMatch(matched=True, detail=Identification(category="sanctions", name=name))


def make_signals(
    sanctions: SignalResult = None,
    scam_reports: SignalResult = None,
    behavioral_result: SignalResult = None,
    cross_chain_result: SignalResult = None,
    transactions: SignalResult = None,
    address: str = ADDRESS,
) -> SignalSet:
    """A SignalSet where every source answered with no evidence unless overridden."""
    return SignalSet(
        address=address,
        chain="ethereum",
        sanctions=sanctions or SignalResult.ok(SanctionsMatch(matched=False)),
        scam_reports=scam_reports or SignalResult.ok(0),
        behavioral=behavioral_result or SignalResult.ok(behavioral()),
        cross_chain=cross_chain_result or SignalResult.ok(cross_chain()),
        transactions=transactions or SignalResult.ok(()),
    )


# ── Upstream response bodies ──────────────────────

def gemini_body(analysis: dict) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": json.dumps(analysis)}]}}]}


def analysis_dict(indicators: int = 1, anomalies: int = 1) -> dict:
    return {
        "risk_score": 62,
        "confidence": 80,
        "money_laundering_indicators": [
            {
                "scheme_type": "structuring",
                "severity": "high",
                "description": "Amounts split below reporting thresholds",
                "evidence": "12 transfers of 0.99 ETH",
                "recommendation": "File SAR",
                "regulatory_risk": "high",
            }
        ] * indicators,
        "anomalies": [
            {
                "type": "unusual_timing",
                "severity": "medium",
                "description": "Activity concentrated at night",
                "evidence": "8 of 10 transactions between 01:00 and 04:00",
            }
        ] * anomalies,
        "overall_assessment": "Structuring pattern with night-time activity.",
        "legitimate_score": 30,
        "regulatory_flags": ["AML"],
        "explanation": "velocity 30%, amounts 25%, timing 20%, counterparties 25%",
    }


def cross_chain_body(risk: str = "high", chains: int = 3) -> dict:
    return {
        "address": ADDRESS,
        "chains": [
            {
                "blockchain": name,
                "transactionCount": 20,
                "totalValue": 310.5,
                "firstSeen": 1_690_000_000_000,
                "lastSeen": 1_700_000_000_000,
                "riskScore": 55,
            }
            for name in ["ethereum", "polygon", "bsc"][:chains]
        ],
        "crossChainAnalysis": {
            "pattern_type": "bridge_layering",
            "risk_level": risk,
            "confidence": 70,
            "description": "Funds bridged repeatedly",
            "indicators": [],
            "money_laundering_risk": risk,
            "sophistication_level": "high",
            "recommendation": "Trace bridge exits",
        },
        "totalChains": chains,
        "totalTransactions": 20 * chains,
        "totalValue": 310.5 * chains,
        "averageRiskScore": 55,
    }


def etherscan_body(values_wei: list) -> dict:
    return {
        "status": "1",
        "message": "OK",
        "result": [
            {
                "hash": f"0x{i:064x}",
                "from": ADDRESS.upper().replace("0X", "0x"),
                "to": "0x" + "2" * 40,
                "value": str(v),
                "timeStamp": str(1_700_000_000 + i * 60),
                "blockNumber": str(18_000_000 + i),
            }
            for i, v in enumerate(values_wei)
        ],
    }
