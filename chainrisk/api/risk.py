"""
chainrisk — Risk API

Public endpoints:
    GET  /v1/risk/health               - Health check and source configuration
    GET  /v1/risk/analyze              - Analyze one address (?address=&chain=)
    POST /v1/risk/analyze              - Same, JSON body
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel, Field

from chainrisk.compute.pipeline import analyze_address
from chainrisk.config import get_settings


# =============================================
# REQUEST/RESPONSE MODELS
# =============================================

class AnalyzeRequest(BaseModel):
    address: Optional[str] = Field(None, description="Address to assess (case-insensitive)")
    chain: Optional[str] = Field(None, description="Chain identifier; defaults to ethereum")


class BreakdownResponse(BaseModel):
    sanctions: int
    scam_reports: int
    money_laundering: int
    ai_anomalies: int
    cross_chain: int
    transaction_patterns: int


class RiskScoreResponse(BaseModel):
    overall: int = Field(..., ge=0, le=100)
    category: str
    breakdown: BreakdownResponse
    explanation: List[str]
    sanctions: bool
    sanction_details: Optional[Dict[str, Any]] = None
    scam_reports: int
    money_laundering_indicators: List[Dict[str, Any]]
    ai_anomalies: List[Dict[str, Any]]


class SourceStatus(BaseModel):
    status: str
    reason: Optional[str] = None


class AnalyzeResponse(BaseModel):
    address: str
    chain: str
    risk_score: RiskScoreResponse
    labels: List[str]
    transactions: List[Dict[str, Any]]
    behavioral_analysis: Optional[Dict[str, Any]] = None
    cross_chain: Optional[Dict[str, Any]] = None
    sources: Dict[str, SourceStatus]
    analyzed_at: str
    collection_time_ms: float


# =============================================
# ROUTES
# =============================================

risk_router = APIRouter(prefix="/v1/risk", tags=["risk"])


@risk_router.get("/health")
async def risk_health():
    """Health check for the Risk API, with which collaborators are configured."""
    settings = get_settings()
    return {
        "status": "healthy",
        "service": "chainrisk-risk-api",
        "version": "1.0.0",
        "sources": {
            "sanctions": settings.sanctions_enabled,
            "scam_reports": True,
            "behavioral": settings.behavioral_enabled,
            "cross_chain": settings.cross_chain_enabled,
            "transactions": settings.history_enabled,
        },
        "alerts": settings.alerts_enabled,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@risk_router.get("/analyze", response_model=AnalyzeResponse)
async def analyze(
    address: Optional[str] = Query(None, description="Address to assess"),
    chain: Optional[str] = Query(None, description="Chain identifier, e.g. ethereum, polygon"),
):
    """
    Composite risk assessment for one address.

    Usage:
        GET /v1/risk/analyze?address=0xabc...&chain=ethereum
    """
    result = await analyze_address(address, chain)
    return result.to_response()


@risk_router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_post(body: AnalyzeRequest):
    result = await analyze_address(body.address, body.chain)
    return result.to_response()
