"""
chainrisk — Signal types

Every fact the engine knows about an address arrives as a SignalResult.
Adapters produce them, the orchestrator collects them into a SignalSet, and
the scoring engine reads the finished set. No scoring logic here.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, List, Literal, Optional, Tuple, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")

Severity = Literal["low", "medium", "high", "critical"]


def normalize_address(address: str) -> str:
    """Addresses are case-insensitive; every lookup uses the lowercase form."""
    return address.strip().lower()


# ── Result variant ────────────────────────────────

class SignalStatus(str, Enum):
    OK = "ok"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class SignalResult(Generic[T]):
    status: SignalStatus
    payload: Optional[T] = None
    reason: str = ""

    @classmethod
    def ok(cls, payload: T) -> "SignalResult[T]":
        return cls(SignalStatus.OK, payload=payload)

    @classmethod
    def failed(cls, reason: str) -> "SignalResult[T]":
        return cls(SignalStatus.FAILED, reason=reason)

    @classmethod
    def unavailable(cls, reason: str = "not configured") -> "SignalResult[T]":
        return cls(SignalStatus.UNAVAILABLE, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.status is SignalStatus.OK

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"status": self.status.value}
        if self.reason:
            out["reason"] = self.reason
        return out


# ── Transactions ──────────────────────────────────

@dataclass(frozen=True)
class Transaction:
    hash: str
    from_address: str
    to_address: str
    value: Decimal          # native units, never negative
    timestamp: int          # unix seconds
    block_number: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": self.hash,
            "from": self.from_address,
            "to": self.to_address,
            "value": str(self.value),
            "timestamp": self.timestamp,
            "block_number": self.block_number,
        }


# ── Sanctions ─────────────────────────────────────

class Identification(BaseModel):
    """One entry of the sanctions API `identifications` list."""
    model_config = ConfigDict(extra="ignore")

    category: str
    name: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None


class SanctionsMatch(BaseModel):
    matched: bool
    detail: Optional[Identification] = None


# ── Behavioral analysis ───────────────────────────

class LaunderingIndicator(BaseModel):
    model_config = ConfigDict(extra="ignore")

    scheme_type: str
    severity: Severity
    description: str
    evidence: str = ""
    recommendation: str = ""
    regulatory_risk: Optional[Severity] = None


class Anomaly(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    severity: Severity
    description: str
    evidence: str = ""


class BehavioralAnalysis(BaseModel):
    """Strict shape of the AI behavioral-analysis answer."""
    model_config = ConfigDict(extra="ignore")

    risk_score: float = Field(ge=0, le=100)
    confidence: float = Field(ge=0, le=100)
    money_laundering_indicators: List[LaunderingIndicator]
    anomalies: List[Anomaly]
    overall_assessment: str
    legitimate_score: Optional[float] = Field(default=None, ge=0, le=100)
    regulatory_flags: List[str] = Field(default_factory=list)
    explanation: str = ""


# ── Cross-chain activity ──────────────────────────

class ChainActivity(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    blockchain: str
    transaction_count: int = Field(alias="transactionCount", ge=0)
    total_value: float = Field(alias="totalValue", ge=0)
    first_seen: int = Field(alias="firstSeen")
    last_seen: int = Field(alias="lastSeen")
    risk_score: float = Field(alias="riskScore", ge=0, le=100)


class CrossChainIndicator(BaseModel):
    model_config = ConfigDict(extra="ignore")

    indicator: str
    severity: Severity
    evidence: str = ""
    chains_involved: List[str] = Field(default_factory=list)


class CrossChainPattern(BaseModel):
    model_config = ConfigDict(extra="ignore")

    pattern_type: str
    risk_level: str
    money_laundering_risk: str
    confidence: float = 0
    description: str = ""
    indicators: List[CrossChainIndicator] = Field(default_factory=list)
    sophistication_level: str = "unknown"
    recommendation: str = ""


class CrossChainReport(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    address: str
    chains: List[ChainActivity]
    cross_chain_analysis: CrossChainPattern = Field(alias="crossChainAnalysis")
    total_chains: int = Field(alias="totalChains", ge=0)
    total_transactions: int = Field(default=0, alias="totalTransactions", ge=0)
    total_value: float = Field(default=0, alias="totalValue", ge=0)
    average_risk_score: float = Field(default=0, alias="averageRiskScore", ge=0)


# ── The consolidated set ──────────────────────────

SIGNAL_NAMES: Tuple[str, ...] = ("sanctions", "scam_reports", "behavioral", "cross_chain")


@dataclass(frozen=True)
class SignalSet:
    """
    One result per source, all settled before scoring begins.
    `transactions` is the history the behavioral adapter was given; the
    transaction-pattern component reads it directly.
    """
    address: str
    chain: str
    sanctions: SignalResult[SanctionsMatch]
    scam_reports: SignalResult[int]
    behavioral: SignalResult[BehavioralAnalysis]
    cross_chain: SignalResult[CrossChainReport]
    transactions: SignalResult[Tuple[Transaction, ...]]

    def __getitem__(self, name: str) -> SignalResult:
        if name not in SIGNAL_NAMES and name != "transactions":
            raise KeyError(name)
        return getattr(self, name)

    def statuses(self) -> Dict[str, Dict[str, Any]]:
        names = SIGNAL_NAMES + ("transactions",)
        return {name: self[name].to_dict() for name in names}

    @property
    def transaction_list(self) -> Tuple[Transaction, ...]:
        if self.transactions.is_ok and self.transactions.payload is not None:
            return self.transactions.payload
        return ()
