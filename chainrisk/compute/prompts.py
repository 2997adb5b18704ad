"""
chainrisk — Behavioral analysis prompt

Transaction metrics and the forensic prompt sent to the AI behavioral
analysis service. The service must answer with JSON only; the shape it is
asked for is the BehavioralAnalysis model.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Sequence

from chainrisk.risk.signals import Transaction

# Late-night window, UTC hours inclusive
_LATE_NIGHT_HOURS = range(0, 6)
_RECENT_TX_COUNT = 5


@dataclass(frozen=True)
class TransactionSummary:
    count: int
    total_value: Decimal
    avg_value: Decimal
    max_value: Decimal
    min_value: Decimal
    unique_addresses: int
    time_span_hours: float
    late_night_count: int


def summarize_transactions(transactions: Sequence[Transaction]) -> TransactionSummary:
    values = [tx.value for tx in transactions]
    timestamps = [tx.timestamp for tx in transactions]
    total = sum(values, Decimal(0))
    counterparties = {tx.from_address for tx in transactions} | {tx.to_address for tx in transactions}

    late_night = sum(
        1 for ts in timestamps
        if datetime.fromtimestamp(ts, tz=timezone.utc).hour in _LATE_NIGHT_HOURS
    )

    return TransactionSummary(
        count=len(transactions),
        total_value=total,
        avg_value=total / len(values) if values else Decimal(0),
        max_value=max(values) if values else Decimal(0),
        min_value=min(values) if values else Decimal(0),
        unique_addresses=len(counterparties),
        time_span_hours=(max(timestamps) - min(timestamps)) / 3600 if timestamps else 0.0,
        late_night_count=late_night,
    )


def _unit(chain: str) -> str:
    return "ETH" if chain == "ethereum" else "units"


def _describe_tx(index: int, tx: Transaction, address: str, unit: str) -> str:
    sent = tx.from_address == address
    direction = "SENT to" if sent else "RECEIVED from"
    counterparty = (tx.to_address if sent else tx.from_address)[:10]
    when = datetime.fromtimestamp(tx.timestamp, tz=timezone.utc).isoformat()
    return f"{index}. {tx.value} {unit} | {direction} {counterparty}... | {when}"


def build_behavioral_prompt(address: str, chain: str, transactions: Sequence[Transaction]) -> str:
    s = summarize_transactions(transactions)
    unit = _unit(chain)
    recent = "\n".join(
        _describe_tx(i + 1, tx, address, unit)
        for i, tx in enumerate(list(transactions)[-_RECENT_TX_COUNT:])
    ) or "(none)"

    return f"""You are an expert cryptocurrency forensics analyst specializing in money laundering detection. Analyze this {chain} wallet's behavior for suspicious patterns, money laundering schemes, and security risks.

WALLET ADDRESS: {address}
BLOCKCHAIN: {chain}

TRANSACTION METRICS:
- Total Transactions: {s.count}
- Total Value: {s.total_value:.4f} {unit}
- Average Transaction: {s.avg_value:.4f} {unit}
- Largest Transaction: {s.max_value:.4f} {unit}
- Smallest Transaction: {s.min_value:.6f} {unit}
- Unique Counterparties: {s.unique_addresses}
- Activity Period: {s.time_span_hours:.1f} hours
- Late Night Transactions (12am-5am UTC): {s.late_night_count}

RECENT TRANSACTIONS (last {_RECENT_TX_COUNT}):
{recent}

MONEY LAUNDERING DETECTION CRITERIA:
1. Layering Schemes: Multiple rapid transfers through intermediary addresses
2. Structuring: Breaking large amounts into smaller transactions to avoid detection
3. Mixing Services: Interaction with known tumblers/mixers (Tornado Cash, etc.)
4. Round Numbers: Frequent use of round amounts
5. Velocity Patterns: Unusual bursts of activity or rapid in-and-out transfers
6. Time Patterns: Transactions at unusual hours or synchronized timing
7. Chain Hopping: Cross-chain transfers to obscure origin
8. Peel Chains: Sequential transactions with decreasing amounts

Respond ONLY with valid JSON (no markdown):
{{
  "risk_score": 0-100,
  "confidence": 0-100,
  "money_laundering_indicators": [
    {{
      "scheme_type": "layering|structuring|mixing|peel_chain|velocity_based|other",
      "severity": "low|medium|high|critical",
      "description": "Detailed explanation of the scheme detected",
      "evidence": "Specific data points supporting this finding",
      "recommendation": "Action for compliance officer/investigator",
      "regulatory_risk": "low|medium|high|critical"
    }}
  ],
  "anomalies": [
    {{
      "type": "unusual_timing|suspicious_amount|rapid_velocity|mixer_interaction|structuring|round_numbers|other",
      "severity": "low|medium|high|critical",
      "description": "Clear explanation",
      "evidence": "Specific data point"
    }}
  ],
  "overall_assessment": "2-3 sentence professional summary for compliance report",
  "legitimate_score": 0-100,
  "regulatory_flags": ["AML", "KYC", "SANCTIONS", "CTF"],
  "explanation": "How the risk score was calculated including weights for each factor"
}}"""
