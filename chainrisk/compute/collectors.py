"""
chainrisk — Signal Source Adapters
The evidence sources of the engine.

Every adapter returns raw facts wrapped in a SignalResult. No scoring logic.
No opinions. A call never raises to the caller: a missing credential is
Unavailable, anything that goes wrong on the wire or in the payload is Failed.

Sources:
    1. Sanctions screening (Chainalysis public API — API key)
    2. Scam reports (reputation store — JSON file or bundled seed table)
    3. Behavioral analysis (Gemini generative-language API — API key)
    4. Cross-chain analytics (HTTP JSON service — URL + API key)
    5. Transaction history (Etherscan V2 multichain API — API key)
"""
import asyncio
import json
import time
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import httpx
import structlog
from pydantic import ValidationError

from chainrisk.compute.prompts import build_behavioral_prompt
from chainrisk.config import CHAIN_IDS, Settings
from chainrisk.errors import MalformedUpstreamPayload, SourceFailed, SourceUnavailable
from chainrisk.risk.labels import SEED_SCAM_REPORTS
from chainrisk.risk.signals import (
    BehavioralAnalysis,
    CrossChainReport,
    Identification,
    SanctionsMatch,
    SignalResult,
    Transaction,
    normalize_address,
)

logger = structlog.get_logger()

WEI_PER_ETHER = Decimal(10) ** 18


def _parse_json(resp: httpx.Response, source: str) -> Any:
    """Non-2xx is a failure; a 2xx body that is not JSON is a malformed payload."""
    if not resp.is_success:
        raise SourceFailed(source, f"HTTP {resp.status_code}")
    try:
        return resp.json()
    except ValueError:
        raise MalformedUpstreamPayload(source, "response is not JSON")


# ── Base ──────────────────────────────────────────

class SignalAdapter:
    """
    Base class for signal sources.

    Subclasses implement `_fetch` and may raise SourceFailed or
    SourceUnavailable (or let httpx errors escape); `fetch` turns every
    outcome into exactly one SignalResult within the adapter's timeout.
    """

    name = "signal"

    def __init__(self, client: httpx.AsyncClient, settings: Settings, timeout: Optional[float] = None):
        self.client = client
        self.settings = settings
        self.timeout = timeout if timeout is not None else settings.SOURCE_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return True

    async def _fetch(self, address: str, **context: Any) -> Any:
        raise NotImplementedError

    async def _guarded_fetch(self, address: str, **context: Any) -> Any:
        if not self.configured:
            raise SourceUnavailable(self.name)
        return await self._fetch(address, **context)

    async def fetch(self, address: str, **context: Any) -> SignalResult:
        t0 = time.time()
        try:
            payload = await asyncio.wait_for(self._guarded_fetch(address, **context), timeout=self.timeout)
        except SourceUnavailable as e:
            logger.info("signal_unavailable", source=self.name, reason=e.reason)
            return SignalResult.unavailable(e.reason)
        except asyncio.TimeoutError:
            reason = f"timed out after {self.timeout:g}s"
        except SourceFailed as e:
            reason = e.reason
        except httpx.HTTPError as e:
            reason = f"transport error: {type(e).__name__}"
        except Exception as e:
            reason = f"unexpected error: {type(e).__name__}"
            logger.warning("signal_adapter_error", source=self.name, error=str(e))
        else:
            logger.debug("signal_collected", source=self.name,
                         elapsed_ms=round((time.time() - t0) * 1000, 2))
            return SignalResult.ok(payload)

        logger.warning("signal_failed", source=self.name, reason=reason,
                       elapsed_ms=round((time.time() - t0) * 1000, 2))
        return SignalResult.failed(reason)


# ── 1. Sanctions ──────────────────────────────────

class SanctionsAdapter(SignalAdapter):
    """Chainalysis sanctions screening. Only a `sanctions` identification counts."""

    name = "sanctions"

    @property
    def configured(self) -> bool:
        return self.settings.sanctions_enabled

    async def _fetch(self, address: str, **context: Any) -> SanctionsMatch:
        resp = await self.client.get(
            f"{self.settings.CHAINALYSIS_API_URL.rstrip('/')}/{address}",
            headers={
                "X-API-KEY": self.settings.CHAINALYSIS_API_KEY,
                "Accept": "application/json",
            },
        )
        data = _parse_json(resp, self.name)
        if not isinstance(data, dict):
            raise MalformedUpstreamPayload(self.name, "expected a JSON object")

        identifications = data.get("identifications") or []
        if not isinstance(identifications, list):
            raise MalformedUpstreamPayload(self.name, "identifications is not a list")

        for ident in identifications:
            if isinstance(ident, dict) and ident.get("category") == "sanctions":
                try:
                    detail = Identification.model_validate(ident)
                except ValidationError:
                    raise MalformedUpstreamPayload(self.name, "invalid sanctions identification")
                return SanctionsMatch(matched=True, detail=detail)

        return SanctionsMatch(matched=False)


# ── 2. Scam reports ───────────────────────────────

def load_scam_reports(path: str) -> Dict[str, int]:
    """Load the reputation table: a JSON object of address → confirmed report count."""
    if not path:
        return dict(SEED_SCAM_REPORTS)

    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("scam report file must hold a JSON object")

    reports = {}
    for address, count in raw.items():
        if not isinstance(count, int) or isinstance(count, bool) or count < 0:
            raise ValueError(f"invalid report count for {address}")
        reports[normalize_address(address)] = count
    return reports


class ScamReportAdapter(SignalAdapter):
    """Confirmed abuse reports from the local reputation store."""

    name = "scam_reports"

    async def _fetch(self, address: str, **context: Any) -> int:
        # File reads block; run them in the executor so the timeout still applies
        loop = asyncio.get_running_loop()
        try:
            reports = await loop.run_in_executor(None, load_scam_reports, self.settings.SCAM_REPORTS_PATH)
        except (OSError, ValueError) as e:
            raise SourceFailed(self.name, f"reputation store unreadable: {e}")
        return reports.get(normalize_address(address), 0)


# ── 3. Behavioral analysis ────────────────────────

class BehavioralAdapter(SignalAdapter):
    """AI behavioral analysis over the address's transaction history."""

    name = "behavioral"

    @property
    def configured(self) -> bool:
        return self.settings.behavioral_enabled

    async def _fetch(self, address: str, **context: Any) -> BehavioralAnalysis:
        chain: str = context.get("chain", self.settings.DEFAULT_CHAIN)
        transactions: Sequence[Transaction] = context.get("transactions", ())
        prompt = build_behavioral_prompt(address, chain, transactions)

        resp = await self.client.post(
            f"{self.settings.GEMINI_API_URL.rstrip('/')}/{self.settings.GEMINI_MODEL}:generateContent",
            params={"key": self.settings.GEMINI_API_KEY},
            headers={"Content-Type": "application/json"},
            json={
                "contents": [{"parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": 0.2,
                    "topK": 40,
                    "topP": 0.95,
                    "maxOutputTokens": 2048,
                    "responseMimeType": "application/json",
                },
            },
        )
        data = _parse_json(resp, self.name)

        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            raise MalformedUpstreamPayload(self.name, "no candidate text in response")
        if not isinstance(text, str):
            raise MalformedUpstreamPayload(self.name, "candidate text is not a string")

        try:
            return BehavioralAnalysis.model_validate_json(text)
        except ValidationError as e:
            raise MalformedUpstreamPayload(self.name, f"analysis does not match schema ({e.error_count()} errors)")


# ── 4. Cross-chain analytics ──────────────────────

class CrossChainAdapter(SignalAdapter):
    """Per-chain activity and cross-chain pattern classification."""

    name = "cross_chain"

    @property
    def configured(self) -> bool:
        return self.settings.cross_chain_enabled

    async def _fetch(self, address: str, **context: Any) -> CrossChainReport:
        resp = await self.client.post(
            self.settings.CROSS_CHAIN_API_URL,
            headers={
                "X-API-KEY": self.settings.CROSS_CHAIN_API_KEY,
                "Accept": "application/json",
            },
            json={"address": address},
        )
        data = _parse_json(resp, self.name)
        try:
            return CrossChainReport.model_validate(data)
        except ValidationError as e:
            raise MalformedUpstreamPayload(self.name, f"report does not match schema ({e.error_count()} errors)")


# ── 5. Transaction history ────────────────────────

def _parse_etherscan_tx(tx: Dict[str, Any]) -> Transaction:
    try:
        value = Decimal(str(tx["value"])) / WEI_PER_ETHER
        return Transaction(
            hash=str(tx["hash"]),
            from_address=normalize_address(str(tx.get("from") or "")),
            to_address=normalize_address(str(tx.get("to") or "")),
            value=value,
            timestamp=int(tx["timeStamp"]),
            block_number=int(tx["blockNumber"]),
        )
    except (KeyError, TypeError, ValueError, InvalidOperation):
        raise MalformedUpstreamPayload("transactions", "unparseable transaction entry")


class TransactionHistoryAdapter(SignalAdapter):
    """Normal transactions of an address on one EVM chain, oldest first."""

    name = "transactions"

    @property
    def configured(self) -> bool:
        return self.settings.history_enabled

    async def _fetch(self, address: str, **context: Any) -> Tuple[Transaction, ...]:
        chain: str = context.get("chain", self.settings.DEFAULT_CHAIN)
        chain_id = CHAIN_IDS.get(chain)
        if chain_id is None:
            raise SourceFailed(self.name, f"unsupported chain: {chain}")

        resp = await self.client.get(
            self.settings.ETHERSCAN_API_URL,
            params={
                "chainid": chain_id,
                "module": "account",
                "action": "txlist",
                "address": address,
                "page": 1,
                "offset": self.settings.TRANSACTION_LIMIT,
                "sort": "asc",
                "apikey": self.settings.ETHERSCAN_API_KEY,
            },
        )
        data = _parse_json(resp, self.name)
        if not isinstance(data, dict):
            raise MalformedUpstreamPayload(self.name, "expected a JSON object")

        result = data.get("result")
        if data.get("status") != "1":
            if str(data.get("message", "")).startswith("No transactions found"):
                return ()
            raise SourceFailed(self.name, f"provider error: {data.get('message', 'unknown')}")
        if not isinstance(result, list):
            raise MalformedUpstreamPayload(self.name, "result is not a list")

        if not all(isinstance(tx, dict) for tx in result):
            raise MalformedUpstreamPayload(self.name, "transaction entry is not an object")
        transactions = tuple(_parse_etherscan_tx(tx) for tx in result)
        if any(tx.value < 0 for tx in transactions):
            raise MalformedUpstreamPayload(self.name, "negative transaction value")
        return transactions
