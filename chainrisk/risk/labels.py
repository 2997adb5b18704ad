"""
chainrisk — Address labels

Static label tables and the seed reputation data shipped with the engine.
Keys are normalized (lowercase) addresses.
"""
from typing import Dict, List, Optional

from chainrisk.risk.signals import SanctionsMatch, normalize_address

SANCTIONED_LABEL = "OFAC Sanctioned"

# Known entities (exchange tags, reported scams)
KNOWN_LABELS: Dict[str, List[str]] = {
    "0x1234567890abcdef1234567890abcdef12345678": ["Exchange Wallet", "Binance"],
    "0xcafebabecafebabecafebabecafebabecafebabe": ["Reported Scam"],
    "0x3f5ce5fbfe3e9af3971dd833d26ba9b5c936f0be": ["Exchange Wallet", "Binance"],
    "0x28c6c06298d514db089934071355e5743bf21d60": ["Exchange Wallet", "Binance"],
    "0x71660c4005ba85c37ccec55d0c4493e66fe775d3": ["Exchange Wallet", "Coinbase"],
    "0x2910543af39aba0cd09dbb2d50200b3e800a63d2": ["Exchange Wallet", "Kraken"],
}

# Confirmed abuse reports used when no reputation file is configured
SEED_SCAM_REPORTS: Dict[str, int] = {
    "0xcafebabecafebabecafebabecafebabecafebabe": 5,
    "0x1234567890abcdef1234567890abcdef12345678": 2,
}


def resolve_labels(address: str, sanctions: Optional[SanctionsMatch]) -> List[str]:
    """
    Sanction labels first (fixed tag + first word of the sanction name),
    then any statically known entity labels, in discovery order.
    """
    labels: List[str] = []

    if sanctions is not None and sanctions.matched:
        labels.append(SANCTIONED_LABEL)
        words = (sanctions.detail.name or "").split() if sanctions.detail else []
        if words:
            labels.append(words[0])

    labels.extend(KNOWN_LABELS.get(normalize_address(address), []))
    return labels
