"""
chainrisk — Configuration

All settings load from environment variables with safe defaults for development.
A collaborator whose credential is left empty is reported as unavailable rather
than failed, so a bare development environment still produces assessments.
"""
import os
from functools import lru_cache
from typing import Dict

from dotenv import load_dotenv

load_dotenv()


# Etherscan V2 chain ids for the chains the history provider understands
CHAIN_IDS: Dict[str, int] = {
    "ethereum": 1,
    "bsc": 56,
    "polygon": 137,
    "arbitrum": 42161,
    "avalanche": 43114,
    "optimism": 10,
    "base": 8453,
}


class Settings:
    def __init__(self):
        self.ENVIRONMENT = os.getenv("CHAINRISK_ENV", "development")

        # === Sanctions screening (Chainalysis) ===
        self.CHAINALYSIS_API_KEY = os.getenv("CHAINALYSIS_API_KEY", "")
        self.CHAINALYSIS_API_URL = os.getenv(
            "CHAINALYSIS_API_URL", "https://public.chainalysis.com/api/v1/address"
        )

        # === Behavioral analysis (Gemini) ===
        self.GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
        self.GEMINI_API_URL = os.getenv(
            "GEMINI_API_URL", "https://generativelanguage.googleapis.com/v1beta/models"
        )

        # === Cross-chain analytics ===
        self.CROSS_CHAIN_API_URL = os.getenv("CROSS_CHAIN_API_URL", "")
        self.CROSS_CHAIN_API_KEY = os.getenv("CROSS_CHAIN_API_KEY", "")

        # === Transaction history (Etherscan V2) ===
        self.ETHERSCAN_API_KEY = os.getenv("ETHERSCAN_API_KEY", "")
        self.ETHERSCAN_API_URL = os.getenv("ETHERSCAN_API_URL", "https://api.etherscan.io/v2/api")
        self.TRANSACTION_LIMIT = int(os.getenv("TRANSACTION_LIMIT", "100"))

        # === Scam report store ===
        self.SCAM_REPORTS_PATH = os.getenv("SCAM_REPORTS_PATH", "")

        # === Alerts ===
        self.ALERT_WEBHOOK_URL = os.getenv("ALERT_WEBHOOK_URL", "")

        # === Timeouts ===
        self.SOURCE_TIMEOUT_SECONDS = float(os.getenv("SOURCE_TIMEOUT_SECONDS", "15"))
        self.HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        # === Application ===
        self.DEFAULT_CHAIN = os.getenv("DEFAULT_CHAIN", "ethereum").strip().lower()
        self.CHAINRISK_HOST = os.getenv("CHAINRISK_HOST", "0.0.0.0")
        self.CHAINRISK_PORT = int(os.getenv("CHAINRISK_PORT", "8000"))

    @property
    def sanctions_enabled(self) -> bool:
        return bool(self.CHAINALYSIS_API_KEY)

    @property
    def behavioral_enabled(self) -> bool:
        return bool(self.GEMINI_API_KEY)

    @property
    def cross_chain_enabled(self) -> bool:
        return bool(self.CROSS_CHAIN_API_URL and self.CROSS_CHAIN_API_KEY)

    @property
    def history_enabled(self) -> bool:
        return bool(self.ETHERSCAN_API_KEY)

    @property
    def alerts_enabled(self) -> bool:
        return bool(self.ALERT_WEBHOOK_URL)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
