"""Runtime configuration shared by the cli and the engine wiring.

Values are layered like: built-in defaults < .env.tlens < process environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from dotenv import dotenv_values
from loguru import logger

DEFAULT_BACKEND_URL: Final = "https://truthlens-backend-vj37.onrender.com"
DEFAULT_TESTNET_RPC: Final = "https://data-seed-prebsc-1-s1.binance.org:8545/"

TL_DEFAULT: Final = dict(
    BACKEND_URL=DEFAULT_BACKEND_URL,
    ORACLE_ADDRESS="",
    BSC_TESTNET_RPC=DEFAULT_TESTNET_RPC,
    TLENS_WALLET_RPC="",
    TLENS_CACHE_DIR="./cache-tlens",
    TLENS_LOGDIR="runlogs",
)


def loadConfig(envfile: str = ".env.tlens") -> dict[str, str]:
    return {**TL_DEFAULT, **dotenv_values(envfile), **os.environ}  # type: ignore


TL_CONFIG = loadConfig()


@dataclass(slots=True, frozen=True)
class Settings:
    backendUrl: str = DEFAULT_BACKEND_URL
    oracleAddress: str = ""
    testnetRpc: str = DEFAULT_TESTNET_RPC

    # JSON-RPC endpoint of the wallet node; empty means no wallet provider at all
    walletRpc: str = ""

    cacheDir: str = "./cache-tlens"
    logDir: str = "runlogs"

    @classmethod
    def fromConfig(cls, config: dict[str, str | None] | None = None) -> Settings:
        config = TL_CONFIG if config is None else {**TL_DEFAULT, **config}

        def val(key: str) -> str:
            # dotenv can hand back None for keys declared without a value
            return (config.get(key) or TL_DEFAULT[key]).strip()

        settings = cls(
            backendUrl=val("BACKEND_URL").rstrip("/"),
            oracleAddress=(config.get("ORACLE_ADDRESS") or "").strip(),
            testnetRpc=val("BSC_TESTNET_RPC"),
            walletRpc=(config.get("TLENS_WALLET_RPC") or "").strip(),
            cacheDir=val("TLENS_CACHE_DIR"),
            logDir=val("TLENS_LOGDIR"),
        )

        if settings.backendUrl == DEFAULT_BACKEND_URL:
            logger.debug("BACKEND_URL not configured, using {}", DEFAULT_BACKEND_URL)

        return settings
