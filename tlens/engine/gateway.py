"""Remote data gateway: typed async client for the TruthLens backend.

Every call is a single stateless request/response (no retries here; widgets
decide when to ask again). Timeouts are per call: the free-text analysis
endpoint runs an AI pipeline and gets a much longer budget than lookups.
"""

from __future__ import annotations

from typing import Any, Final

import httpx
from loguru import logger

from tlens.engine.errors import (
    GatewayError,
    GatewayHTTPError,
    GatewayTimeout,
    GatewayUnavailable,
    SchemaError,
)
from tlens.engine.models import (
    AICacheStats,
    AIConfig,
    AIPerformanceMetrics,
    AIStatus,
    AnalysisResult,
    AnalyticsData,
    CustomQueryResponse,
    HealthStatus,
    MarketData,
    MarketHistory,
    OracleReading,
    OracleStatusData,
    TriggerResult,
    UserSettings,
)

DEFAULT_TIMEOUT: Final = 15.0
ANALYSIS_TIMEOUT: Final = 60.0
REFRESH_TIMEOUT: Final = 10.0

Json = dict[str, Any]


def _detail(response: httpx.Response) -> str | None:
    """Pull the server's error explanation (FastAPI uses {"detail": ...})."""
    try:
        body = response.json()
    except ValueError:
        return response.text or None

    if isinstance(body, dict) and (detail := body.get("detail")):
        return str(detail)

    return None


class RemoteDataGateway:
    def __init__(
        self,
        baseUrl: str,
        client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.baseUrl = baseUrl.rstrip("/")
        self.client = client or httpx.AsyncClient(
            base_url=self.baseUrl,
            timeout=DEFAULT_TIMEOUT,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    async def call(
        self,
        method: str,
        endpoint: str,
        *,
        json: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Any:
        """Run one request and return the decoded JSON body.

        Raises GatewayTimeout, GatewayUnavailable, GatewayHTTPError, or
        SchemaError (body isn't JSON)."""
        logger.debug("[gateway] {} {}{}", method, self.baseUrl, endpoint)

        try:
            response = await self.client.request(method, endpoint, json=json, timeout=timeout)
        except httpx.TimeoutException as e:
            raise GatewayTimeout(
                f"{method} {endpoint} timed out after {timeout:g}s", endpoint
            ) from e
        except httpx.TransportError as e:
            raise GatewayUnavailable(f"{method} {endpoint} failed: {e}", endpoint) from e

        if response.is_error:
            detail = _detail(response)
            raise GatewayHTTPError(
                f"{method} {endpoint} failed: HTTP {response.status_code}"
                + (f" ({detail})" if detail else ""),
                endpoint,
                status=response.status_code,
                detail=detail,
            )

        try:
            return response.json()
        except ValueError as e:
            raise SchemaError(f"{method} {endpoint} returned invalid JSON", endpoint) from e

    async def get(self, endpoint: str, timeout: float = DEFAULT_TIMEOUT) -> Any:
        return await self.call("GET", endpoint, timeout=timeout)

    async def post(self, endpoint: str, json: Any = None, timeout: float = DEFAULT_TIMEOUT) -> Any:
        return await self.call("POST", endpoint, json=json, timeout=timeout)

    # ------------------------------------------------------------------
    # Markets and analysis
    # ------------------------------------------------------------------

    async def getMarkets(self) -> list[MarketData]:
        rows = await self.get("/markets")
        if not isinstance(rows, list):
            raise SchemaError("/markets: expected a JSON list", "/markets")

        return [MarketData.fromJson(row) for row in rows]

    async def getOracleReading(self, marketId: str) -> OracleReading:
        return OracleReading.fromJson(await self.get(f"/oracle/{marketId}"))

    async def getAnalysis(self, marketId: str) -> AnalysisResult:
        return AnalysisResult.fromJson(await self.get(f"/analyze/{marketId}"))

    async def analyzeCustomQuestion(self, question: str) -> CustomQueryResponse:
        question = question.strip()
        if not question:
            raise ValueError("Question is empty")

        try:
            body = await self.post("/analyze", {"question": question}, timeout=ANALYSIS_TIMEOUT)
        except GatewayTimeout as e:
            raise GatewayTimeout(
                "Request timeout: The AI analysis is taking longer than expected.", e.endpoint
            ) from e

        return CustomQueryResponse.fromJson(body)

    async def triggerAnalysis(self) -> TriggerResult:
        return TriggerResult.fromJson(await self.post("/trigger-analysis"))

    async def getMarketHistory(self, marketId: str) -> MarketHistory:
        return MarketHistory.fromJson(await self.get(f"/markets/{marketId}/history"))

    # ------------------------------------------------------------------
    # Status, health, analytics
    # ------------------------------------------------------------------

    async def getStatus(self) -> OracleStatusData:
        return OracleStatusData.fromJson(await self.get("/status"))

    async def getHealth(self) -> HealthStatus:
        return HealthStatus.fromJson(await self.get("/health", timeout=REFRESH_TIMEOUT))

    async def getAnalytics(self) -> AnalyticsData:
        return AnalyticsData.fromJson(await self.get("/analytics", timeout=REFRESH_TIMEOUT))

    async def getAnalysisHistory(self) -> Json:
        return await self.get("/analytics/history")

    async def getBlockchainData(self) -> Json:
        """On-chain attestation records (opaque to us beyond hashes and scores)."""
        return await self.get("/analytics/blockchain")

    async def getMetrics(self) -> Json:
        return await self.get("/metrics")

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    async def getSettings(self) -> UserSettings:
        return UserSettings.fromJson(await self.get("/settings"))

    async def updateSettings(self, settings: UserSettings) -> Json:
        return await self.post("/settings", settings.toJson())

    async def generateApiKey(self) -> Json:
        return await self.post("/settings/api-key")

    # ------------------------------------------------------------------
    # AI subsystem
    # ------------------------------------------------------------------

    async def getAIStatus(self) -> AIStatus:
        return AIStatus.fromJson(await self.get("/ai/status"))

    async def getAIPerformance(self) -> AIPerformanceMetrics:
        return AIPerformanceMetrics.fromJson(await self.get("/ai/performance"))

    async def getAIConfig(self) -> AIConfig:
        return AIConfig.fromJson(await self.get("/ai/config"))

    async def getAICacheStats(self) -> AICacheStats:
        return AICacheStats.fromJson(await self.get("/ai/cache/stats"))

    async def clearAICache(self) -> Json:
        return await self.post("/ai/cache/clear")

    async def flushAIQueue(self) -> Json:
        return await self.post("/ai/queue/flush")


__all__ = [
    "RemoteDataGateway",
    "GatewayError",
    "GatewayHTTPError",
    "GatewayTimeout",
    "GatewayUnavailable",
    "SchemaError",
]
