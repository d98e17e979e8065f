"""Typed backend payloads.

Each endpoint gets a frozen dataclass with explicit optional fields and
defaults. fromJson() raises SchemaError when a required field is missing
or has the wrong type; callers show that as a widget error.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Final, Literal

from tlens.engine.errors import SchemaError

REQUIRED: Final = object()

Json = dict[str, Any]


def _obj(payload: Any, where: str) -> Json:
    if not isinstance(payload, dict):
        raise SchemaError(f"{where}: expected JSON object, got {type(payload).__name__}")

    return payload


def _missing(key: str, where: str) -> SchemaError:
    return SchemaError(f"{where}: missing required field '{key}'")


def _num(payload: Json, key: str, default: Any = REQUIRED, where: str = "") -> float:
    val = payload.get(key)
    if val is None:
        if default is REQUIRED:
            raise _missing(key, where)

        return default

    # bool is an int subclass, but 'true' is never a valid score
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise SchemaError(f"{where}: field '{key}' must be a number, got {val!r}")

    return float(val)


def _int(payload: Json, key: str, default: Any = REQUIRED, where: str = "") -> int:
    val = _num(payload, key, default, where)
    return val if val is None else int(val)  # type: ignore


def _str(payload: Json, key: str, default: Any = REQUIRED, where: str = "") -> str:
    val = payload.get(key)
    if val is None:
        if default is REQUIRED:
            raise _missing(key, where)

        return default

    if not isinstance(val, str):
        raise SchemaError(f"{where}: field '{key}' must be a string, got {val!r}")

    return val


def _bool(payload: Json, key: str, default: Any = REQUIRED, where: str = "") -> bool:
    val = payload.get(key)
    if val is None:
        if default is REQUIRED:
            raise _missing(key, where)

        return default

    if not isinstance(val, bool):
        raise SchemaError(f"{where}: field '{key}' must be a boolean, got {val!r}")

    return val


def _list(payload: Json, key: str, where: str = "") -> list[Any]:
    val = payload.get(key)
    if val is None:
        return []

    if not isinstance(val, list):
        raise SchemaError(f"{where}: field '{key}' must be a list, got {val!r}")

    return val


def _nums(payload: Json, key: str, where: str = "") -> list[float]:
    vals = _list(payload, key, where)
    return [_num({key: v}, key, where=f"{where}.{key}[{i}]") for i, v in enumerate(vals)]


def _dict(payload: Json, key: str, where: str = "") -> Json:
    val = payload.get(key)
    if val is None:
        return {}

    return _obj(val, f"{where}.{key}")


# ── markets ──


@dataclass(slots=True, frozen=True)
class MarketData:
    market_id: str
    question: str
    current_price: float
    name: str = ""
    price_24h: list[float] = field(default_factory=list)
    volume_24h: list[float] = field(default_factory=list)
    market_cap: float = 0.0
    change_24h: float = 0.0

    @classmethod
    def fromJson(cls, payload: Any) -> MarketData:
        p = _obj(payload, "market")
        return cls(
            market_id=_str(p, "market_id", where="market"),
            question=_str(p, "question", where="market"),
            current_price=_num(p, "current_price", where="market"),
            name=_str(p, "name", "", where="market"),
            price_24h=_nums(p, "price_24h", "market"),
            volume_24h=_nums(p, "volume_24h", "market"),
            market_cap=_num(p, "market_cap", 0.0, "market"),
            change_24h=_num(p, "change_24h", 0.0, "market"),
        )

    @property
    def title(self) -> str:
        return self.name or self.question


@dataclass(slots=True, frozen=True)
class OracleReading:
    market_id: str
    cred_score: float
    risk_index: float
    timestamp: float
    meta_uri: str = ""
    signer: str = ""

    @classmethod
    def fromJson(cls, payload: Any) -> OracleReading:
        p = _obj(payload, "oracle")
        return cls(
            market_id=_str(p, "market_id", where="oracle"),
            cred_score=_num(p, "cred_score", where="oracle"),
            risk_index=_num(p, "risk_index", where="oracle"),
            timestamp=_num(p, "timestamp", where="oracle"),
            meta_uri=_str(p, "meta_uri", "", "oracle"),
            signer=_str(p, "signer", "", "oracle"),
        )


@dataclass(slots=True, frozen=True)
class AnalysisResult:
    market_id: str
    credibility_score: float
    risk_index: float
    confidence: float
    links_analyzed: int = 0
    metadata: Json = field(default_factory=dict)
    tx_hash: str | None = None
    ipfs_hash: str | None = None

    @classmethod
    def fromJson(cls, payload: Any) -> AnalysisResult:
        p = _obj(payload, "analysis")
        return cls(
            market_id=_str(p, "market_id", where="analysis"),
            credibility_score=_num(p, "credibility_score", where="analysis"),
            risk_index=_num(p, "risk_index", where="analysis"),
            confidence=_num(p, "confidence", where="analysis"),
            links_analyzed=_int(p, "links_analyzed", 0, "analysis"),
            metadata=_dict(p, "metadata", "analysis"),
            tx_hash=_str(p, "tx_hash", None, "analysis"),
            ipfs_hash=_str(p, "ipfs_hash", None, "analysis"),
        )


@dataclass(slots=True, frozen=True)
class CustomQueryResponse:
    answer: str
    confidence: float = 0.0
    sources: list[str] = field(default_factory=list)
    metadata: Json = field(default_factory=dict)

    @classmethod
    def fromJson(cls, payload: Any) -> CustomQueryResponse:
        p = _obj(payload, "query")
        return cls(
            answer=_str(p, "answer", where="query"),
            confidence=_num(p, "confidence", 0.0, "query"),
            sources=[str(s) for s in _list(p, "sources", "query")],
            metadata=_dict(p, "metadata", "query"),
        )


@dataclass(slots=True, frozen=True)
class TriggerResult:
    status: str
    message: str = ""

    @classmethod
    def fromJson(cls, payload: Any) -> TriggerResult:
        p = _obj(payload, "trigger")
        return cls(status=_str(p, "status", where="trigger"), message=_str(p, "message", "", "trigger"))


@dataclass(slots=True, frozen=True)
class PricePoint:
    timestamp: float
    price: float
    volume: float = 0.0


@dataclass(slots=True, frozen=True)
class AnalysisPoint:
    timestamp: float
    credibility: float
    risk: float
    confidence: float


@dataclass(slots=True, frozen=True)
class MarketHistory:
    market_id: str
    price_history: list[PricePoint] = field(default_factory=list)
    analysis_history: list[AnalysisPoint] = field(default_factory=list)

    @classmethod
    def fromJson(cls, payload: Any) -> MarketHistory:
        p = _obj(payload, "history")
        where = "history"
        return cls(
            market_id=_str(p, "market_id", where=where),
            price_history=[
                PricePoint(
                    timestamp=_num(pt, "timestamp", where=where),
                    price=_num(pt, "price", where=where),
                    volume=_num(pt, "volume", 0.0, where),
                )
                for pt in map(lambda x: _obj(x, where), _list(p, "price_history", where))
            ],
            analysis_history=[
                AnalysisPoint(
                    timestamp=_num(pt, "timestamp", where=where),
                    credibility=_num(pt, "credibility", where=where),
                    risk=_num(pt, "risk", where=where),
                    confidence=_num(pt, "confidence", where=where),
                )
                for pt in map(lambda x: _obj(x, where), _list(p, "analysis_history", where))
            ],
        )


# ── status / health ──


@dataclass(slots=True, frozen=True)
class OracleStatusData:
    total_markets: int
    blockchain_connected: bool
    active_analyses: int = 0
    total_attestations: int = 0
    last_update: float = 0.0

    @classmethod
    def fromJson(cls, payload: Any) -> OracleStatusData:
        p = _obj(payload, "status")
        return cls(
            total_markets=_int(p, "total_markets", where="status"),
            blockchain_connected=_bool(p, "blockchain_connected", where="status"),
            active_analyses=_int(p, "active_analyses", 0, "status"),
            total_attestations=_int(p, "total_attestations", 0, "status"),
            last_update=_num(p, "last_update", 0.0, "status"),
        )


ServiceState = Literal["online", "offline", "degraded"]
HealthState = Literal["healthy", "unhealthy", "loading", "error"]


@dataclass(slots=True, frozen=True)
class ServiceStates:
    api: str = "offline"
    markets: str = "offline"
    oracle: str = "offline"
    analysis: str = "offline"

    @classmethod
    def fromJson(cls, payload: Any) -> ServiceStates:
        p = _obj(payload, "health.services")
        return cls(**{k: _str(p, k, "offline", "health.services") for k in ("api", "markets", "oracle", "analysis")})


@dataclass(slots=True, frozen=True)
class HealthMetrics:
    total_markets: int = 0
    active_analyses: int = 0
    blockchain_connected: bool = False
    last_update: float = 0.0


@dataclass(slots=True, frozen=True)
class HealthStatus:
    status: str
    timestamp: float = 0.0
    services: ServiceStates = field(default_factory=ServiceStates)
    metrics: HealthMetrics | None = None
    error: str | None = None

    @classmethod
    def fromJson(cls, payload: Any) -> HealthStatus:
        p = _obj(payload, "health")
        where = "health"

        metrics = None
        if (m := p.get("metrics")) is not None:
            m = _obj(m, "health.metrics")
            metrics = HealthMetrics(
                total_markets=_int(m, "total_markets", 0, where),
                active_analyses=_int(m, "active_analyses", 0, where),
                blockchain_connected=_bool(m, "blockchain_connected", False, where),
                last_update=_num(m, "last_update", 0.0, where),
            )

        return cls(
            status=_str(p, "status", where=where),
            timestamp=_num(p, "timestamp", 0.0, where),
            services=ServiceStates.fromJson(p["services"]) if p.get("services") is not None else ServiceStates(),
            metrics=metrics,
            error=_str(p, "error", None, where),
        )

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


# ── analytics ──


@dataclass(slots=True, frozen=True)
class PerformanceMetrics:
    response_time: float = 0.0
    uptime: float = 0.0
    error_rate: float = 0.0
    throughput: float = 0.0


@dataclass(slots=True, frozen=True)
class TimeSeriesPoint:
    timestamp: float
    markets_analyzed: int = 0
    confidence: float = 0.0
    success_rate: float = 0.0


@dataclass(slots=True, frozen=True)
class AnalyticsData:
    markets_analyzed: int
    success_rate: float
    avg_confidence: float
    total_attestations: int = 0
    performance_metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    time_series: list[TimeSeriesPoint] = field(default_factory=list)

    @classmethod
    def fromJson(cls, payload: Any) -> AnalyticsData:
        p = _obj(payload, "analytics")
        where = "analytics"
        perf = _dict(p, "performance_metrics", where)
        return cls(
            markets_analyzed=_int(p, "markets_analyzed", where=where),
            success_rate=_num(p, "success_rate", where=where),
            avg_confidence=_num(p, "avg_confidence", where=where),
            total_attestations=_int(p, "total_attestations", 0, where),
            performance_metrics=PerformanceMetrics(
                **{k: _num(perf, k, 0.0, where) for k in ("response_time", "uptime", "error_rate", "throughput")}
            ),
            time_series=[
                TimeSeriesPoint(
                    timestamp=_num(pt, "timestamp", where=where),
                    markets_analyzed=_int(pt, "markets_analyzed", 0, where),
                    confidence=_num(pt, "confidence", 0.0, where),
                    success_rate=_num(pt, "success_rate", 0.0, where),
                )
                for pt in map(lambda x: _obj(x, where), _list(p, "time_series", where))
            ],
        )


# ── AI subsystem ──

_AI_PERF_FIELDS: Final = (
    "response_time_avg",
    "cache_hit_rate",
    "total_requests",
    "error_rate",
    "success_rate",
    "queue_size",
    "processing_speed",
)


@dataclass(slots=True, frozen=True)
class AIPerformanceMetrics:
    response_time_avg: float = 0.0
    cache_hit_rate: float = 0.0
    total_requests: float = 0.0
    error_rate: float = 0.0
    success_rate: float = 0.0
    queue_size: float = 0.0
    processing_speed: float = 0.0

    @classmethod
    def fromJson(cls, payload: Any) -> AIPerformanceMetrics:
        p = _obj(payload, "ai.performance")
        return cls(**{k: _num(p, k, 0.0, "ai.performance") for k in _AI_PERF_FIELDS})


@dataclass(slots=True, frozen=True)
class QueueStatus:
    pending_items: int = 0
    processing: bool = False
    average_processing_time: float = 0.0


@dataclass(slots=True, frozen=True)
class AIStatus:
    success: bool
    status: str
    enhanced_features_enabled: bool = False
    message: str = ""
    queue_status: QueueStatus | None = None
    performance: AIPerformanceMetrics | None = None

    @classmethod
    def fromJson(cls, payload: Any) -> AIStatus:
        p = _obj(payload, "ai.status")
        where = "ai.status"

        queue = None
        if (q := p.get("queue_status")) is not None:
            q = _obj(q, "ai.status.queue_status")
            queue = QueueStatus(
                pending_items=_int(q, "pending_items", 0, where),
                processing=_bool(q, "processing", False, where),
                average_processing_time=_num(q, "average_processing_time", 0.0, where),
            )

        perf = None
        if p.get("performance") is not None:
            perf = AIPerformanceMetrics.fromJson(p["performance"])

        return cls(
            success=_bool(p, "success", where=where),
            status=_str(p, "status", where=where),
            enhanced_features_enabled=_bool(p, "enhanced_features_enabled", False, where),
            message=_str(p, "message", "", where),
            queue_status=queue,
            performance=perf,
        )


@dataclass(slots=True, frozen=True)
class AICacheStats:
    hit_rate: float = 0.0
    miss_rate: float = 0.0
    total_requests: int = 0
    cache_size: int = 0
    memory_usage: str = ""

    @classmethod
    def fromJson(cls, payload: Any) -> AICacheStats:
        p = _obj(payload, "ai.cache")
        where = "ai.cache"
        return cls(
            hit_rate=_num(p, "hit_rate", 0.0, where),
            miss_rate=_num(p, "miss_rate", 0.0, where),
            total_requests=_int(p, "total_requests", 0, where),
            cache_size=_int(p, "cache_size", 0, where),
            memory_usage=_str(p, "memory_usage", "", where),
        )


@dataclass(slots=True, frozen=True)
class AIConfig:
    enhanced_features_enabled: bool
    config: Json = field(default_factory=dict)

    @classmethod
    def fromJson(cls, payload: Any) -> AIConfig:
        p = _obj(payload, "ai.config")
        return cls(
            enhanced_features_enabled=_bool(p, "enhanced_features_enabled", where="ai.config"),
            config=_dict(p, "config", "ai.config"),
        )

    @property
    def mode(self) -> str | None:
        return self.config.get("mode")


# ── user settings ──


@dataclass(slots=True, frozen=True)
class NotificationSettings:
    marketUpdates: bool = True
    oracleAlerts: bool = True
    riskAlerts: bool = True


@dataclass(slots=True, frozen=True)
class PrivacySettings:
    shareAnalytics: bool = True
    publicAnalysis: bool = False


@dataclass(slots=True, frozen=True)
class DisplaySettings:
    theme: str = "system"
    currency: str = "USD"


@dataclass(slots=True, frozen=True)
class UserSettings:
    """Settings page state. Sections missing from the backend keep their defaults."""

    notifications: NotificationSettings = field(default_factory=NotificationSettings)
    privacy: PrivacySettings = field(default_factory=PrivacySettings)
    display: DisplaySettings = field(default_factory=DisplaySettings)

    @classmethod
    def fromJson(cls, payload: Any) -> UserSettings:
        p = _obj(payload, "settings")
        n = _dict(p, "notifications", "settings")
        pr = _dict(p, "privacy", "settings")
        d = _dict(p, "display", "settings")
        where = "settings"

        return cls(
            notifications=NotificationSettings(
                marketUpdates=_bool(n, "marketUpdates", True, where),
                oracleAlerts=_bool(n, "oracleAlerts", True, where),
                riskAlerts=_bool(n, "riskAlerts", True, where),
            ),
            privacy=PrivacySettings(
                shareAnalytics=_bool(pr, "shareAnalytics", True, where),
                publicAnalysis=_bool(pr, "publicAnalysis", False, where),
            ),
            display=DisplaySettings(
                theme=_str(d, "theme", "system", where),
                currency=_str(d, "currency", "USD", where),
            ),
        )

    def toJson(self) -> Json:
        return asdict(self)
