"""
Tagcache — Observability Monitoring

Timer-based monitor for cache backend calls, with SQLite persistence of
the recorded metrics and a JSON log formatter.
"""

import json
import logging
import time
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select

from .database import MetricsDatabase
from .db_models import MetricRecord

logger = logging.getLogger(__name__)


class Timer:
    """
    Handle returned by ObservabilityAdapter.create_timer().

    Measures from creation until stop(). Stopping twice records once.
    """

    def __init__(self, adapter: "ObservabilityAdapter", tags: dict[str, str]):
        self._adapter = adapter
        self.tags = dict(tags)
        self._start = time.perf_counter()
        self.elapsed_ms: float | None = None

    @property
    def stopped(self) -> bool:
        return self.elapsed_ms is not None

    def stop(self) -> float:
        """Stop the timer, record its duration and return it in milliseconds."""
        if self.elapsed_ms is None:
            self.elapsed_ms = (time.perf_counter() - self._start) * 1000
            self._adapter.histogram("cache.call.duration", self.elapsed_ms, tags=self.tags)
        return self.elapsed_ms


class ObservabilityAdapter:
    """
    Observability adapter with SQLite persistence.

    Provides:
    - Timers around cache backend calls
    - Metrics (counters, histograms) → SQLite
    - Structured events through logging
    """

    def __init__(
        self,
        enable_metrics: bool = True,
        metrics_db_path: str = "./data/metrics.db",
    ):
        """
        Args:
            enable_metrics: Persist timers and counters (off: only events are logged)
            metrics_db_path: SQLite file, created with its parent directory on first write
        """
        self.enable_metrics = enable_metrics
        self._db = MetricsDatabase(db_path=metrics_db_path)

    def create_timer(self, tags: dict[str, str]) -> Timer:
        """
        Start a timer for one backend call.

        Args:
            tags: Call tags, e.g. {"db": "TaggedCache", "operation": "get"}
        """
        return Timer(self, tags)

    def increment(
        self,
        metric: str,
        value: float = 1.0,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment a counter metric."""
        if not self.enable_metrics:
            return
        self._store_metric(f"tagcache.{metric}", value, tags or {})

    def histogram(
        self,
        metric: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a histogram metric (latencies, sizes)."""
        if not self.enable_metrics:
            return
        self._store_metric(f"tagcache.{metric}", value, tags or {})

    def event(self, name: str, payload: dict[str, Any]) -> None:
        """
        Record an event.

        Args:
            name: Event name
            payload: Event data
        """
        logger.info(
            f"Event: {name}",
            extra={
                "event_name": name,
                "event_payload": payload,
            },
        )
        self.increment(name, tags={k: str(v) for k, v in payload.items()})

    def get_metrics(
        self,
        metric_name: str | None = None,
        limit: int = 1000,
    ) -> list[dict[str, Any]]:
        """
        Get metrics from database, newest first.

        Args:
            metric_name: Only rows with this full name, e.g. "tagcache.cache.call.duration"
            limit: Row cap
        """
        with self._db.get_session() as session:
            query = select(MetricRecord).order_by(MetricRecord.recorded_at.desc(), MetricRecord.id.desc()).limit(limit)

            if metric_name:
                query = query.where(MetricRecord.name == metric_name)

            records = session.execute(query).scalars().all()
            return [record.to_dict() for record in records]

    def clear_metrics(self) -> None:
        """Delete every stored metric row."""
        with self._db.get_session() as session:
            session.execute(delete(MetricRecord))
            session.commit()

    def close(self) -> None:
        """Dispose of the metrics engine."""
        self._db.close()

    def _store_metric(
        self,
        name: str,
        value: float,
        tags: dict[str, str],
    ) -> None:
        """Insert one metric row; failures are logged only."""
        try:
            record = MetricRecord.from_sample(
                name=name,
                value=value,
                tags=tags,
                at=time.time(),
            )

            with self._db.get_session() as session:
                session.add(record)
                session.commit()

        except Exception as e:
            # Metrics must never break a cache call
            logger.error(f"Failed to store metric {name}: {e}", extra={"metric": name, "error": str(e)})


class JSONFormatter(logging.Formatter):
    """Renders each record as one JSON object, including its extra= fields."""

    _RESERVED = frozenset(
        (
            "args",
            "msg",
            "levelname",
            "levelno",
            "pathname",
            "filename",
            "module",
            "exc_info",
            "exc_text",
            "stack_info",
            "lineno",
            "funcName",
            "created",
            "msecs",
            "relativeCreated",
            "thread",
            "threadName",
            "processName",
            "process",
            "taskName",
            "name",
            "message",
        )
    )

    def __init__(self, environment: str | None = None):
        super().__init__()
        self.environment = environment

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if self.environment:
            log_data["environment"] = self.environment

        # extra= values land on the record as attributes
        for key, value in record.__dict__.items():
            if key not in log_data and not key.startswith("_") and key not in self._RESERVED:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str | None = None, environment: str | None = None) -> logging.Logger:
    """
    Install the JSON formatter on the package logger.

    Level and environment default to TAGCACHE_LOG_LEVEL and TAGCACHE_ENVIRONMENT.
    """
    if level is None or environment is None:
        from ..config import get_config

        config = get_config()
        level = level or config.log_level
        environment = environment or config.environment

    package_logger = logging.getLogger("tagcache")
    package_logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter(environment=environment))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)

    return package_logger


# Process-wide adapter, built lazily from configuration
_observability_adapter: ObservabilityAdapter | None = None


def get_observability() -> ObservabilityAdapter:
    """Shared adapter configured from TAGCACHE_ENABLE_METRICS / TAGCACHE_METRICS_DB_PATH."""
    global _observability_adapter

    if _observability_adapter is None:
        from ..config import get_config

        config = get_config().observability
        _observability_adapter = ObservabilityAdapter(
            enable_metrics=config.enable_metrics,
            metrics_db_path=config.metrics_db_path,
        )

    return _observability_adapter


def initialize_observability(
    enable_metrics: bool = True,
    metrics_db_path: str = "./data/metrics.db",
) -> ObservabilityAdapter:
    """Replace the shared adapter with one built from explicit settings."""
    global _observability_adapter

    _observability_adapter = ObservabilityAdapter(
        enable_metrics=enable_metrics,
        metrics_db_path=metrics_db_path,
    )

    return _observability_adapter
