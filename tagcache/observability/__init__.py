"""
Tagcache — Observability Module

Monitor implementation for timing cache backend calls, plus structured
logging helpers.

Usage:
    from tagcache.observability import get_observability

    obs = get_observability()
    timer = obs.create_timer({"db": "TaggedCache", "operation": "get"})
    ...
    timer.stop()
"""

from .monitoring import (
    JSONFormatter,
    ObservabilityAdapter,
    Timer,
    get_observability,
    initialize_observability,
    setup_logging,
)

__all__ = [
    "ObservabilityAdapter",
    "Timer",
    "JSONFormatter",
    "get_observability",
    "initialize_observability",
    "setup_logging",
]
