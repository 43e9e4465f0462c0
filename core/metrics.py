"""
core/metrics.py -- Fileserver hit counter.

Each application instance owns its own CollectorRegistry, so two apps in one
process (e.g. test clients) never share a count. The Gauge is thread-safe;
inc() and set() take prometheus_client's internal lock.
"""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Gauge

_HITS_METRIC = "chirpy_fileserver_hits"


class HitCounter:
    """Counts requests served under /app/."""

    def __init__(self) -> None:
        self.registry = CollectorRegistry()
        self._hits = Gauge(_HITS_METRIC, "Requests served by the static fileserver", registry=self.registry)

    def increment(self) -> None:
        self._hits.inc()

    def reset(self) -> None:
        self._hits.set(0)

    @property
    def value(self) -> int:
        return int(self.registry.get_sample_value(_HITS_METRIC) or 0)
