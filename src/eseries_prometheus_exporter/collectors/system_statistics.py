"""Storage system performance statistics collector."""

import time
from collections.abc import Iterator

import structlog
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import ScrapeInstrumentation
from . import statistics

logger = structlog.get_logger(__name__)

NAME = "system-statistics"

# mirroring and full stripe writes are per controller only
CACHE_FIELDS: tuple[tuple[str, str], ...] = (
    ("cacheHitBytesPercent", "cache_hit_bytes_percent"),
    ("randomIosPercent", "random_ios_percent"),
)

FIELDS = statistics.IO_STATISTICS + statistics.CPU_STATISTICS + CACHE_FIELDS


class SystemStatisticsCollector(Collector):
    """Exports analysed performance statistics of the whole system."""

    def __init__(
        self,
        target: santricityapi.Target,
        instrumentation: ScrapeInstrumentation,
    ):
        self._client = santricityapi.SantricityRestApiClient(target)
        self._instrumentation = instrumentation
        self._logger = logger.bind(collector=NAME, target=target.name)

    def describe(self) -> list[Metric]:
        return list(statistics.new_families("system", "System", FIELDS, []).values())

    def collect(self) -> Iterator[Metric]:
        self._logger.debug("Collecting system-statistics metrics")
        start_time = time.time()
        try:
            record = self._client.get_analysed_system_statistics()
        except (santricityapi.FetchError, santricityapi.DecodeError) as exc:
            self._logger.error("Collection failed", error=str(exc))
            self._instrumentation.observe(NAME, True, start_time)
            return

        families = statistics.new_families("system", "System", FIELDS, [])
        statistics.add_record(families, [], record)

        self._instrumentation.observe(NAME, False, start_time)
        yield from statistics.non_empty(families)
