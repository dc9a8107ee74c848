"""Storage system status collector.

Exports the overall status of the storage system as a one-hot encoded gauge.
"""

import time
from collections.abc import Iterator

import structlog
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import NAMESPACE, EmptyResultError, ScrapeInstrumentation, add_one_hot

logger = structlog.get_logger(__name__)

NAME = "storage-systems"

STORAGE_SYSTEM_STATUSES = (
    "neverContacted",
    "offline",
    "optimal",
    "needsAttn",
    "removed",
    "newDevice",
    "lockDown",
)


def fetch(
    client: santricityapi.SantricityRestApiClient,
) -> santricityapi.types.StorageSystem:
    """Fetch the storage system record.

    Raises:
        FetchError: If the request fails.
        DecodeError: If the response cannot be decoded.
        EmptyResultError: If the record carries no id.
    """
    system = client.get_storage_system()
    if not system.id:
        msg = "No storage system returned"
        raise EmptyResultError(msg)
    return system


def _status_family() -> GaugeMetricFamily:
    return GaugeMetricFamily(
        f"{NAMESPACE}_storage_system_status",
        "Storage System status, 1=optimal 0=all other states",
        labels=["status"],
    )


class StorageSystemsCollector(Collector):
    """Exports the status of the target storage system."""

    def __init__(
        self,
        target: santricityapi.Target,
        instrumentation: ScrapeInstrumentation,
    ):
        self._client = santricityapi.SantricityRestApiClient(target)
        self._instrumentation = instrumentation
        self._logger = logger.bind(collector=NAME, target=target.name)

    def describe(self) -> list[Metric]:
        return [_status_family()]

    def collect(self) -> Iterator[Metric]:
        self._logger.debug("Collecting storage-systems metrics")
        start_time = time.time()
        try:
            system = fetch(self._client)
        except (
            santricityapi.FetchError,
            santricityapi.DecodeError,
            EmptyResultError,
        ) as exc:
            self._logger.error("Collection failed", error=str(exc))
            self._instrumentation.observe(NAME, True, start_time)
            return

        status = _status_family()
        add_one_hot(status, [], system.status, STORAGE_SYSTEM_STATUSES)
        self._instrumentation.observe(NAME, False, start_time)
        yield status
