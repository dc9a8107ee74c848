"""Storage pool collector for E-Series storage systems.

Fetches disk pools and volume groups and exports their capacity, usage,
RAID status, state and offline flag.

Unlike the status collectors this collector reports nothing at all when the
pools cannot be fetched or decoded, including no collection error.
"""

from collections.abc import Iterator
from dataclasses import dataclass

import structlog
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import NAMESPACE, ScrapeInstrumentation, bool_value, parse_float

logger = structlog.get_logger(__name__)

NAME = "storage-pools"


@dataclass
class PoolMetric:
    """Normalized storage pool with parsed capacities in bytes."""

    label: str
    raid_level: str
    raid_status: str
    state: str
    pool_type: str
    capacity: float = 0.0
    used: float = 0.0
    free: float = 0.0
    offline: bool = False

    @property
    def utilization_ratio(self) -> float:
        """Used over total capacity, 0 when the capacity is not positive."""
        if self.capacity <= 0:
            return 0.0
        return self.used / self.capacity


def _transform_pool(raw: santricityapi.types.StoragePool) -> PoolMetric:
    """Transform a raw storage pool into a PoolMetric.

    Capacity strings that fail to parse are treated as 0.
    """
    return PoolMetric(
        label=raw.label,
        raid_level=raw.raid_level,
        raid_status=raw.raid_status,
        state=raw.state,
        pool_type="disk_pool" if raw.disk_pool else "volume_group",
        capacity=parse_float(raw.total_raided_space),
        used=parse_float(raw.used_space),
        free=parse_float(raw.free_space),
        offline=raw.offline,
    )


def fetch(client: santricityapi.SantricityRestApiClient) -> list[PoolMetric]:
    """Fetch storage pools from the API.

    Raises:
        FetchError: If the request fails.
        DecodeError: If the response cannot be decoded.
    """
    return [_transform_pool(pool) for pool in client.get_storage_pools()]


def _families() -> dict[str, GaugeMetricFamily]:
    return {
        "capacity": GaugeMetricFamily(
            f"{NAMESPACE}_pool_capacity_bytes",
            "Total capacity of the storage pool in bytes",
            labels=["pool", "raid_level", "status", "type"],
        ),
        "used": GaugeMetricFamily(
            f"{NAMESPACE}_pool_used_bytes",
            "Used capacity of the storage pool in bytes",
            labels=["pool", "raid_level", "status"],
        ),
        "free": GaugeMetricFamily(
            f"{NAMESPACE}_pool_free_bytes",
            "Free capacity of the storage pool in bytes",
            labels=["pool", "raid_level", "status"],
        ),
        "utilization": GaugeMetricFamily(
            f"{NAMESPACE}_pool_utilization_ratio",
            "Utilization ratio of the storage pool (0-1)",
            labels=["pool", "raid_level"],
        ),
        "status": GaugeMetricFamily(
            f"{NAMESPACE}_pool_status",
            "Status of the storage pool (1 for optimal, 0 otherwise)",
            labels=["pool", "raid_level", "status"],
        ),
        "state": GaugeMetricFamily(
            f"{NAMESPACE}_pool_state",
            "Current state of the pool (1 for complete, 0 otherwise)",
            labels=["pool", "raid_level", "state"],
        ),
        "offline": GaugeMetricFamily(
            f"{NAMESPACE}_pool_offline",
            "Whether the pool is offline (1) or online (0)",
            labels=["pool", "raid_level"],
        ),
    }


def generate_metrics(pools: list[PoolMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from storage pool data.

    Args:
        pools: List of pool metrics.

    Yields:
        Prometheus Metric objects.
    """
    families = _families()
    for pool in pools:
        families["capacity"].add_metric(
            [pool.label, pool.raid_level, pool.raid_status, pool.pool_type],
            pool.capacity,
        )
        families["used"].add_metric(
            [pool.label, pool.raid_level, pool.raid_status],
            pool.used,
        )
        families["free"].add_metric(
            [pool.label, pool.raid_level, pool.raid_status],
            pool.free,
        )
        families["utilization"].add_metric(
            [pool.label, pool.raid_level],
            pool.utilization_ratio,
        )
        families["status"].add_metric(
            [pool.label, pool.raid_level, pool.raid_status],
            bool_value(pool.raid_status == "optimal"),
        )
        families["state"].add_metric(
            [pool.label, pool.raid_level, pool.state],
            bool_value(pool.state == "complete"),
        )
        families["offline"].add_metric(
            [pool.label, pool.raid_level],
            bool_value(pool.offline),
        )

    yield from families.values()


class StoragePoolsCollector(Collector):
    """Exports capacity and health of storage pools and volume groups."""

    def __init__(
        self,
        target: santricityapi.Target,
        instrumentation: ScrapeInstrumentation,  # noqa: ARG002
    ):
        # Failures of this collector are not reported as collection errors.
        self._client = santricityapi.SantricityRestApiClient(target)
        self._logger = logger.bind(collector=NAME, target=target.name)

    def describe(self) -> list[Metric]:
        return list(_families().values())

    def collect(self) -> Iterator[Metric]:
        self._logger.debug("Collecting storage-pools metrics")
        try:
            pools = fetch(self._client)
        except (santricityapi.FetchError, santricityapi.DecodeError) as exc:
            self._logger.error("Collection failed", error=str(exc))
            return

        yield from generate_metrics(pools)
