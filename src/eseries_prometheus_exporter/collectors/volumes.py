"""Volume collector for E-Series storage systems.

Fetches all volumes and exports capacity, status, host mappings, thin
provisioning and offline flags labelled by volume and owning pool.

Like the storage pool collector, a failed fetch produces no metrics and no
collection error.
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

NAME = "volumes"

UNKNOWN_POOL = "unknown"


@dataclass
class VolumeMetric:
    """Normalized volume with parsed capacity in bytes."""

    label: str
    pool: str
    status: str
    raid_level: str
    volume_use: str
    capacity: float = 0.0
    mapped: bool = False
    mappings: int = 0
    thin_provisioned: bool = False
    offline: bool = False


def _transform_volume(raw: santricityapi.types.Volume) -> VolumeMetric:
    """Transform a raw volume into a VolumeMetric.

    The pool label is the raw volume group reference, or "unknown" when the
    volume has none. An unparsable size is treated as 0.
    """
    return VolumeMetric(
        label=raw.label,
        pool=raw.volume_group_ref or UNKNOWN_POOL,
        status=raw.status,
        raid_level=raw.raid_level,
        volume_use=raw.volume_use,
        capacity=parse_float(raw.total_size_in_bytes),
        mapped=raw.mapped,
        mappings=len(raw.list_of_mappings),
        thin_provisioned=raw.thin_provisioned,
        offline=raw.offline,
    )


def fetch(client: santricityapi.SantricityRestApiClient) -> list[VolumeMetric]:
    """Fetch volumes from the API.

    Raises:
        FetchError: If the request fails.
        DecodeError: If the response cannot be decoded.
    """
    return [_transform_volume(volume) for volume in client.get_volumes()]


def _families() -> dict[str, GaugeMetricFamily]:
    return {
        "capacity": GaugeMetricFamily(
            f"{NAMESPACE}_volume_capacity_bytes",
            "Total capacity of the volume in bytes",
            labels=["volume", "pool", "status", "raid_level", "type"],
        ),
        "status": GaugeMetricFamily(
            f"{NAMESPACE}_volume_status",
            "Status of the volume (1 for optimal, 0 otherwise)",
            labels=["volume", "pool", "status"],
        ),
        "mapped": GaugeMetricFamily(
            f"{NAMESPACE}_volume_mapped",
            "Whether the volume is mapped to a host (1) or not (0)",
            labels=["volume", "pool"],
        ),
        "mappings": GaugeMetricFamily(
            f"{NAMESPACE}_volume_mappings_total",
            "Number of host mappings for this volume",
            labels=["volume", "pool"],
        ),
        "thin_provisioned": GaugeMetricFamily(
            f"{NAMESPACE}_volume_thin_provisioned",
            "Whether the volume uses thin provisioning (1) or not (0)",
            labels=["volume", "pool"],
        ),
        "offline": GaugeMetricFamily(
            f"{NAMESPACE}_volume_offline",
            "Whether the volume is offline (1) or online (0)",
            labels=["volume", "pool"],
        ),
    }


def generate_metrics(volumes: list[VolumeMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from volume data.

    Args:
        volumes: List of volume metrics.

    Yields:
        Prometheus Metric objects.
    """
    families = _families()
    for volume in volumes:
        families["capacity"].add_metric(
            [
                volume.label,
                volume.pool,
                volume.status,
                volume.raid_level,
                volume.volume_use,
            ],
            volume.capacity,
        )
        families["status"].add_metric(
            [volume.label, volume.pool, volume.status],
            bool_value(volume.status == "optimal"),
        )
        families["mapped"].add_metric(
            [volume.label, volume.pool],
            bool_value(volume.mapped),
        )
        families["mappings"].add_metric([volume.label, volume.pool], volume.mappings)
        families["thin_provisioned"].add_metric(
            [volume.label, volume.pool],
            bool_value(volume.thin_provisioned),
        )
        families["offline"].add_metric(
            [volume.label, volume.pool],
            bool_value(volume.offline),
        )

    yield from families.values()


class VolumesCollector(Collector):
    """Exports capacity, mapping and health information of volumes."""

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
        self._logger.debug("Collecting volumes metrics")
        try:
            volumes = fetch(self._client)
        except (santricityapi.FetchError, santricityapi.DecodeError) as exc:
            self._logger.error("Collection failed", error=str(exc))
            return

        yield from generate_metrics(volumes)
