"""Helpers shared by the analysed statistics collectors.

Each statistics collector exports one gauge per numeric field of the
analysed statistics records. The fields and their metric name suffixes are
listed here.
"""

from collections.abc import Iterable, Iterator, Sequence

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

from .. import santricityapi
from ..metrics import NAMESPACE

# (API field, metric name suffix); response times are in milliseconds and
# throughputs in megabytes per second.
IO_STATISTICS: tuple[tuple[str, str], ...] = (
    ("averageReadOpSize", "average_read_op_size_bytes"),
    ("averageWriteOpSize", "average_write_op_size_bytes"),
    ("combinedIOps", "combined_iops"),
    ("combinedResponseTime", "combined_response_time_milliseconds"),
    ("combinedThroughput", "combined_throughput_mb_per_second"),
    ("otherIOps", "other_iops"),
    ("readIOps", "read_iops"),
    ("readOps", "read_ops"),
    ("readPhysicalIOps", "read_physical_iops"),
    ("readResponseTime", "read_response_time_milliseconds"),
    ("readThroughput", "read_throughput_mb_per_second"),
    ("writeIOps", "write_iops"),
    ("writeOps", "write_ops"),
    ("writePhysicalIOps", "write_physical_iops"),
    ("writeResponseTime", "write_response_time_milliseconds"),
    ("writeThroughput", "write_throughput_mb_per_second"),
)

CPU_STATISTICS: tuple[tuple[str, str], ...] = (
    ("maxCpuUtilization", "max_cpu_utilization_percent"),
    ("cpuAvgUtilization", "cpu_avg_utilization_percent"),
)

CACHE_STATISTICS: tuple[tuple[str, str], ...] = (
    ("cacheHitBytesPercent", "cache_hit_bytes_percent"),
    ("randomIosPercent", "random_ios_percent"),
    ("mirrorBytesPercent", "mirror_bytes_percent"),
    ("fullStripeWritesBytesPercent", "full_stripe_writes_bytes_percent"),
)


def new_families(
    subsystem: str,
    kind: str,
    fields: Iterable[tuple[str, str]],
    labels: Sequence[str],
) -> dict[str, GaugeMetricFamily]:
    """Create one gauge family per statistic field, keyed by API field name.

    Args:
        subsystem: Metric subsystem (e.g., "controller").
        kind: Human readable entity kind used in the help text.
        fields: Pairs of API field name and metric name suffix.
        labels: Label names identifying the entity.
    """
    return {
        field: GaugeMetricFamily(
            f"{NAMESPACE}_{subsystem}_{suffix}",
            f"{kind} statistic {field}",
            labels=list(labels),
        )
        for field, suffix in fields
    }


def add_record(
    families: dict[str, GaugeMetricFamily],
    label_values: Sequence[str],
    record: santricityapi.types.StatisticsRecord,
) -> None:
    """Add one sample per statistic present in the record.

    Fields missing from the record or holding non-numeric values are
    skipped.
    """
    for field, family in families.items():
        value = record.value(field)
        if value is not None:
            family.add_metric(list(label_values), value)


def non_empty(families: dict[str, GaugeMetricFamily]) -> Iterator[Metric]:
    """Yield only the families that received samples."""
    for family in families.values():
        if family.samples:
            yield family
