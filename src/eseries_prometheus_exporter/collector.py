"""Collector registry and per-scrape orchestration.

The registry is a static table of collector names, their default state and
the factory building them for a target. For every scrape an EseriesCollector
is built from the table, holding fresh collector instances that share one
ScrapeInstrumentation.
"""

from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass
from typing import TypeAlias

import structlog
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from . import santricityapi
from .collectors import (
    controller_statistics,
    drive_statistics,
    drives,
    storage_pools,
    storage_systems,
    system_statistics,
    volumes,
)
from .metrics import ScrapeInstrumentation

logger = structlog.get_logger(__name__)

CollectorFactory: TypeAlias = Callable[
    [santricityapi.Target, ScrapeInstrumentation],
    Collector,
]


@dataclass(frozen=True)
class CollectorEntry:
    """Registry entry describing how to build one collector."""

    name: str
    default_enabled: bool
    factory: CollectorFactory


COLLECTORS: tuple[CollectorEntry, ...] = (
    CollectorEntry(drives.NAME, True, drives.DrivesCollector),
    CollectorEntry(storage_systems.NAME, True, storage_systems.StorageSystemsCollector),
    CollectorEntry(storage_pools.NAME, False, storage_pools.StoragePoolsCollector),
    CollectorEntry(volumes.NAME, False, volumes.VolumesCollector),
    CollectorEntry(
        controller_statistics.NAME,
        True,
        controller_statistics.ControllerStatisticsCollector,
    ),
    CollectorEntry(
        drive_statistics.NAME,
        True,
        drive_statistics.DriveStatisticsCollector,
    ),
    CollectorEntry(
        system_statistics.NAME,
        True,
        system_statistics.SystemStatisticsCollector,
    ),
)


def enabled_entries(
    requested: Sequence[str] | None,
    entries: Sequence[CollectorEntry] = COLLECTORS,
) -> list[CollectorEntry]:
    """Select the registry entries to run for a scrape.

    Without requested names every default-enabled entry is selected.
    Otherwise an entry is selected iff its name matches a requested name
    case-insensitively, regardless of its default state. Unknown requested
    names are ignored. When several entries share a name the last one wins.

    Args:
        requested: Collector names configured for the target, or None.
        entries: Registry table to select from.

    Returns:
        Selected entries, one per name, in registry order.
    """
    by_name: dict[str, CollectorEntry] = {}
    for entry in entries:
        by_name.pop(entry.name, None)
        by_name[entry.name] = entry

    if not requested:
        return [entry for entry in by_name.values() if entry.default_enabled]

    wanted = {name.casefold() for name in requested}
    selected = [entry for entry in by_name.values() if entry.name.casefold() in wanted]

    unknown = wanted - {entry.name.casefold() for entry in selected}
    if unknown:
        logger.debug("Ignoring unknown collectors", collectors=sorted(unknown))
    return selected


def resolve_enabled(
    requested: Sequence[str] | None,
    target: santricityapi.Target,
    instrumentation: ScrapeInstrumentation,
    entries: Sequence[CollectorEntry] = COLLECTORS,
) -> dict[str, Collector]:
    """Build fresh instances of the collectors selected for a target.

    Each selected factory is invoked exactly once.

    Returns:
        Mapping of collector name to collector instance.
    """
    return {
        entry.name: entry.factory(target, instrumentation)
        for entry in enabled_entries(requested, entries)
    }


class EseriesCollector(Collector):
    """Prometheus collector running the enabled collectors of one target.

    Created per scrape and registered in a per-scrape CollectorRegistry.
    Collectors run sequentially in registry order; their error and duration
    observations are exported as one family each after all domain metrics.
    """

    def __init__(
        self,
        target: santricityapi.Target,
        entries: Sequence[CollectorEntry] = COLLECTORS,
    ):
        """Initialize the collector set for a target.

        Args:
            target: Resolved backend descriptor of this scrape.
            entries: Registry table to resolve collectors from.
        """
        self.target = target
        self._instrumentation = ScrapeInstrumentation()
        self.collectors = resolve_enabled(
            target.collectors,
            target,
            self._instrumentation,
            entries,
        )
        logger.debug(
            "Resolved collectors",
            target=target.name,
            collectors=list(self.collectors),
        )

    def describe(self) -> list[Metric]:
        descriptors: list[Metric] = []
        for collector in self.collectors.values():
            descriptors.extend(collector.describe())
        descriptors.extend(ScrapeInstrumentation.describe())
        return descriptors

    def collect(self) -> Iterator[Metric]:
        """Collect metrics of all enabled collectors.

        Yields:
            Domain metric families followed by the collector error and
            duration families.
        """
        for collector in self.collectors.values():
            yield from collector.collect()
        yield from self._instrumentation.generate_metrics()
