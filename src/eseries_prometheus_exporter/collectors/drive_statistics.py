"""Drive performance statistics collector.

Resolves drive locations from the hardware inventory and exports the
analysed drive statistics labelled by tray and slot.
"""

import time
from collections.abc import Iterator

import structlog
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import DuplicateEntityError, EmptyResultError, ScrapeInstrumentation
from . import drives, statistics

logger = structlog.get_logger(__name__)

NAME = "drive-statistics"

FIELDS = statistics.IO_STATISTICS

LABELS = ["tray", "slot"]


def fetch(
    client: santricityapi.SantricityRestApiClient,
) -> tuple[
    dict[str, drives.DriveMetric],
    list[santricityapi.types.AnalysedDriveStatistics],
]:
    """Fetch drive locations and analysed drive statistics.

    Returns:
        Tuple of (drives keyed by drive reference, statistics records).

    Raises:
        FetchError: If a request fails.
        DecodeError: If a response cannot be decoded.
        EmptyResultError: If the inventory lists no drives.
    """
    inventory = client.get_hardware_inventory()
    if not inventory.drives:
        msg = "No drives returned"
        raise EmptyResultError(msg)
    located = {drive.drive_ref: drive for drive in drives.locate_drives(inventory)}
    return located, client.get_analysed_drive_statistics()


class DriveStatisticsCollector(Collector):
    """Exports analysed performance statistics per drive."""

    def __init__(
        self,
        target: santricityapi.Target,
        instrumentation: ScrapeInstrumentation,
    ):
        self._client = santricityapi.SantricityRestApiClient(target)
        self._instrumentation = instrumentation
        self._logger = logger.bind(collector=NAME, target=target.name)

    def describe(self) -> list[Metric]:
        return list(statistics.new_families("drive", "Drive", FIELDS, LABELS).values())

    def collect(self) -> Iterator[Metric]:
        self._logger.debug("Collecting drive-statistics metrics")
        start_time = time.time()
        try:
            located, records = fetch(self._client)
        except (
            santricityapi.FetchError,
            santricityapi.DecodeError,
            EmptyResultError,
        ) as exc:
            self._logger.error("Collection failed", error=str(exc))
            self._instrumentation.observe(NAME, True, start_time)
            return

        error = False
        families = statistics.new_families("drive", "Drive", FIELDS, LABELS)
        seen: set[tuple[str, str]] = set()
        for record in records:
            drive = located.get(record.disk_id)
            if drive is None:
                self._logger.warning(
                    "Statistics for unknown drive, skipping",
                    disk_id=record.disk_id,
                )
                continue
            try:
                drives.claim_location(seen, drive)
            except DuplicateEntityError:
                self._logger.error(
                    "Duplicate drive statistics detected, skipping",
                    tray=drive.tray,
                    slot=drive.slot,
                )
                error = True
                continue
            statistics.add_record(families, [drive.tray, drive.slot], record)

        self._instrumentation.observe(NAME, error, start_time)
        yield from statistics.non_empty(families)
