"""Drive status collector for E-Series storage systems.

Fetches the hardware inventory, resolves each drive's tray and slot and
exports the drive status as a one-hot encoded gauge. Drives resolving to an
already seen tray/slot pair are dropped and flagged as a collection error.
"""

import time
from collections.abc import Iterator
from dataclasses import dataclass

import structlog
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import (
    NAMESPACE,
    DuplicateEntityError,
    EmptyResultError,
    ScrapeInstrumentation,
    add_one_hot,
)

logger = structlog.get_logger(__name__)

NAME = "drives"

DRIVE_STATUSES = (
    "optimal",
    "failed",
    "replaced",
    "bypassed",
    "unresponsive",
    "removed",
    "incompatible",
    "dataRelocation",
    "preFailCopy",
    "preFailCopyPending",
    "__UNDEFINED",
)


@dataclass
class DriveMetric:
    """A drive with its human readable location."""

    drive_ref: str
    tray: str
    slot: str
    status: str

    @property
    def location(self) -> tuple[str, str]:
        return self.tray, self.slot


def locate_drives(inventory: santricityapi.types.HardwareInventory) -> list[DriveMetric]:
    """Join drives against trays to resolve their tray id and slot.

    Drives whose tray reference matches no tray get an empty tray label.

    Args:
        inventory: Hardware inventory from the API.

    Returns:
        Drives in inventory order.
    """
    tray_ids = {tray.tray_ref: str(tray.tray_id) for tray in inventory.trays}
    return [
        DriveMetric(
            drive_ref=drive.drive_ref or drive.id,
            tray=tray_ids.get(drive.physical_location.tray_ref, ""),
            slot=str(drive.physical_location.slot),
            status=drive.status,
        )
        for drive in inventory.drives
    ]


def claim_location(seen: set[tuple[str, str]], drive: DriveMetric) -> None:
    """Mark a drive location as used.

    Raises:
        DuplicateEntityError: If another drive already claimed the location.
    """
    if drive.location in seen:
        msg = f"Duplicate drive at tray {drive.tray} slot {drive.slot}"
        raise DuplicateEntityError(msg)
    seen.add(drive.location)


def fetch(client: santricityapi.SantricityRestApiClient) -> list[DriveMetric]:
    """Fetch drives with their locations.

    Raises:
        FetchError: If the request fails.
        DecodeError: If the response cannot be decoded.
        EmptyResultError: If no drives are returned.
    """
    inventory = client.get_hardware_inventory()
    if not inventory.drives:
        msg = "No drives returned"
        raise EmptyResultError(msg)
    return locate_drives(inventory)


def _status_family() -> GaugeMetricFamily:
    return GaugeMetricFamily(
        f"{NAMESPACE}_drive_status",
        "Drive status",
        labels=["tray", "slot", "status"],
    )


class DrivesCollector(Collector):
    """Exports the status of every drive of a storage system."""

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
        self._logger.debug("Collecting drives metrics")
        start_time = time.time()
        error = False

        drives: list[DriveMetric] = []
        try:
            drives = fetch(self._client)
        except (
            santricityapi.FetchError,
            santricityapi.DecodeError,
            EmptyResultError,
        ) as exc:
            self._logger.error("Collection failed", error=str(exc))
            error = True

        status = _status_family()
        seen: set[tuple[str, str]] = set()
        for drive in drives:
            try:
                claim_location(seen, drive)
            except DuplicateEntityError:
                self._logger.error(
                    "Duplicate drive entry detected, skipping",
                    tray=drive.tray,
                    slot=drive.slot,
                    status=drive.status,
                )
                error = True
                continue
            add_one_hot(status, [drive.tray, drive.slot], drive.status, DRIVE_STATUSES)

        self._instrumentation.observe(NAME, error, start_time)
        if status.samples:
            yield status
