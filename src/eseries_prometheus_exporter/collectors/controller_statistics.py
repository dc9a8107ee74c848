"""Controller performance statistics collector.

Joins the controllers of the hardware inventory with the analysed
controller statistics and exports one gauge per statistic and controller,
labelled with the controller reference and its physical label (A or B).
"""

import time
from collections.abc import Iterator
from dataclasses import dataclass

import structlog
from prometheus_client.metrics_core import Metric
from prometheus_client.registry import Collector

from .. import santricityapi
from ..metrics import EmptyResultError, ScrapeInstrumentation
from . import statistics

logger = structlog.get_logger(__name__)

NAME = "controller-statistics"

FIELDS = (
    statistics.IO_STATISTICS
    + statistics.CPU_STATISTICS
    + statistics.CACHE_STATISTICS
)

LABELS = ["controller", "controller_label"]


@dataclass
class ControllerStatisticsMetric:
    """Analysed statistics of one controller with its physical label."""

    controller: str
    controller_label: str
    statistics: santricityapi.types.AnalysedControllerStatistics


def fetch(
    client: santricityapi.SantricityRestApiClient,
) -> tuple[list[ControllerStatisticsMetric], list[str]]:
    """Fetch and join controller inventory and analysed statistics.

    Returns:
        Tuple of (joined metrics, ids of statistics matching no controller).

    Raises:
        FetchError: If a request fails.
        DecodeError: If a response cannot be decoded.
        EmptyResultError: If the inventory lists no controllers.
    """
    inventory = client.get_hardware_inventory()
    if not inventory.controllers:
        msg = "No controllers returned"
        raise EmptyResultError(msg)
    labels = {
        controller.controller_ref or controller.id: controller.physical_location.label
        for controller in inventory.controllers
    }

    joined = []
    unmatched = []
    for stats in client.get_analysed_controller_statistics():
        if stats.controller_id not in labels:
            unmatched.append(stats.controller_id)
            continue
        joined.append(
            ControllerStatisticsMetric(
                controller=stats.controller_id,
                controller_label=labels[stats.controller_id],
                statistics=stats,
            ),
        )
    return joined, unmatched


class ControllerStatisticsCollector(Collector):
    """Exports analysed performance statistics per controller."""

    def __init__(
        self,
        target: santricityapi.Target,
        instrumentation: ScrapeInstrumentation,
    ):
        self._client = santricityapi.SantricityRestApiClient(target)
        self._instrumentation = instrumentation
        self._logger = logger.bind(collector=NAME, target=target.name)

    def describe(self) -> list[Metric]:
        families = statistics.new_families("controller", "Controller", FIELDS, LABELS)
        return list(families.values())

    def collect(self) -> Iterator[Metric]:
        self._logger.debug("Collecting controller-statistics metrics")
        start_time = time.time()
        try:
            controllers, unmatched = fetch(self._client)
        except (
            santricityapi.FetchError,
            santricityapi.DecodeError,
            EmptyResultError,
        ) as exc:
            self._logger.error("Collection failed", error=str(exc))
            self._instrumentation.observe(NAME, True, start_time)
            return

        for controller_id in unmatched:
            self._logger.warning(
                "Statistics for unknown controller, skipping",
                controller=controller_id,
            )

        families = statistics.new_families("controller", "Controller", FIELDS, LABELS)
        for controller in controllers:
            statistics.add_record(
                families,
                [controller.controller, controller.controller_label],
                controller.statistics,
            )

        self._instrumentation.observe(NAME, False, start_time)
        yield from statistics.non_empty(families)
