"""Metric encoding conventions shared by all collectors.

Holds the exporter namespace, the per-scrape collector instrumentation
(error flag and duration per collector), the enum one-hot encoding and the
error types raised inside collectors.
"""

import time
from collections.abc import Iterator, Sequence

from prometheus_client.core import GaugeMetricFamily
from prometheus_client.metrics_core import Metric

NAMESPACE = "eseries"

UNKNOWN_STATE = "unknown"

COLLECT_ERROR_NAME = f"{NAMESPACE}_exporter_collect_error"
COLLECT_ERROR_HELP = "Indicates if error has occurred during collection"
COLLECTOR_DURATION_NAME = f"{NAMESPACE}_exporter_collector_duration_seconds"
COLLECTOR_DURATION_HELP = "Collector time duration."


class EmptyResultError(Exception):
    """Raised when a valid response carries no usable entities."""


class DuplicateEntityError(Exception):
    """Raised when two records resolve to the same identifying key."""


class ScrapeInstrumentation:
    """Error and duration observations of the collectors of one scrape.

    One instance is created per scrape and handed to every collector, which
    reports its outcome through :meth:`observe`. The orchestrator renders
    all observations as a single family per metric.
    """

    def __init__(self) -> None:
        self._errors: dict[str, float] = {}
        self._durations: dict[str, float] = {}

    def observe(self, collector: str, error: bool, start_time: float) -> None:
        """Record the outcome of one collector run.

        Args:
            collector: Registry name of the collector.
            error: Whether any error occurred during collection.
            start_time: ``time.time()`` taken when collection started.
        """
        self._errors[collector] = 1.0 if error else 0.0
        self._durations[collector] = max(time.time() - start_time, 0.0)

    @staticmethod
    def describe() -> list[Metric]:
        """Return empty families describing the instrumentation metrics."""
        return [
            GaugeMetricFamily(
                COLLECT_ERROR_NAME,
                COLLECT_ERROR_HELP,
                labels=["collector"],
            ),
            GaugeMetricFamily(
                COLLECTOR_DURATION_NAME,
                COLLECTOR_DURATION_HELP,
                labels=["collector"],
            ),
        ]

    def generate_metrics(self) -> Iterator[Metric]:
        """Yield the error and duration families for all observed collectors.

        Families are omitted when no collector reported, so a scrape made only
        of silently failing collectors renders nothing.
        """
        if not self._errors:
            return

        collect_error, collector_duration = self.describe()
        for name, value in self._errors.items():
            collect_error.add_metric([name], value)
        yield collect_error

        for name, value in self._durations.items():
            collector_duration.add_metric([name], value)
        yield collector_duration


def add_one_hot(
    family: GaugeMetricFamily,
    labels: Sequence[str],
    value: str,
    states: Sequence[str],
) -> None:
    """Encode an enumerated status as one sample per known state.

    Adds a sample valued 1 for the state equal to ``value`` and 0 for every
    other state, followed by an ``unknown`` sample that is 1 iff ``value``
    matches none of the states. The state name is the last label. Exactly
    one sample per call is 1.

    Args:
        family: Gauge family whose last label is the state.
        labels: Leading label values identifying the entity.
        value: Actual status string of the entity.
        states: Fixed enumeration of known states.
    """
    for state in states:
        family.add_metric([*labels, state], 1.0 if value == state else 0.0)
    family.add_metric([*labels, UNKNOWN_STATE], 0.0 if value in states else 1.0)


def bool_value(flag: bool) -> float:
    """Convert a boolean to a gauge value."""
    return 1.0 if flag else 0.0


def parse_float(value: str) -> float:
    """Parse a decimal string returned by the API, 0 if it is not a number."""
    try:
        return float(value)
    except ValueError:
        return 0.0
