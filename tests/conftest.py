"""Shared fixtures faking the SANtricity Web Services Proxy."""

from collections.abc import Callable, Iterator
from typing import Any

import httpx
import pytest

from eseries_prometheus_exporter import santricityapi
from eseries_prometheus_exporter.metrics import ScrapeInstrumentation

BASE_URL = "http://proxy.test:8080"

TRAY_REF = "0E00000000000000000000000000000000000000"

Handler = Callable[[httpx.Request], httpx.Response]


def json_routes(routes: dict[str, Any]) -> Handler:
    """Build a handler answering JSON payloads by request path suffix.

    Paths matching no suffix get a 404.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        for suffix, payload in routes.items():
            if request.url.path.endswith(suffix):
                return httpx.Response(200, json=payload)
        return httpx.Response(404, text="not found")

    return handler


def failing_handler(request: httpx.Request) -> httpx.Response:  # noqa: ARG001
    """Answer every request with a 404."""
    return httpx.Response(404, text="error")


@pytest.fixture
def make_target() -> Iterator[Callable[..., santricityapi.Target]]:
    """Factory for targets whose HTTP client is served by a handler."""
    clients: list[httpx.Client] = []

    def _make(
        handler: Handler,
        collectors: list[str] | None = None,
    ) -> santricityapi.Target:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return santricityapi.Target(
            name="test",
            user="test",
            password="test",
            base_url=BASE_URL,
            http_client=client,
            collectors=collectors,
        )

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def instrumentation() -> ScrapeInstrumentation:
    """Fresh per-scrape instrumentation."""
    return ScrapeInstrumentation()


@pytest.fixture
def observations() -> Callable[[ScrapeInstrumentation], dict[str, dict[str, float]]]:
    """Read instrumentation samples as {metric name: {collector: value}}."""

    def _read(instrumentation: ScrapeInstrumentation) -> dict[str, dict[str, float]]:
        return {
            metric.name: {
                sample.labels["collector"]: sample.value for sample in metric.samples
            }
            for metric in instrumentation.generate_metrics()
        }

    return _read


@pytest.fixture
def hardware_inventory() -> dict[str, Any]:
    """Hardware inventory with one tray, two drives and two controllers."""
    return {
        "trays": [{"trayRef": TRAY_REF, "trayId": 0}],
        "drives": [
            {
                "id": "010000005000C5008E3B0C1B0000000000000000",
                "driveRef": "010000005000C5008E3B0C1B0000000000000000",
                "status": "failed",
                "physicalLocation": {"slot": 53, "trayRef": TRAY_REF},
            },
            {
                "id": "010000005000C5008E3B0C3B0000000000000000",
                "driveRef": "010000005000C5008E3B0C3B0000000000000000",
                "status": "optimal",
                "physicalLocation": {"slot": 58, "trayRef": TRAY_REF},
            },
        ],
        "controllers": [
            {
                "id": "070000000000000000000001",
                "controllerRef": "070000000000000000000001",
                "status": "optimal",
                "physicalLocation": {"label": "A"},
            },
            {
                "id": "070000000000000000000002",
                "controllerRef": "070000000000000000000002",
                "status": "optimal",
                "physicalLocation": {"label": "B"},
            },
        ],
    }
