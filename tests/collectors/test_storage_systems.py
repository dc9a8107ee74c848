"""Tests for the storage systems collector module."""

import pytest

from eseries_prometheus_exporter.collectors import storage_systems

from ..conftest import failing_handler, json_routes

SYSTEM_PATH = "/devmgr/v2/storage-systems/test"


def _collect(target, instrumentation) -> dict:
    collector = storage_systems.StorageSystemsCollector(target, instrumentation)
    return {m.name: m for m in collector.collect()}


def _statuses(metric) -> dict[str, float]:
    return {s.labels["status"]: s.value for s in metric.samples}


@pytest.mark.parametrize("status", storage_systems.STORAGE_SYSTEM_STATUSES)
def test_collect_known_status_one_hot(make_target, instrumentation, status):
    """Each known status sets exactly its own sample to 1."""
    target = make_target(json_routes({SYSTEM_PATH: {"id": "1", "status": status}}))
    metrics = _collect(target, instrumentation)

    statuses = _statuses(metrics["eseries_storage_system_status"])
    assert statuses[status] == 1
    assert statuses["unknown"] == 0
    assert sum(statuses.values()) == 1


def test_collect_unlisted_status_is_unknown(make_target, instrumentation):
    """A status outside the enumeration sets only unknown."""
    target = make_target(
        json_routes({SYSTEM_PATH: {"id": "1", "status": "degraded"}}),
    )
    metrics = _collect(target, instrumentation)

    statuses = _statuses(metrics["eseries_storage_system_status"])
    assert statuses["unknown"] == 1
    assert len(statuses) == len(storage_systems.STORAGE_SYSTEM_STATUSES) + 1
    assert sum(statuses.values()) == 1


def test_collect_samples_have_only_status_label(make_target, instrumentation):
    """The single system per backend carries no entity labels."""
    target = make_target(json_routes({SYSTEM_PATH: {"id": "1", "status": "optimal"}}))
    metrics = _collect(target, instrumentation)
    for sample in metrics["eseries_storage_system_status"].samples:
        assert set(sample.labels) == {"status"}


def test_collect_missing_id_flags_error(make_target, instrumentation, observations):
    """A record without id is treated as no storage system returned."""
    target = make_target(json_routes({SYSTEM_PATH: {"status": "optimal"}}))
    metrics = _collect(target, instrumentation)

    assert metrics == {}
    assert observations(instrumentation)["eseries_exporter_collect_error"] == {
        "storage-systems": 1,
    }


def test_collect_http_error_emits_only_instrumentation(
    make_target,
    instrumentation,
    observations,
):
    """A failing backend yields error 1 and a duration, nothing else."""
    metrics = _collect(make_target(failing_handler), instrumentation)

    assert metrics == {}
    observed = observations(instrumentation)
    assert observed["eseries_exporter_collect_error"] == {"storage-systems": 1}
    assert observed["eseries_exporter_collector_duration_seconds"][
        "storage-systems"
    ] >= 0
