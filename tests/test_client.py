"""Tests for the SANtricity REST API client."""

import base64
import dataclasses

import httpx
import pytest

from eseries_prometheus_exporter.santricityapi import client

from .conftest import BASE_URL, json_routes

# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


def test_get_sends_basic_auth_and_accept(make_target):
    """Requests carry basic auth credentials and accept JSON."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"{}")

    api = client.SantricityRestApiClient(make_target(handler))
    assert api.get("/devmgr/v2/storage-systems/test") == b"{}"

    request = seen[0]
    expected = base64.b64encode(b"test:test").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"
    assert request.headers["Accept"] == "application/json"
    assert request.method == "GET"


def test_get_resolves_path_against_base_url(make_target):
    """The path replaces any path of the base URL."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, content=b"{}")

    target = make_target(handler)
    target = client.Target(
        name=target.name,
        user=target.user,
        password=target.password,
        base_url=f"{BASE_URL}/ignored/",
        http_client=target.http_client,
    )
    client.SantricityRestApiClient(target).get("/devmgr/v2/storage-systems/test")
    assert str(seen[0].url) == f"{BASE_URL}/devmgr/v2/storage-systems/test"


def test_get_non_200_raises_fetch_error_with_body(make_target):
    """Non-200 responses raise FetchError carrying status and body."""
    target = make_target(lambda request: httpx.Response(401, text="unauthorized"))
    with pytest.raises(client.FetchError) as exc_info:
        client.SantricityRestApiClient(target).get("/devmgr/v2/storage-systems/test")
    assert exc_info.value.status_code == 401
    assert exc_info.value.body == "unauthorized"


def test_get_transport_error_raises_fetch_error(make_target):
    """Connection failures surface as FetchError."""

    def handler(request: httpx.Request) -> httpx.Response:
        msg = "connection refused"
        raise httpx.ConnectError(msg, request=request)

    with pytest.raises(client.FetchError) as exc_info:
        client.SantricityRestApiClient(make_target(handler)).get("/x")
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


def test_get_invalid_url_raises_fetch_error(make_target):
    """A URL httpx cannot build surfaces as FetchError."""
    target = make_target(lambda request: httpx.Response(200, content=b"{}"))
    with pytest.raises(client.FetchError) as exc_info:
        client.SantricityRestApiClient(target).get("/devmgr/a\x7fb")
    assert isinstance(exc_info.value.__cause__, httpx.InvalidURL)


@pytest.mark.parametrize(
    ("name", "escaped"),
    [("a?b#c", "a%3Fb%23c"), ("a/b", "a%2Fb"), ("a\x7fb\nc", "a%7Fb%0Ac")],
)
def test_target_name_is_one_path_segment(make_target, name, escaped):
    """The target name is escaped into a single path segment."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "1"})

    target = dataclasses.replace(make_target(handler), name=name)
    client.SantricityRestApiClient(target).get_storage_system()

    assert seen[0].url.raw_path.decode() == (
        f"/devmgr/v2/storage-systems/{escaped}"
    )
    assert seen[0].url.query == b""


def test_get_timeout_raises_fetch_error(make_target):
    """Timeouts surface as FetchError without retry."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        msg = "timed out"
        raise httpx.ReadTimeout(msg, request=request)

    with pytest.raises(client.FetchError):
        client.SantricityRestApiClient(make_target(handler)).get("/x")
    assert len(calls) == 1


# ---------------------------------------------------------------------------
# URL unescaping for logs
# ---------------------------------------------------------------------------


def test_unescape_for_logging_decodes():
    """Percent-encoded characters are decoded for readability."""
    assert (
        client._unescape_for_logging("http://h/devmgr/v2/storage-systems/my%20array")
        == "http://h/devmgr/v2/storage-systems/my array"
    )


def test_unescape_for_logging_falls_back_on_invalid_sequence():
    """An undecodable escape keeps the URL escaped instead of failing."""
    assert client._unescape_for_logging("http://h/%ff") == "http://h/%ff"


def test_get_with_undecodable_escape_still_succeeds(make_target):
    """Logging fallback never affects the request itself."""
    target = make_target(lambda request: httpx.Response(200, content=b"ok"))
    assert client.SantricityRestApiClient(target).get("/devmgr/%ff") == b"ok"


# ---------------------------------------------------------------------------
# Typed getters
# ---------------------------------------------------------------------------


def test_get_storage_pools_decodes_models(make_target):
    """Storage pools are validated into StoragePool models."""
    target = make_target(
        json_routes(
            {"storage-pools": [{"label": "pool1", "diskPool": True, "extra": 1}]},
        ),
    )
    pools = client.SantricityRestApiClient(target).get_storage_pools()
    assert pools[0].label == "pool1"
    assert pools[0].disk_pool is True


def test_get_storage_pools_wrong_shape_raises_decode_error(make_target):
    """A JSON body of the wrong shape raises DecodeError."""
    target = make_target(json_routes({"storage-pools": {"not": "a list"}}))
    with pytest.raises(client.DecodeError):
        client.SantricityRestApiClient(target).get_storage_pools()


def test_get_invalid_json_raises_decode_error(make_target):
    """A non-JSON body raises DecodeError."""
    target = make_target(lambda request: httpx.Response(200, text="not json"))
    with pytest.raises(client.DecodeError):
        client.SantricityRestApiClient(target).get_storage_system()
