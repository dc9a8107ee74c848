"""SANtricity Web Services Proxy client.

Provides the authenticated GET used by every collector and typed getters
that validate responses using Pydantic models.
"""

import time
import urllib.parse
from dataclasses import dataclass, field
from typing import TypeVar

import httpx
import pydantic
import structlog

from .types import (
    AnalysedControllerStatistics,
    AnalysedDriveStatistics,
    AnalysedSystemStatistics,
    HardwareInventory,
    StoragePool,
    StorageSystem,
    Volume,
)

logger = structlog.get_logger(__name__)

DEFAULT_TIMEOUT = 10.0

API_PREFIX = "/devmgr/v2/storage-systems"

T = TypeVar("T")


class FetchError(Exception):
    """Raised when a request to the proxy fails.

    Covers invalid URLs, transport failures, timeouts, body read failures
    and non-200 responses. For the latter ``status_code`` and ``body`` are set.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DecodeError(Exception):
    """Raised when a response body is not valid JSON of the expected shape."""


@dataclass(frozen=True)
class Target:
    """Resolved per-request backend descriptor.

    ``collectors`` is None when the module does not restrict collectors,
    meaning the default-enabled set is used.
    """

    name: str
    user: str
    password: str
    base_url: str
    http_client: httpx.Client = field(repr=False, compare=False)
    collectors: list[str] | None = None


def _unescape_for_logging(url: str) -> str:
    """Percent-decode a URL for readability, keeping it escaped on failure."""
    try:
        return urllib.parse.unquote(url, errors="strict")
    except UnicodeDecodeError:
        logger.warning("Failed to unescape URL", url=url)
        return url


class SantricityRestApiClient:
    """HTTP client for the SANtricity ``/devmgr/v2`` REST API.

    Thin wrapper around the target's preconfigured ``httpx.Client``. Each
    call issues exactly one GET; there is no retry and no caching.
    """

    def __init__(self, target: Target):
        """Initialize the client.

        Args:
            target: Backend descriptor carrying credentials, base URL and
                the HTTP client (timeout and TLS settings).
        """
        self.target = target
        # the name is one path segment, never a query or fragment
        name = urllib.parse.quote(target.name, safe="")
        self._system_path = f"{API_PREFIX}/{name}"

    def get(self, path: str) -> bytes:
        """Perform an authenticated GET and return the raw response body.

        The path is resolved against the target's base URL, so an absolute
        path replaces any path component of the base URL.

        Args:
            path: API path (e.g., "/devmgr/v2/storage-systems/foo").

        Returns:
            Raw response body.

        Raises:
            FetchError: On transport failure, timeout, body read failure or
                any status other than 200.
        """
        url = urllib.parse.urljoin(self.target.base_url, path)
        logger.debug("Performing GET request", url=_unescape_for_logging(url))

        start_time = time.time()
        try:
            # httpx reads the whole body and releases the connection
            response = self.target.http_client.get(
                url,
                headers={"Accept": "application/json"},
                auth=(self.target.user, self.target.password),
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.error(
                "API request failed",
                url=url,
                duration_seconds=round(time.time() - start_time, 3),
                error=str(exc),
            )
            msg = f"GET {url} failed: {exc}"
            raise FetchError(msg) from exc

        if response.status_code != httpx.codes.OK:
            body = response.text
            logger.error(
                "Response error",
                code=response.status_code,
                body=body,
            )
            raise FetchError(body, status_code=response.status_code, body=body)

        logger.debug(
            "API request completed",
            duration_seconds=round(time.time() - start_time, 3),
        )
        return response.content

    def _get_model(self, path: str, model: type[T]) -> T:
        """GET a path and validate the JSON body against a type.

        Raises:
            FetchError: If the request fails.
            DecodeError: If the body is not valid JSON of the expected shape.
        """
        body = self.get(path)
        try:
            return pydantic.TypeAdapter(model).validate_json(body)
        except pydantic.ValidationError as exc:
            msg = f"Failed to decode response from {path}: {exc}"
            raise DecodeError(msg) from exc

    def get_hardware_inventory(self) -> HardwareInventory:
        """Fetch drives, trays and controllers of the storage system."""
        return self._get_model(
            f"{self._system_path}/hardware-inventory",
            HardwareInventory,
        )

    def get_storage_system(self) -> StorageSystem:
        """Fetch the storage system record."""
        return self._get_model(self._system_path, StorageSystem)

    def get_storage_pools(self) -> list[StoragePool]:
        """Fetch all storage pools and volume groups."""
        return self._get_model(
            f"{self._system_path}/storage-pools",
            list[StoragePool],
        )

    def get_volumes(self) -> list[Volume]:
        """Fetch all volumes."""
        return self._get_model(f"{self._system_path}/volumes", list[Volume])

    def get_analysed_drive_statistics(self) -> list[AnalysedDriveStatistics]:
        """Fetch analysed per-drive statistics."""
        return self._get_model(
            f"{self._system_path}/analysed-drive-statistics",
            list[AnalysedDriveStatistics],
        )

    def get_analysed_controller_statistics(
        self,
    ) -> list[AnalysedControllerStatistics]:
        """Fetch analysed per-controller statistics.

        The proxy returns either a bare list or an object wrapping the list
        under a ``statistics`` key; both are accepted.
        """
        data = self._get_model(
            f"{self._system_path}/analyzed/controller-statistics",
            list[AnalysedControllerStatistics] | _WrappedControllerStatistics,
        )
        if isinstance(data, _WrappedControllerStatistics):
            return data.statistics
        return data

    def get_analysed_system_statistics(self) -> AnalysedSystemStatistics:
        """Fetch analysed statistics for the whole storage system."""
        return self._get_model(
            f"{self._system_path}/analysed-system-statistics",
            AnalysedSystemStatistics,
        )


class _WrappedControllerStatistics(pydantic.BaseModel):
    statistics: list[AnalysedControllerStatistics]
