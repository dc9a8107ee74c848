"""Configuration for the E-Series Prometheus Exporter.

The configuration is a JSON file holding global settings and a map of named
modules. A module bundles the credentials, proxy address, TLS options and
collector selection shared by all targets scraped with it.
"""

import json
import pathlib
import ssl
import urllib.parse
from typing import Literal

import httpx
import pydantic
import structlog

from . import santricityapi

logger = structlog.get_logger(__name__)


class TLSConfigError(Exception):
    """Raised when the TLS settings of a module cannot be applied."""


class ModuleConfig(pydantic.BaseModel):
    """Connection settings for a SANtricity Web Services Proxy."""

    user: str = pydantic.Field(description="Basic auth user")
    password: str = pydantic.Field(description="Basic auth password")
    proxy_url: str = pydantic.Field(
        description="Base URL of the SANtricity Web Services Proxy",
    )
    timeout: float = pydantic.Field(
        santricityapi.DEFAULT_TIMEOUT,
        description="Request timeout in seconds",
        gt=0,
    )
    root_ca: str | None = pydantic.Field(
        None,
        description="Path to a PEM file of additional trusted root CAs",
    )
    insecure_ssl: bool = pydantic.Field(
        False,  # noqa: FBT003
        description="Skip TLS certificate verification",
    )
    collectors: list[str] | None = pydantic.Field(
        None,
        description="Collectors to enable, default-enabled ones if unset",
    )

    @pydantic.field_validator("proxy_url")
    @classmethod
    def _validate_proxy_url(cls, value: str) -> str:
        parsed = urllib.parse.urlsplit(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            msg = f"proxy_url must be an absolute http(s) URL, got {value!r}"
            raise ValueError(msg)
        return value


class ExporterConfig(pydantic.BaseModel):
    """Configuration for the E-Series Prometheus Exporter."""

    metrics_path: str = pydantic.Field(
        "/eseries",
        description="URL path for the multi-target scrape endpoint",
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")
    log_format: Literal["logfmt", "json"] = pydantic.Field(
        "logfmt",
        description="Log output format",
    )
    modules: dict[str, ModuleConfig] = pydantic.Field(
        default_factory=dict,
        description="Named connection modules selectable per scrape",
    )


def load_config(config_path: str) -> ExporterConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ExporterConfig(**data)


def _ssl_context(module: ModuleConfig) -> ssl.SSLContext:
    """Build the TLS context for a module.

    Trusts the system CAs plus the module's root CA file, if any.

    Raises:
        TLSConfigError: If the root CA file cannot be loaded.
    """
    context = ssl.create_default_context()
    if module.root_ca:
        try:
            context.load_verify_locations(cafile=module.root_ca)
        except (OSError, ssl.SSLError) as exc:
            logger.error(
                "Error loading root CA",
                root_ca=module.root_ca,
                error=str(exc),
            )
            msg = f"Error loading root CA {module.root_ca}"
            raise TLSConfigError(msg) from exc
    if module.insecure_ssl:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


def build_http_client(module: ModuleConfig) -> httpx.Client:
    """Create the HTTP client used for all requests of one scrape.

    Raises:
        TLSConfigError: If the module's TLS settings cannot be applied.
    """
    if urllib.parse.urlsplit(module.proxy_url).scheme == "https":
        logger.debug("Setting up SSL transport", url=module.proxy_url)
        return httpx.Client(timeout=module.timeout, verify=_ssl_context(module))
    return httpx.Client(timeout=module.timeout)


def build_target(name: str, module: ModuleConfig) -> santricityapi.Target:
    """Resolve the backend descriptor for a scrape of ``name``.

    The caller owns the returned target's HTTP client and must close it.

    Raises:
        TLSConfigError: If the module's TLS settings cannot be applied.
    """
    return santricityapi.Target(
        name=name,
        user=module.user,
        password=module.password,
        base_url=module.proxy_url,
        http_client=build_http_client(module),
        collectors=module.collectors,
    )
