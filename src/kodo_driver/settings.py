"""
Settings and configuration for the KODO storage driver.

Centralizes configuration values and provides validation with fail-fast behavior.
Settings are supplied once, either from the host's driver parameters mapping or
from environment variables, and never change afterwards.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Tuple

from .errors import ConfigurationError
from .storage.zones import ZONES, ZoneHosts

__all__ = ["Settings", "create_settings_from_env", "settings_from_parameters"]


@dataclass(frozen=True)
class Settings:
    """
    Configuration settings for the KODO storage driver.

    Required:
        bucket: Target KODO bucket name
        base_url: Public download domain used to build signed URLs
        access_key: KODO access key
        secret_key: KODO secret key

    Optional:
        zone: Storage zone index selecting default service hosts
        root_directory: Key prefix under which all paths are stored
        rs_host, rsf_host, up_hosts: Service endpoint overrides
        http_timeout_s: HTTP request timeout in seconds
        default_expiry_s: Lifetime of signed URLs in seconds
        list_limit: Page size for listing requests
        scratch_dir: Directory for spilling incoming write streams
    """
    bucket: str
    base_url: str
    access_key: str
    secret_key: str
    zone: int = 0
    root_directory: str = ""
    rs_host: Optional[str] = None
    rsf_host: Optional[str] = None
    up_hosts: Tuple[str, ...] = ()
    http_timeout_s: float = 30.0
    default_expiry_s: int = 3600
    list_limit: int = 1000
    scratch_dir: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize settings on construction."""
        if not self.bucket:
            raise ConfigurationError("No bucket parameter provided")
        if not self.base_url:
            raise ConfigurationError("No baseurl parameter provided")
        if not self.access_key:
            raise ConfigurationError("No accesskey parameter provided")
        if not self.secret_key:
            raise ConfigurationError("No secretkey parameter provided")

        if self.zone not in ZONES:
            raise ConfigurationError(f"Unknown zone: {self.zone}. Supported zones: {sorted(ZONES)}")

        if self.http_timeout_s <= 0:
            raise ConfigurationError(f"http_timeout_s must be positive, got {self.http_timeout_s}")
        if self.default_expiry_s <= 0:
            raise ConfigurationError(f"default_expiry_s must be positive, got {self.default_expiry_s}")
        if not 0 < self.list_limit <= 1000:
            raise ConfigurationError(f"list_limit must be between 1 and 1000, got {self.list_limit}")

        # Frozen dataclass: normalize through object.__setattr__
        if not self.base_url.endswith("/"):
            object.__setattr__(self, "base_url", self.base_url + "/")
        object.__setattr__(self, "root_directory", (self.root_directory or "").rstrip("/"))
        object.__setattr__(self, "up_hosts", tuple(self.up_hosts))

    @property
    def hosts(self) -> ZoneHosts:
        """Service hosts for this zone with any configured overrides applied."""
        defaults = ZONES[self.zone]
        return ZoneHosts(
            rs_host=self.rs_host or defaults.rs_host,
            rsf_host=self.rsf_host or defaults.rsf_host,
            up_hosts=self.up_hosts or defaults.up_hosts,
        )

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        return (
            f"Settings(bucket={self.bucket!r}, base_url={self.base_url!r}, zone={self.zone}, "
            f"root_directory={self.root_directory!r}, access_key='***', secret_key='***')"
        )


def settings_from_parameters(parameters: Mapping[str, Any]) -> Settings:
    """
    Build settings from a host-supplied driver parameters mapping.

    Recognized keys: zone, bucket, baseurl, accesskey, secretkey,
    rootdirectory, rshost, rsfhost, uphosts, httptimeout, expiry,
    listlimit, scratchdir. Values of the wrong type are treated as absent,
    so a missing or non-string required value fails validation.

    Args:
        parameters: Driver parameters keyed by lowercase option name

    Returns:
        Validated Settings

    Raises:
        ConfigurationError: If a required parameter is missing or invalid
    """
    def get_str(key: str) -> str:
        value = parameters.get(key)
        return value if isinstance(value, str) else ""

    def get_int(key: str, default: int) -> int:
        value = parameters.get(key)
        if isinstance(value, bool) or value is None:
            return default
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.strip():
            try:
                return int(value)
            except ValueError:
                raise ConfigurationError(f"Invalid {key} parameter: {value!r}")
        return default

    def get_float(key: str, default: float) -> float:
        value = parameters.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
        if isinstance(value, str) and value.strip():
            try:
                return float(value)
            except ValueError:
                raise ConfigurationError(f"Invalid {key} parameter: {value!r}")
        return default

    up_hosts = parameters.get("uphosts") or ()
    if isinstance(up_hosts, str):
        up_hosts = _split_hosts(up_hosts)

    return Settings(
        bucket=get_str("bucket"),
        base_url=get_str("baseurl"),
        access_key=get_str("accesskey"),
        secret_key=get_str("secretkey"),
        zone=get_int("zone", 0),
        root_directory=get_str("rootdirectory"),
        rs_host=get_str("rshost") or None,
        rsf_host=get_str("rsfhost") or None,
        up_hosts=tuple(up_hosts),
        http_timeout_s=get_float("httptimeout", 30.0),
        default_expiry_s=get_int("expiry", 3600),
        list_limit=get_int("listlimit", 1000),
        scratch_dir=get_str("scratchdir") or None,
    )


def create_settings_from_env() -> Settings:
    """
    Load settings from environment variables.

    Environment Variables:
        - KODO_BUCKET (required)
        - KODO_BASE_URL (required)
        - KODO_ACCESS_KEY (required)
        - KODO_SECRET_KEY (required)
        - KODO_ZONE (default: 0)
        - KODO_ROOT_DIRECTORY (default: "")
        - KODO_RS_HOST, KODO_RSF_HOST (optional overrides)
        - KODO_UP_HOSTS (optional, comma separated)
        - KODO_HTTP_TIMEOUT (default: 30.0)
        - KODO_URL_EXPIRY (default: 3600)
        - KODO_LIST_LIMIT (default: 1000)
        - KODO_SCRATCH_DIR (default: system temp directory)

    Returns:
        Settings object with validated configuration

    Raises:
        ConfigurationError: If a required value is missing or invalid
        ValueError: If a numeric variable cannot be parsed

    Note:
        Creates a fresh Settings instance every time (no caching).
    """
    def get_float(key: str, default: float) -> float:
        value = os.getenv(key)
        return float(value) if value else default

    def get_int(key: str, default: int) -> int:
        value = os.getenv(key)
        return int(value) if value else default

    return Settings(
        bucket=os.getenv("KODO_BUCKET", ""),
        base_url=os.getenv("KODO_BASE_URL", ""),
        access_key=os.getenv("KODO_ACCESS_KEY", ""),
        secret_key=os.getenv("KODO_SECRET_KEY", ""),
        zone=get_int("KODO_ZONE", 0),
        root_directory=os.getenv("KODO_ROOT_DIRECTORY", ""),
        rs_host=os.getenv("KODO_RS_HOST") or None,
        rsf_host=os.getenv("KODO_RSF_HOST") or None,
        up_hosts=_split_hosts(os.getenv("KODO_UP_HOSTS", "")),
        http_timeout_s=get_float("KODO_HTTP_TIMEOUT", 30.0),
        default_expiry_s=get_int("KODO_URL_EXPIRY", 3600),
        list_limit=get_int("KODO_LIST_LIMIT", 1000),
        scratch_dir=os.getenv("KODO_SCRATCH_DIR") or None,
    )


def _split_hosts(value: str) -> Tuple[str, ...]:
    return tuple(host.strip() for host in value.split(",") if host.strip())
