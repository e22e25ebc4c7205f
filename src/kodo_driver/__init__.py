"""
KODO storage driver for container image registries.

Stores registry blobs and manifests in Qiniu KODO object storage.
"""
from .errors import (
    ConfigurationError,
    InvalidOffsetError,
    InvalidPathError,
    KodoError,
    PathNotFoundError,
    StorageDriverError,
    UnsupportedMethodError,
)
from .settings import Settings, create_settings_from_env, settings_from_parameters
from .storage.driver import DRIVER_NAME, KodoDriver
from .storage.factory import make_driver

__version__ = "0.1.0"

__all__ = [
    "DRIVER_NAME",
    "KodoDriver",
    "Settings",
    "create_settings_from_env",
    "settings_from_parameters",
    "make_driver",
    "StorageDriverError",
    "PathNotFoundError",
    "InvalidPathError",
    "InvalidOffsetError",
    "UnsupportedMethodError",
    "ConfigurationError",
    "KodoError",
]
