"""
Driver factory with registration by name.

The registry host selects a storage driver by name and passes it a mapping of
parameters from its configuration file. Drivers register a constructor under
their name; make_driver looks it up and builds the driver.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, Mapping

from ..settings import settings_from_parameters
from .base import StorageDriver
from .driver import DRIVER_NAME, KodoDriver

__all__ = ["register", "make_driver", "registered_drivers"]

DriverConstructor = Callable[[Mapping[str, Any]], StorageDriver]

_factories: Dict[str, DriverConstructor] = {}


def register(name: str, constructor: DriverConstructor) -> None:
    """
    Register a driver constructor under name.

    Raises:
        ValueError: If name is empty or already registered
    """
    if not name:
        raise ValueError("Cannot register a driver with an empty name")
    if name in _factories:
        raise ValueError(f"Driver already registered: {name}")
    _factories[name] = constructor


def make_driver(name: str, parameters: Mapping[str, Any]) -> StorageDriver:
    """
    Create a registered storage driver.

    Args:
        name: Driver name, e.g. "kodo"
        parameters: Driver parameters from the host configuration

    Returns:
        Constructed driver

    Raises:
        ValueError: If no driver is registered under name
        ConfigurationError: If the driver rejects its parameters

    Examples:
        >>> driver = make_driver("kodo", {
        ...     "bucket": "registry", "baseurl": "http://cdn.example.com",
        ...     "accesskey": "ak", "secretkey": "sk",
        ... })
        >>> driver.name()
        'kodo'
    """
    try:
        constructor = _factories[name]
    except KeyError:
        raise ValueError(
            f"Unknown storage driver: {name}. Registered drivers: {', '.join(registered_drivers())}"
        ) from None
    return constructor(parameters)


def registered_drivers() -> list[str]:
    return sorted(_factories)


def _kodo_from_parameters(parameters: Mapping[str, Any]) -> KodoDriver:
    return KodoDriver(settings_from_parameters(parameters))


register(DRIVER_NAME, _kodo_from_parameters)
