"""
CLI Context for managing application dependencies.

Provides a clean way to manage CLI-level dependencies like settings and the
driver instance, avoiding global state and enabling proper dependency injection.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .settings import Settings, create_settings_from_env
from .storage.driver import KodoDriver


@dataclass
class CLIContext:
    """
    Shared context for CLI commands.

    Holds the settings loaded for one command execution and lazily builds
    the driver on first use.
    """
    settings: Settings
    _driver: Optional[KodoDriver] = None

    @classmethod
    def from_env(cls) -> CLIContext:
        """
        Create CLI context from environment variables.

        Raises:
            ConfigurationError: If required KODO_* variables are missing
        """
        return cls(settings=create_settings_from_env())

    @property
    def driver(self) -> KodoDriver:
        """Get or create the driver instance (lazy initialization)."""
        if self._driver is None:
            self._driver = KodoDriver(self.settings)
        return self._driver
