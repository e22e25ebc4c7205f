# Fake implementations for testing

from .fake_kodo import FakeKodoStore

__all__ = ["FakeKodoStore"]
