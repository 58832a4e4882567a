# src/bot_core/testing/__init__.py
"""In-memory WorldSession fakes for tests."""

from __future__ import annotations

from .fakes import FakeSessionFactory, FakeWorldSession, StopCounts

__all__ = ["FakeSessionFactory", "FakeWorldSession", "StopCounts"]
