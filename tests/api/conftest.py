"""Shared fixtures for dashboard API tests."""

from __future__ import annotations

import pytest

from pushboard.api import deps
from pushboard.api.app import create_app
from pushboard.config import DashboardConfig


@pytest.fixture(autouse=True)
def _reset_config(monkeypatch):
    """Start every test with no installed DashboardConfig."""
    monkeypatch.setattr(deps, "_config", None)


@pytest.fixture
def app():
    """A fresh app that buckets by UTC calendar day."""
    return create_app(config=DashboardConfig(timezone="UTC"))
