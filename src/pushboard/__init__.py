"""Pushboard: push notification dashboard API and analytics."""

__version__ = "0.1.0"
