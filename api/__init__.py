"""Event Lead Rewards HTTP API."""

__version__ = "1.0.0"
