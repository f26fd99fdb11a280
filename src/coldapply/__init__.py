"""ColdApply: scheduled job discovery and rate-limited cold outreach."""

__version__ = "0.1.0"
