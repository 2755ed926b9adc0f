"""Rate limited async client for the Kentaa API."""

__version__ = "0.1.0"
