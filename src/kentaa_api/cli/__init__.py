"""Command line interface for the Kentaa API client."""
