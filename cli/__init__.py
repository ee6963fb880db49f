"""CLI package for charting telemetry from the solar monitor API."""
