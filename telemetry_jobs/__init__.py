"""Background jobs for the telemetry service."""
