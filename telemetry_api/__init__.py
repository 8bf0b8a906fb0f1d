"""Power telemetry API: ingestion, history, cached latest values and cache admin."""
