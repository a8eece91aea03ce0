"""Alert engine for coop telemetry: ingest, liveness, evaluation and reminders."""
