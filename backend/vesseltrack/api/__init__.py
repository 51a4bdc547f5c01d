"""HTTP API for the tracking engine."""
