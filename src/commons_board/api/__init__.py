"""HTTP API for Commons Board."""
