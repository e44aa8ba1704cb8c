"""HTTP API for the Consejo service."""
