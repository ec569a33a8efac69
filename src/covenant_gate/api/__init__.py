"""HTTP API for the verification service."""
