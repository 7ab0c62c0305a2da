"""HTTP-level tests for the auth routes."""
