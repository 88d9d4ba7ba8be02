"""HTTP API for the PRD debate service."""
