"""Generation backends and model management."""
