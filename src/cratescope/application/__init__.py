"""Application layer - services and caches."""
