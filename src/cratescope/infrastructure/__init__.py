"""Infrastructure layer - external integrations, rate limiting and observability."""
