"""Upload endpoint and request validation."""
