"""Note domain models."""
