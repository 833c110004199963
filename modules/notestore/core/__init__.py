"""Core configuration, logging, errors and resilience helpers."""
