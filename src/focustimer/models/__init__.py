"""Configuration and focus models."""
