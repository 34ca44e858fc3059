"""Configuration loading for label navigation."""
