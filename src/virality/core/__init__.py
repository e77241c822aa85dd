"""Shared types, configuration and errors."""
