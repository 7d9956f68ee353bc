"""Logging, configuration and error handling for linestream."""
