"""Streaming inference and tool orchestration for text roleplaying."""

__version__ = "0.1.0"
