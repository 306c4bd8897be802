"""Copilot agent that turns chat requests into confirmed, guarded HTTP calls."""

__version__ = "0.1.0"
