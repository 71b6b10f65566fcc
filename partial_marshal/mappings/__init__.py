"""Carrier mapping types."""

from .extra import Extra, RawMessage


__all__ = ["Extra", "RawMessage"]
