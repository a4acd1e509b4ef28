"""Provision hosts through pluggable drivers and register them as managed machines."""

__version__ = "0.1.0"
