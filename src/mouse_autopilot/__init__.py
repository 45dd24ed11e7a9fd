"""Scheduled pointer automation: task registry, timers, execution engine and persistence."""

__version__ = "0.1.0"
