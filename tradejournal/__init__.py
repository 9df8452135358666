"""Personal trade journal: trade log, dashboard analytics, daily notes and AI coaching."""

__version__ = "0.1.0"
