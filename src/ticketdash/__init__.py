"""Ticket evaluation dashboard: aggregation and chat views over scored support tickets."""

__version__ = "0.1.0"
