"""A2A server exposing a write and review story agent."""

__version__ = "0.1.0"
