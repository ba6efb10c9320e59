"""Bridge a callback-driven device position service into asyncio tasks."""

__version__ = "0.1.0"
