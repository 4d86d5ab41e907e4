"""Automatic compounding of staking rewards over an in-memory store."""

__version__ = "0.1.0"

__all__ = [
    "addresses",
    "errors",
    "genesis",
    "keeper",
    "models",
    "msg_server",
    "query",
    "store",
]