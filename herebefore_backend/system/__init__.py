"""System layer: OS-facing collaborators and runtime lifecycle."""

from .runtime import Runtime, get_runtime, init_runtime, shutdown_runtime, start_runtime

__all__ = [
    "Runtime",
    "get_runtime",
    "init_runtime",
    "shutdown_runtime",
    "start_runtime",
]
