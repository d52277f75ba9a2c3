"""Ports (interfaces) – depend on these, implement in adapters."""

from deep_truth.ports.interfaces import IModelBackend, IPipelineObserver, NullObserver

__all__ = [
    "IModelBackend",
    "IPipelineObserver",
    "NullObserver",
]
