"""Social insights package namespace."""

from importlib import import_module
from typing import Any

__all__ = [
    "AppConfig",
    "ChatAssistant",
    "DatasetPipeline",
    "DatasetSession",
    "HeaderReconciler",
    "RecordNormalizer",
    "SocialInsightsDatabase",
    "select_context",
    "summarize",
]

_EXPORTS = {
    "AppConfig": "config",
    "ChatAssistant": "chat",
    "DatasetPipeline": "pipeline",
    "DatasetSession": "session",
    "HeaderReconciler": "headers",
    "RecordNormalizer": "normalizer",
    "SocialInsightsDatabase": "database",
    "select_context": "context",
    "summarize": "analytics",
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module = import_module(f"{__name__}.{_EXPORTS[name]}")
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(__all__)
