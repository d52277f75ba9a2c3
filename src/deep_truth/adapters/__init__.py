"""
Adapters – concrete implementations of ports.
build_backend picks the model provider from Settings; the pipeline only ever
sees the IModelBackend it returns.
"""

from deep_truth.adapters.articles import load_articles
from deep_truth.adapters.observers import LoggingObserver, RecordingObserver
from deep_truth.config import Settings
from deep_truth.ports.interfaces import IModelBackend


def build_backend(settings: Settings) -> IModelBackend:
    """Instantiate the configured provider. SDKs are imported only for the one selected."""
    if settings.provider == "gemini":
        from deep_truth.adapters.gemini import GeminiBackend
        return GeminiBackend(api_key=settings.gemini_api_key, model=settings.gemini_model)

    from deep_truth.adapters.ollama import OllamaBackend
    return OllamaBackend(
        host=settings.ollama_host,
        model=settings.ollama_model,
        temperature=settings.ollama_temperature,
        num_predict=settings.ollama_num_predict,
    )


__all__ = [
    "LoggingObserver",
    "RecordingObserver",
    "build_backend",
    "load_articles",
]
