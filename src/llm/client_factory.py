# src/llm/client_factory.py - v3
"""Factory: instantiate capabilities from a provider name.

Adapters are registered by dotted class path and imported lazily, so an
unused provider's SDK is never imported.
"""

from __future__ import annotations

import importlib
import logging
from typing import Literal

from inferlink.config.settings import Settings
from inferlink.llm.capability import BaseEmbeddingModel, BaseLanguageModel

logger = logging.getLogger(__name__)

CapabilityKind = Literal["language", "embedding"]

_OPENAI_COMPATIBLE = "inferlink.llm.adapters.openai_compatible"

# Registry of provider name -> capability kind -> adapter class path (lazy import).
_PROVIDER_REGISTRY: dict[str, dict[str, str]] = {
    "openai-compatible": {
        "language": f"{_OPENAI_COMPATIBLE}.OpenAICompatibleLanguageModel",
        "embedding": f"{_OPENAI_COMPATIBLE}.OpenAICompatibleEmbeddingModel",
    },
    "openai": {
        "language": f"{_OPENAI_COMPATIBLE}.OpenAICompatibleLanguageModel",
        "embedding": f"{_OPENAI_COMPATIBLE}.OpenAICompatibleEmbeddingModel",
    },
}

_OPENAI_COMPATIBLE_PROVIDERS = frozenset({"openai-compatible", "openai"})


class UnsupportedProviderError(ValueError):
    """Raised when a provider is not registered for the requested kind."""


def create_language_model(
    provider: str,
    model_id: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseLanguageModel:
    """Instantiate the language model adapter registered for ``provider``."""
    return _create(provider, "language", model_id, settings, **kwargs)  # type: ignore[return-value]


def create_embedding_model(
    provider: str,
    model_id: str,
    settings: Settings | None = None,
    **kwargs: object,
) -> BaseEmbeddingModel:
    """Instantiate the embedding model adapter registered for ``provider``."""
    if settings is not None and provider in _OPENAI_COMPATIBLE_PROVIDERS:
        kwargs.setdefault(
            "max_embeddings_per_call", settings.openai_compatible_max_embeddings_per_call
        )
    return _create(provider, "embedding", model_id, settings, **kwargs)  # type: ignore[return-value]


def _create(
    provider: str,
    kind: CapabilityKind,
    model_id: str,
    settings: Settings | None,
    **kwargs: object,
) -> object:
    class_path = _PROVIDER_REGISTRY.get(provider, {}).get(kind)
    if class_path is None:
        available = sorted(p for p, kinds in _PROVIDER_REGISTRY.items() if kind in kinds)
        raise UnsupportedProviderError(
            f"Unsupported {kind} provider: {provider!r}. "
            f"Available: {', '.join(available)}"
        )

    adapter_cls = _import_class(class_path)

    init_kwargs = dict(kwargs)
    init_kwargs["model_id"] = model_id

    if settings is not None and provider in _OPENAI_COMPATIBLE_PROVIDERS:
        init_kwargs.setdefault("api_key", settings.openai_compatible_api_key)
        init_kwargs.setdefault("base_url", settings.openai_compatible_base_url)
        init_kwargs.setdefault("namespace", settings.wire_namespace)
        if provider == "openai-compatible":
            init_kwargs.setdefault("provider", settings.openai_compatible_provider)
        else:
            init_kwargs.setdefault("provider", provider)

    logger.debug("Creating %s capability: provider=%s, model=%s", kind, provider, model_id)
    return adapter_cls(**init_kwargs)


def register_provider(name: str, kind: CapabilityKind, class_path: str) -> None:
    """Register a custom capability adapter.

    Args:
        name: Provider identifier.
        kind: "language" or "embedding".
        class_path: Fully qualified class path implementing the matching base class.
    """
    _PROVIDER_REGISTRY.setdefault(name, {})[kind] = class_path
    logger.info("Registered %s provider: %s -> %s", kind, name, class_path)


def _import_class(class_path: str) -> type:
    """Dynamically import a class from its fully qualified path."""
    module_path, class_name = class_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)
