"""Embedding function catalog and chromadb embedding function construction."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from chromadb.utils import embedding_functions as chroma_ef

from vector_desk.core.logging import get_logger
from vector_desk.models.entities import CollectionSummary, EmbeddingFunctionSpec

logger = get_logger(__name__)


@dataclass(slots=True, frozen=True)
class EmbeddingFunctionConfig:
    id: str
    label: str
    type: str
    model_name: str
    dimensions: int | None
    group: str
    url: str | None = None

    def to_spec(self) -> EmbeddingFunctionSpec:
        return EmbeddingFunctionSpec(type=self.type, model_name=self.model_name, url=self.url)


EMBEDDING_FUNCTIONS: tuple[EmbeddingFunctionConfig, ...] = (
    EmbeddingFunctionConfig("default", "Default (MiniLM)", "default", "all-MiniLM-L6-v2", 384, "Local"),
    EmbeddingFunctionConfig(
        "ollama-nomic", "Ollama (nomic-embed-text)", "ollama", "nomic-embed-text", 768, "Local",
        url="http://localhost:11434",
    ),
    EmbeddingFunctionConfig(
        "ollama-mxbai", "Ollama (mxbai-embed-large)", "ollama", "mxbai-embed-large", 1024, "Local",
        url="http://localhost:11434",
    ),
    EmbeddingFunctionConfig(
        "ollama-all-minilm", "Ollama (all-minilm)", "ollama", "all-minilm", 384, "Local",
        url="http://localhost:11434",
    ),
    EmbeddingFunctionConfig("huggingface-server", "HuggingFace Server", "huggingface-server", "custom", None, "Local", url=""),
    EmbeddingFunctionConfig("openai-3-small", "OpenAI 3-Small", "openai", "text-embedding-3-small", 1536, "OpenAI"),
    EmbeddingFunctionConfig("openai-3-large", "OpenAI 3-Large", "openai", "text-embedding-3-large", 3072, "OpenAI"),
    EmbeddingFunctionConfig("openai-ada", "OpenAI Ada 002", "openai", "text-embedding-ada-002", 1536, "OpenAI"),
    EmbeddingFunctionConfig("cohere-embed-v3", "Cohere English v3", "cohere", "embed-english-v3.0", 1024, "Cohere"),
    EmbeddingFunctionConfig(
        "cohere-embed-v3-multilingual", "Cohere Multilingual v3", "cohere", "embed-multilingual-v3.0", 1024, "Cohere"
    ),
    EmbeddingFunctionConfig("jina-embeddings-v3", "Jina v3", "jina", "jina-embeddings-v3", 1024, "Jina"),
    EmbeddingFunctionConfig("voyage-3", "Voyage 3", "voyageai", "voyage-3", 1024, "Voyage"),
    EmbeddingFunctionConfig("voyage-3-lite", "Voyage 3 Lite", "voyageai", "voyage-3-lite", 512, "Voyage"),
)

DEFAULT_EMBEDDING_FUNCTION = EMBEDDING_FUNCTIONS[0]

_API_KEY_ENV = {
    "openai": "OPENAI_API_KEY",
    "cohere": "COHERE_API_KEY",
    "jina": "JINA_API_KEY",
    "voyageai": "VOYAGE_API_KEY",
}


def get_embedding_function(ef_id: str) -> EmbeddingFunctionConfig | None:
    for config in EMBEDDING_FUNCTIONS:
        if config.id == ef_id:
            return config
    return None


def match_collection_embedding(collection: CollectionSummary) -> str:
    """Pick the catalog id that best matches a collection's server-side configuration."""
    ef = collection.embedding_function
    if not ef:
        return DEFAULT_EMBEDDING_FUNCTION.id
    ef_type = "openai" if ef.get("name") == "openai" else "default"
    model_name = (ef.get("config") or {}).get("model_name")
    for config in EMBEDDING_FUNCTIONS:
        if config.type == ef_type and config.model_name == model_name:
            return config.id
    for config in EMBEDDING_FUNCTIONS:
        if config.type == ef_type:
            return config.id
    return DEFAULT_EMBEDDING_FUNCTION.id


def _api_key_kwargs(ef_type: str) -> dict[str, Any]:
    env_var = _API_KEY_ENV.get(ef_type)
    if env_var and os.environ.get(env_var):
        return {"api_key": os.environ[env_var]}
    return {}


@lru_cache(maxsize=32)
def _build(ef_type: str, model_name: str | None, url: str | None) -> Any:
    if ef_type == "default":
        return chroma_ef.DefaultEmbeddingFunction()
    if ef_type == "openai":
        return chroma_ef.OpenAIEmbeddingFunction(model_name=model_name, **_api_key_kwargs(ef_type))
    if ef_type == "ollama":
        return chroma_ef.OllamaEmbeddingFunction(url=url or "http://localhost:11434", model_name=model_name)
    if ef_type == "huggingface-server":
        if not url:
            raise ValueError("HuggingFace Server embedding function requires a url")
        return chroma_ef.HuggingFaceEmbeddingServer(url=url)
    if ef_type == "cohere":
        return chroma_ef.CohereEmbeddingFunction(model_name=model_name, **_api_key_kwargs(ef_type))
    if ef_type == "jina":
        return chroma_ef.JinaEmbeddingFunction(model_name=model_name, **_api_key_kwargs(ef_type))
    if ef_type == "voyageai":
        return chroma_ef.VoyageAIEmbeddingFunction(model_name=model_name, **_api_key_kwargs(ef_type))
    raise ValueError(f"Unsupported embedding function type: {ef_type}")


def build_embedding_function(spec: EmbeddingFunctionSpec | None) -> Any:
    """Return a chromadb embedding function for ``spec`` (None means server default)."""
    if spec is None:
        return None
    logger.debug("Building embedding function %s/%s", spec.type, spec.model_name)
    return _build(spec.type, spec.model_name, spec.url)


__all__ = [
    "EmbeddingFunctionConfig",
    "EMBEDDING_FUNCTIONS",
    "DEFAULT_EMBEDDING_FUNCTION",
    "get_embedding_function",
    "match_collection_embedding",
    "build_embedding_function",
]
