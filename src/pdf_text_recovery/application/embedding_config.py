"""Parse-and-validate boundary for embedding settings stored in the database."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class EmbeddingProvider(StrEnum):
    """Supported embedding providers."""

    OPENAI = "openai"
    COHERE = "cohere"
    HUGGINGFACE = "huggingface"


TNumber = TypeVar("TNumber", int, float)

DEFAULT_PROVIDER = EmbeddingProvider.OPENAI
DEFAULT_BATCH_SIZE = 10
DEFAULT_SIMILARITY_THRESHOLD = 0.7
DEFAULT_VECTOR_STORAGE = "supabase"

DEFAULT_MODELS: dict[EmbeddingProvider, str] = {
    EmbeddingProvider.OPENAI: "text-embedding-3-small",
    EmbeddingProvider.COHERE: "embed-english-v3.0",
    EmbeddingProvider.HUGGINGFACE: "sentence-transformers/all-MiniLM-L6-v2",
}

KNOWN_MODELS: dict[EmbeddingProvider, frozenset[str]] = {
    EmbeddingProvider.OPENAI: frozenset(
        {"text-embedding-3-small", "text-embedding-3-large", "text-embedding-ada-002"}
    ),
    EmbeddingProvider.COHERE: frozenset(
        {
            "embed-english-v3.0",
            "embed-multilingual-v3.0",
            "embed-english-light-v3.0",
            "embed-multilingual-light-v3.0",
        }
    ),
    EmbeddingProvider.HUGGINGFACE: frozenset(
        {
            "sentence-transformers/all-MiniLM-L6-v2",
            "sentence-transformers/all-mpnet-base-v2",
            "sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2",
        }
    ),
}

_PROVIDER_LABELS: dict[EmbeddingProvider, str] = {
    EmbeddingProvider.OPENAI: "OpenAI",
    EmbeddingProvider.COHERE: "Cohere",
    EmbeddingProvider.HUGGINGFACE: "Hugging Face",
}


class EmbeddingConfig(BaseModel):
    """Validated embedding configuration."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    provider: EmbeddingProvider
    model: str = Field(min_length=1)
    api_key: str = Field(min_length=1, repr=False)
    batch_size: int = Field(gt=0)
    similarity_threshold: float = Field(ge=0.0, le=1.0)
    vector_storage: str = DEFAULT_VECTOR_STORAGE
    metadata: dict[str, object] = Field(default_factory=dict)


@dataclass(frozen=True)
class ConfigValidationResult:
    """Structured outcome of parsing raw embedding settings."""

    config: EmbeddingConfig | None
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return self.config is not None and not self.errors


def parse_embedding_config(raw: Mapping[str, object]) -> ConfigValidationResult:
    """Convert an untyped settings row into ``EmbeddingConfig`` without raising.

    Recognised keys are ``provider``, ``specificModelId``, ``apiKey``,
    ``providerApiKeys``, ``embeddingBatchSize``, ``similarityThreshold``,
    ``embeddingMetadata`` and ``vectorStorage``. A provider-specific key from
    ``providerApiKeys`` wins over the general ``apiKey``.
    """
    errors: list[str] = []
    warnings: list[str] = []

    provider_name = _text(raw.get("provider")) or DEFAULT_PROVIDER.value
    try:
        provider = EmbeddingProvider(provider_name.lower())
    except ValueError:
        return ConfigValidationResult(
            config=None,
            errors=(f"Unsupported embedding provider: {provider_name}",),
        )

    model = _text(raw.get("specificModelId")) or DEFAULT_MODELS[provider]
    api_key = _provider_api_key(raw.get("providerApiKeys"), provider) or _text(raw.get("apiKey"))
    if not api_key:
        errors.append(f"API key is required for {provider.value} provider")

    batch_size = _parse_number(
        raw.get("embeddingBatchSize"),
        default=DEFAULT_BATCH_SIZE,
        convert=int,
        label="Batch size",
        errors=errors,
    )
    if batch_size is not None and batch_size <= 0:
        errors.append("Batch size must be greater than 0")

    threshold = _parse_number(
        raw.get("similarityThreshold"),
        default=DEFAULT_SIMILARITY_THRESHOLD,
        convert=float,
        label="Similarity threshold",
        errors=errors,
    )
    if threshold is not None and not 0.0 <= threshold <= 1.0:
        errors.append("Similarity threshold must be between 0 and 1")

    if model not in KNOWN_MODELS[provider]:
        warnings.append(
            f'Model "{model}" may not be a valid {_PROVIDER_LABELS[provider]} embedding model'
        )

    if errors:
        return ConfigValidationResult(config=None, errors=tuple(errors), warnings=tuple(warnings))

    metadata = raw.get("embeddingMetadata")
    try:
        config = EmbeddingConfig(
            provider=provider,
            model=model,
            api_key=api_key,
            batch_size=batch_size,
            similarity_threshold=threshold,
            vector_storage=_text(raw.get("vectorStorage")) or DEFAULT_VECTOR_STORAGE,
            metadata=dict(metadata) if isinstance(metadata, Mapping) else {},
        )
    except ValidationError as exc:
        messages = tuple(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return ConfigValidationResult(config=None, errors=messages, warnings=tuple(warnings))

    return ConfigValidationResult(config=config, warnings=tuple(warnings))


def configuration_status_message(result: ConfigValidationResult) -> str:
    """Return one-line human-readable summary of a validation result."""
    if not result.is_valid:
        return f"Configuration is invalid: {', '.join(result.errors)}"
    if result.warnings:
        return f"Configuration is valid but has warnings: {', '.join(result.warnings)}"
    return "Configuration is valid and ready for use"


def _text(value: object) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def _provider_api_key(value: object, provider: EmbeddingProvider) -> str:
    if not isinstance(value, Mapping):
        return ""
    return _text(value.get(provider.value))


def _parse_number(
    value: object,
    *,
    default: TNumber,
    convert: type[TNumber],
    label: str,
    errors: list[str],
) -> TNumber | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    if isinstance(value, bool):
        errors.append(f"{label} must be a number")
        return None
    try:
        return convert(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        errors.append(f"{label} must be a number")
        return None
