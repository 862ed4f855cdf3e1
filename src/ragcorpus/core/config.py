import json
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

UrlStyle = Literal["plain", "pretty"]


class Settings(BaseSettings):
    # Build inputs/outputs
    RAG_CONFIG: str = "rag.config.json"  # Corpus config file
    RAG_OUT_DIR: str = "rag"  # Where chunks.jsonl, pages.json, .meta.json go

    # Pipeline configuration
    BUILD_WORKERS: int = 4  # Pages processed concurrently
    TOKEN_ENCODING: str = "cl100k_base"  # tiktoken encoding name

    # Observability & UI
    LOG_FORMAT: str = "auto"  # json|plain|auto
    LOG_LEVEL: str = "INFO"  # Minimum level for build events
    PROGRESS: bool = True  # Show progress bar
    NO_COLOR: bool = False  # Disable colored output

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


SETTINGS = Settings()


class ChunkConfig(BaseModel):
    """Token budget for the segmenter."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    max_tokens: int = Field(450, alias="maxTokens", gt=0)
    min_tokens: int = Field(120, alias="minTokens", ge=0)
    overlap_paragraphs: int = Field(0, alias="overlapParagraphs", ge=0)

    @model_validator(mode="after")
    def _check_bounds(self) -> "ChunkConfig":
        if self.min_tokens > self.max_tokens:
            raise ValueError(f"minTokens ({self.min_tokens}) must not exceed maxTokens ({self.max_tokens})")
        return self


class CorpusConfig(BaseModel):
    """Contents of ``rag.config.json`` (camelCase keys, snake_case attributes)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dist_dir: str = Field("_site", alias="distDir")
    base_url: str = Field(..., alias="baseUrl", min_length=1)
    include: List[str] = Field(default_factory=lambda: ["**/*.html"])
    exclude: List[str] = Field(default_factory=list)
    url_style: UrlStyle = Field("plain", alias="urlStyle")
    chunk: ChunkConfig = Field(default_factory=ChunkConfig)
    min_text_chars: int = Field(80, alias="minTextChars", ge=0)
    encoding: Optional[str] = None

    @field_validator("url_style", mode="before")
    @classmethod
    def _legacy_url_style(cls, value: Any) -> Any:
        # "html" is the historical name for keeping the .html suffix
        if value == "html":
            return "plain"
        return value

    def echo(self) -> Dict[str, Any]:
        """Configuration as written back into build metadata."""
        return {
            "baseUrl": self.base_url,
            "urlStyle": self.url_style,
            "include": list(self.include),
            "exclude": list(self.exclude),
            "minTextChars": self.min_text_chars,
            "chunk": self.chunk.model_dump(by_alias=True),
        }

    def resolved_encoding(self, settings: Optional[Settings] = None) -> str:
        """tiktoken encoding name; TOKEN_ENCODING set in the environment beats the file."""
        settings = settings or SETTINGS
        if "TOKEN_ENCODING" in settings.model_fields_set:
            return settings.TOKEN_ENCODING
        return self.encoding or settings.TOKEN_ENCODING


def _read_config_file(config_path: Path) -> Dict[str, Any]:
    if config_path.suffix in [".yaml", ".yml"]:
        import yaml  # type: ignore[import-untyped]

        with open(config_path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    if config_path.suffix == ".toml":
        import tomllib

        with open(config_path, "rb") as f:
            return tomllib.load(f)
    with open(config_path, encoding="utf-8") as f:
        return json.load(f)


def load_corpus_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> CorpusConfig:
    """Load corpus config with config file -> env -> CLI precedence.

    ``overrides`` holds CLI values keyed by attribute name; ``None`` values
    are ignored. Chunk overrides use the ``chunk.`` prefix, e.g.
    ``{"chunk.max_tokens": 600}``.
    """
    config_path = Path(config_file or SETTINGS.RAG_CONFIG)
    if not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}")

    try:
        config_data = _read_config_file(config_path)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigError(f"{config_path} must contain an object at the top level")

    try:
        config = CorpusConfig.model_validate(config_data)
        if overrides:
            config = _apply_overrides(config, overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {config_path}: {e}") from e

    return config


def _apply_overrides(config: CorpusConfig, overrides: Dict[str, Any]) -> CorpusConfig:
    top: Dict[str, Any] = {}
    chunk: Dict[str, Any] = {}
    for key, value in overrides.items():
        if value is None:
            continue
        if key.startswith("chunk."):
            chunk[key.split(".", 1)[1]] = value
        else:
            top[key] = value

    data = config.model_dump()
    data.update(top)
    data["chunk"].update(chunk)
    # Re-validate so overrides obey the same bounds as file values
    return CorpusConfig.model_validate(data)
