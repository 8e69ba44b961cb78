"""Process configuration for better-qdrant.

The effective config is built once at startup by layering sources (later wins):
1) Built-in defaults
2) Optional TOML file (``--config-file``)
3) Environment variables (QDRANT_URL, OPENAI_API_KEY, ...)

Secrets must not be written literally into the TOML file; use ``env:VAR``
references instead. The resulting :class:`AppConfig` is frozen and passed
explicitly to every component that needs it.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_QDRANT_URL = "http://localhost:6333"
DEFAULT_UPLOAD_DIR = "/tmp/mcp-uploads"
DEFAULT_OLLAMA_ENDPOINT = "http://localhost:11434"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_SECRET_KEY_SUFFIXES = ("api_key",)

# Environment variable -> path inside the raw config dict.
_ENV_KEYS: Dict[str, Tuple[str, ...]] = {
    "QDRANT_URL": ("qdrant_url",),
    "QDRANT_API_KEY": ("qdrant_api_key",),
    "MCP_UPLOAD_DIR": ("upload_dir",),
    "OPENAI_API_KEY": ("providers", "openai", "api_key"),
    "OPENAI_ENDPOINT": ("providers", "openai", "endpoint"),
    "OPENROUTER_API_KEY": ("providers", "openrouter", "api_key"),
    "OPENROUTER_ENDPOINT": ("providers", "openrouter", "endpoint"),
    "OLLAMA_API_KEY": ("providers", "ollama", "api_key"),
    "OLLAMA_ENDPOINT": ("providers", "ollama", "endpoint"),
    "EMBEDDING_MODEL": ("embedding_model",),
    "EMBEDDING_PROVIDER": ("embedding_provider",),
    "EMBEDDING_DIMENSION": ("embedding_dimension",),
    "EMBEDDING_CONCURRENCY": ("embedding_concurrency",),
    "SENTENCE_TRANSFORMERS_DEVICE": ("sentence_transformers_device",),
    "BETTER_QDRANT_LOG_LEVEL": ("log_level",),
}

# TOML [table] key -> flat AppConfig field.
_TOML_KEYS: Dict[Tuple[str, str], str] = {
    ("qdrant", "url"): "qdrant_url",
    ("qdrant", "api_key"): "qdrant_api_key",
    ("qdrant", "timeout"): "qdrant_timeout",
    ("qdrant", "upsert_timeout"): "qdrant_upsert_timeout",
    ("upload", "dir"): "upload_dir",
    ("embedding", "provider"): "embedding_provider",
    ("embedding", "model"): "embedding_model",
    ("embedding", "dimension"): "embedding_dimension",
    ("embedding", "concurrency"): "embedding_concurrency",
    ("embedding", "timeout"): "embedding_timeout",
    ("embedding", "device"): "sentence_transformers_device",
    ("chunking", "size"): "chunk_size",
    ("chunking", "overlap"): "chunk_overlap",
    ("logging", "level"): "log_level",
}


class ProviderSettings(BaseModel):
    """Credentials and endpoint for one embedding provider."""

    api_key: Optional[str] = None
    endpoint: Optional[str] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __repr__(self) -> str:
        masked = "***" if self.api_key else None
        return f"ProviderSettings(api_key={masked!r}, endpoint={self.endpoint!r})"


class AppConfig(BaseModel):
    """Immutable process-wide configuration."""

    qdrant_url: str = Field(default=DEFAULT_QDRANT_URL, description="Qdrant REST base URL")
    qdrant_api_key: Optional[str] = Field(default=None, description="Sent as the api-key header", repr=False)
    qdrant_timeout: float = Field(default=5.0, gt=0, description="Seconds, metadata and search calls")
    qdrant_upsert_timeout: float = Field(default=10.0, gt=0, description="Seconds, bulk upserts")

    upload_dir: Path = Field(default=Path(DEFAULT_UPLOAD_DIR), description="Sanctioned upload area")

    embedding_provider: Optional[str] = Field(
        default=None, description="Process-level provider; wins over per-call choices"
    )
    embedding_model: Optional[str] = None
    embedding_dimension: Optional[int] = Field(default=None, gt=0)
    embedding_concurrency: int = Field(default=5, gt=0)
    embedding_timeout: float = Field(default=30.0, gt=0)
    sentence_transformers_device: Optional[str] = None

    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)

    log_level: str = "WARNING"

    providers: Dict[str, ProviderSettings] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("qdrant_url")
    @classmethod
    def _validate_qdrant_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("qdrant_url is required")
        return v

    @field_validator("embedding_provider", "embedding_model", "sentence_transformers_device")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(_LOG_LEVELS)}")
        return level

    def provider_settings(self, provider: str) -> ProviderSettings:
        return self.providers.get(provider, ProviderSettings())


class ConfigLoader:
    """Load and layer better-qdrant configuration."""

    @staticmethod
    def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
        result: dict[str, Any] = dict(base)
        for key, value in overlay.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = ConfigLoader._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    @staticmethod
    def _set_nested(target: dict[str, Any], path: Tuple[str, ...], value: Any) -> None:
        current: dict[str, Any] = target
        for part in path[:-1]:
            next_val = current.get(part)
            if not isinstance(next_val, dict):
                next_val = {}
                current[part] = next_val
            current = next_val
        current[path[-1]] = value

    @staticmethod
    def _resolve_env_ref(value: Any, environ: Mapping[str, str], *, ctx: str) -> Any:
        if not isinstance(value, str):
            return value
        s = value.strip()
        if not s.startswith("env:"):
            return value
        var = s[len("env:") :].strip()
        if not var:
            raise ConfigError(f"Invalid env reference for {ctx}: 'env:' must include a variable name")
        resolved = environ.get(var)
        if resolved is None or not resolved.strip():
            raise ConfigError(f"Missing env var for secret reference: {var} ({ctx})")
        return resolved

    @staticmethod
    def _read_secret(value: Any, environ: Mapping[str, str], *, ctx: str) -> Any:
        """Secrets in files must be env: references."""
        if value is None:
            return None
        if not (isinstance(value, str) and value.strip().startswith("env:")):
            raise ConfigError(f"Secrets must not be stored in config ({ctx}); use env:VAR")
        return ConfigLoader._resolve_env_ref(value, environ, ctx=ctx)

    @staticmethod
    def _read_toml(path: Path) -> dict[str, Any]:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load TOML from {path}: {e}") from e
        return data

    @staticmethod
    def _from_toml(data: dict[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
        """Flatten the TOML tables into AppConfig field names."""
        raw: dict[str, Any] = {}
        for table_name, table in data.items():
            if table_name == "providers":
                continue
            if not isinstance(table, dict):
                raise ConfigError(f"Config key '{table_name}' must be a table")
            for key, value in table.items():
                field_name = _TOML_KEYS.get((table_name, key))
                if field_name is None:
                    raise ConfigError(f"Unknown config key: {table_name}.{key}")
                ctx = f"{table_name}.{key}"
                if key.endswith(_SECRET_KEY_SUFFIXES):
                    value = ConfigLoader._read_secret(value, environ, ctx=ctx)
                raw[field_name] = value

        providers = data.get("providers", {})
        if not isinstance(providers, dict):
            raise ConfigError("Config key 'providers' must be a table")
        for name, block in providers.items():
            if not isinstance(block, dict):
                raise ConfigError(f"providers.{name} must be a table")
            entry: dict[str, Any] = {}
            for key, value in block.items():
                ctx = f"providers.{name}.{key}"
                if key.endswith(_SECRET_KEY_SUFFIXES):
                    value = ConfigLoader._read_secret(value, environ, ctx=ctx)
                entry[key] = value
            ConfigLoader._set_nested(raw, ("providers", str(name).strip().lower()), entry)
        return raw

    @staticmethod
    def _from_environ(environ: Mapping[str, str]) -> dict[str, Any]:
        raw: dict[str, Any] = {}
        for var, path in _ENV_KEYS.items():
            value = environ.get(var)
            # Empty variables count as unset.
            if value is None or not value.strip():
                continue
            ConfigLoader._set_nested(raw, path, value.strip())
        return raw

    @staticmethod
    def load(
        config_file: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> AppConfig:
        """Build the effective :class:`AppConfig`.

        Args:
            config_file: Optional TOML file layered over the defaults.
            environ: Environment mapping; defaults to ``os.environ``.

        Raises:
            ConfigError: If any layer is unreadable or the merged values are invalid.
        """
        env = os.environ if environ is None else environ

        merged: dict[str, Any] = {
            "providers": {"ollama": {"endpoint": DEFAULT_OLLAMA_ENDPOINT}},
        }
        if config_file is not None:
            file_layer = ConfigLoader._from_toml(ConfigLoader._read_toml(Path(config_file)), env)
            merged = ConfigLoader._deep_merge(merged, file_layer)
            logger.debug("Loaded config file %s", config_file)
        merged = ConfigLoader._deep_merge(merged, ConfigLoader._from_environ(env))

        try:
            config = AppConfig.model_validate(merged)
        except PydanticValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        if config.chunk_overlap >= config.chunk_size:
            raise ConfigError("chunk_overlap must be < chunk_size")
        return config
