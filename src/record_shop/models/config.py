"""Configuration model for the record shop."""

import json
import os
from dataclasses import asdict, dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..exceptions import ConfigurationError

ENV_DB_PATH = "RECORD_SHOP_DB_PATH"
ENV_CACHE_TTL = "RECORD_SHOP_CACHE_TTL"
ENV_MUSICBRAINZ_URL = "RECORD_SHOP_MUSICBRAINZ_URL"


@dataclass
class DatabaseConfig:
    """Configuration for the SQLite database."""
    path: Path = Path("record_shop.db")
    busy_timeout: float = 30.0  # seconds


@dataclass
class CacheConfig:
    """Configuration for the record list cache."""
    ttl_seconds: int = 60
    max_entries: int = 100


@dataclass
class MusicBrainzConfig:
    """Configuration for tracklist lookups."""
    enabled: bool = True
    base_url: str = "https://musicbrainz.org/ws/2"
    user_agent: str = "RecordShop/1.0 (records@example.com)"
    rate_limit: float = 1.0  # requests per second
    timeout: int = 10


@dataclass
class Config:
    """Main configuration model."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    musicbrainz: MusicBrainzConfig = field(default_factory=MusicBrainzConfig)

    @classmethod
    def default(cls) -> "Config":
        """Create a default configuration."""
        return cls()

    def validate(self) -> None:
        """Raise ConfigurationError if any value is out of range."""
        if self.cache.ttl_seconds < 0:
            raise ConfigurationError("cache.ttl_seconds must not be negative")
        if self.cache.max_entries < 1:
            raise ConfigurationError("cache.max_entries must be at least 1")
        if self.database.busy_timeout <= 0:
            raise ConfigurationError("database.busy_timeout must be positive")
        if self.musicbrainz.rate_limit <= 0:
            raise ConfigurationError("musicbrainz.rate_limit must be positive")
        if not self.musicbrainz.base_url:
            raise ConfigurationError("musicbrainz.base_url must not be empty")


def _dataclass_to_dict(obj):
    """Convert dataclass to dict recursively."""
    if is_dataclass(obj):
        return {key: _dataclass_to_dict(value) for key, value in asdict(obj).items()}
    elif isinstance(obj, Path):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: _dataclass_to_dict(value) for key, value in obj.items()}
    else:
        return obj


def _dict_to_dataclass(data, dataclass_type):
    """Convert dict to dataclass recursively, rejecting unknown keys."""
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected an object for {dataclass_type.__name__}, got {type(data).__name__}"
        )

    field_types = {f.name: f.type for f in fields(dataclass_type)}
    unknown = set(data) - set(field_types)
    if unknown:
        raise ConfigurationError(
            f"Unknown {dataclass_type.__name__} keys: {', '.join(sorted(unknown))}"
        )

    kwargs = {}
    for field_name, field_type in field_types.items():
        if field_name not in data:
            continue
        value = data[field_name]
        if is_dataclass(field_type):
            kwargs[field_name] = _dict_to_dataclass(value, field_type)
        elif field_type is Path:
            kwargs[field_name] = Path(value)
        else:
            kwargs[field_name] = _coerce(value, field_type, field_name)

    return dataclass_type(**kwargs)


def _coerce(value: Any, field_type: type, field_name: str) -> Any:
    if field_type is bool:
        if not isinstance(value, bool):
            raise ConfigurationError(f"{field_name} must be a boolean")
        return value
    try:
        return field_type(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {field_name}: {value!r}") from e


def apply_env_overrides(config: Config, env: Optional[Mapping[str, str]] = None) -> Config:
    """Apply RECORD_SHOP_* environment variables on top of a config."""
    env = os.environ if env is None else env

    if env.get(ENV_DB_PATH):
        config.database.path = Path(env[ENV_DB_PATH])
    if env.get(ENV_CACHE_TTL):
        config.cache.ttl_seconds = _coerce(env[ENV_CACHE_TTL], int, ENV_CACHE_TTL)
    if env.get(ENV_MUSICBRAINZ_URL):
        config.musicbrainz.base_url = env[ENV_MUSICBRAINZ_URL]

    return config


def load_config(
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> Config:
    """Load configuration from a JSON file (if given) plus environment overrides."""
    if config_path is None:
        config = Config.default()
    else:
        try:
            with open(config_path, 'r') as f:
                config_data = json.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {config_path}: {e}") from e
        config = _dict_to_dataclass(config_data, Config)

    config = apply_env_overrides(config, env)
    config.validate()
    return config


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_dict: Dict[str, Any] = _dataclass_to_dict(config)

    with open(config_path, 'w') as f:
        json.dump(config_dict, f, indent=2)
