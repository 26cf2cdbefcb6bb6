"""Configuration model for filo."""

from pathlib import Path
from typing import Optional
import json
from dataclasses import dataclass, field

from ..exceptions import ConfigurationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def default_config_dir() -> Path:
    """Per-user configuration directory."""
    return Path.home() / ".config" / "filo"


def default_rulesets_path() -> Path:
    """Location of the ruleset file when none is configured."""
    return default_config_dir() / "rulesets" / "filo-rules.yaml"


def default_config_path() -> Path:
    return default_config_dir() / "config.json"


@dataclass
class Config:
    """Main configuration model."""
    rules_file: Path = field(default_factory=default_rulesets_path)
    log_level: str = "WARNING"
    log_file: Optional[Path] = None
    report_dir: Optional[Path] = None

    def __post_init__(self) -> None:
        self.log_level = self.log_level.upper()
        if self.log_level not in LOG_LEVELS:
            raise ConfigurationError(
                f"Invalid log level '{self.log_level}', expected one of {', '.join(LOG_LEVELS)}"
            )

    @classmethod
    def default(cls) -> "Config":
        """Create a configuration with every value at its default."""
        return cls()


def _config_to_dict(config: Config) -> dict:
    return {
        "rules_file": str(config.rules_file),
        "log_level": config.log_level,
        "log_file": str(config.log_file) if config.log_file else None,
        "report_dir": str(config.report_dir) if config.report_dir else None,
    }


def _dict_to_config(data: dict) -> Config:
    kwargs = {}
    for key in ("rules_file", "log_file", "report_dir"):
        if data.get(key):
            kwargs[key] = Path(data[key]).expanduser()
    if data.get("log_level"):
        kwargs["log_level"] = str(data["log_level"])
    return Config(**kwargs)


def load_config(config_path: Path) -> Config:
    """Load configuration from JSON file."""
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read configuration {config_path}: {e}") from e

    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration {config_path} must be a JSON object")
    return _dict_to_config(config_data)


def save_config(config: Config, config_path: Path) -> None:
    """Save configuration to JSON file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, 'w', encoding='utf-8') as f:
        json.dump(_config_to_dict(config), f, indent=2)


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    save_config(Config.default(), config_path)
