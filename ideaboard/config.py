import os
import logging
from pathlib import Path
from typing import Any, Dict, Optional
import yaml
from blinker import Signal
from platformdirs import user_config_dir


logger = logging.getLogger(__name__)


CONFIG_DIR = Path(user_config_dir("ideaboard"))
CONFIG_FILE = CONFIG_DIR / "config.yaml"


def getflag(name, default=False):
    default = "true" if default else "false"
    return os.environ.get(name, default).lower() in ("true", "1")


class Config:
    """
    Tunables of the interaction engine. All pixel values are device pixels
    of the canvas coordinate frame.
    """

    def __init__(self):
        self.min_size_px: float = 48.0
        self.default_size: float = 33.3  # in percent
        self.move_delta_base: float = 1.0
        self.move_delta_increment: float = 0.4
        self.resize_delta_base: float = 1.0
        self.resize_delta_increment: float = 0.2
        self.focus_guard_ms: float = 100.0
        self.knob_size_px: float = 16.0
        self.changed = Signal()

    def set(self, **values: Any):
        """Updates one or more tunables and notifies listeners once."""
        for key, value in values.items():
            if not hasattr(self, key) or key == "changed":
                raise ValueError(f"Unknown config key '{key}'")
            setattr(self, key, _positive(key, value))
        self.changed.send(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_size_px": self.min_size_px,
            "default_size": self.default_size,
            "move_delta_base": self.move_delta_base,
            "move_delta_increment": self.move_delta_increment,
            "resize_delta_base": self.resize_delta_base,
            "resize_delta_increment": self.resize_delta_increment,
            "focus_guard_ms": self.focus_guard_ms,
            "knob_size_px": self.knob_size_px,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        config = cls()
        for key, default in config.to_dict().items():
            setattr(config, key, _positive(key, data.get(key, default)))
        return config


def _positive(key: str, value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValueError(
            f"Config value '{key}' must be a number: {value!r}"
        ) from e
    if number < 0:
        raise ValueError(f"Config value '{key}' must not be negative")
    return number


class ConfigManager:
    def __init__(self, filepath: Path = CONFIG_FILE):
        self.filepath = Path(filepath)
        self.config: Config = Config()

        self.load_config()

    def save(self):
        self.filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(self.filepath, "w") as f:
            yaml.safe_dump(self.config.to_dict(), f)

    def load_config(self) -> Config:
        if not self.filepath.exists():
            self.config = Config()  # Return a default config
            return self.config

        logger.info(f"Loading configuration from {self.filepath}")
        with open(self.filepath, "r") as f:
            data = yaml.safe_load(f)
        if not data:
            self.config = Config()
            return self.config
        self.config = Config.from_dict(data)
        return self.config


config_mgr: Optional[ConfigManager] = None


def get_config() -> Config:
    """
    Returns the shared configuration, loading it from CONFIG_FILE on first
    use. Set IDEABOARD_NO_CONFIG=1 to always use built-in defaults.
    """
    global config_mgr
    if getflag("IDEABOARD_NO_CONFIG"):
        return Config()
    if config_mgr is None:
        config_mgr = ConfigManager(CONFIG_FILE)
    return config_mgr.config
