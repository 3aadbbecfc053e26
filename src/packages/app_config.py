import copy
import os
from pathlib import Path
from typing import Any, Dict

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover
    import toml as tomllib  # type: ignore

from src.packages.memory_channel import DEFAULT_CHANNEL
from src.packages.page_size import DEFAULT_API_LEVEL_THRESHOLD

DEFAULT_CONFIG: Dict[str, Any] = {
    "memory_channel": {
        "name": DEFAULT_CHANNEL,
        "api_level_threshold": DEFAULT_API_LEVEL_THRESHOLD,
        "api_level": None,
    }
}


class AppConfig:
    """Simple application configuration loader.

    Attempts to load a TOML configuration file and merges it over
    ``DEFAULT_CONFIG`` so missing keys never raise ``KeyError``.
    ``MEMORY_CHANNEL`` and ``PLATFORM_API_LEVEL`` override the file.
    """

    def __init__(self, config_path: str = "app_config.toml") -> None:
        self.config_path = Path(config_path)

    def load_toml_config(self) -> Dict[str, Any]:
        config = copy.deepcopy(DEFAULT_CONFIG)
        if self.config_path.exists():
            with open(self.config_path, "rb") as f:
                loaded = tomllib.load(f)
            for section, values in loaded.items():
                if isinstance(values, dict) and isinstance(config.get(section), dict):
                    config[section].update(values)
                else:
                    config[section] = values
        channel_cfg = config["memory_channel"]
        env_channel = os.getenv("MEMORY_CHANNEL")
        if env_channel:
            channel_cfg["name"] = env_channel
        env_level = os.getenv("PLATFORM_API_LEVEL")
        if env_level:
            channel_cfg["api_level"] = env_level
        return config
