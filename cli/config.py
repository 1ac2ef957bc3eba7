"""
CLI Configuration Management
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv


@dataclass
class CLIConfig:
    """Configuration for the BroDesk CLI"""

    # API settings
    api_base_url: str = "http://localhost:8000/api/v1"
    timeout: float = 30.0

    # Output settings
    verbose: bool = False

    # Session settings (tokens from the last login)
    session_file: str = "session.json"

    # Paths
    config_dir: str = field(default_factory=lambda: str(Path.home() / ".brodesk"))

    def __post_init__(self):
        """Initialize paths and directories"""
        Path(self.config_dir).mkdir(parents=True, exist_ok=True)

        if not os.path.isabs(self.session_file):
            self.session_file = str(Path(self.config_dir) / self.session_file)

    @classmethod
    def load_default(cls, env_file: Optional[str] = None) -> "CLIConfig":
        """Defaults, overridden by a .env file and then by environment variables"""
        load_dotenv(env_file)

        config_dir = os.environ.get("BRODESK_CONFIG_DIR")
        config = cls(config_dir=config_dir) if config_dir else cls()
        config._load_from_env()
        return config

    def _load_from_env(self) -> None:
        """Load configuration from environment variables"""
        env_mappings = {
            "BRODESK_API_URL": "api_base_url",
            "BRODESK_TIMEOUT": ("timeout", float),
            "BRODESK_VERBOSE": ("verbose", lambda x: x.lower() == "true"),
        }

        for env_var, mapping in env_mappings.items():
            value = os.environ.get(env_var)
            if value:
                if isinstance(mapping, tuple):
                    attr, converter = mapping
                    setattr(self, attr, converter(value))
                else:
                    setattr(self, mapping, value)

        self.api_base_url = self.api_base_url.rstrip("/")
