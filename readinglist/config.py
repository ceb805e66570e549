"""
Configuration management for the reading list.

Handles loading and saving user configuration from:
- XDG config directory: ~/.config/readinglist/config.json
- Fallback: ~/.readinglist/config.json
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .classifier import Segment

logger = logging.getLogger(__name__)


@dataclass
class CLIConfig:
    """CLI default options."""
    verbose: bool = False
    color: bool = True
    page_size: int = 50
    default_segment: str = "to-read"


@dataclass
class LibraryConfig:
    """Library-related settings."""
    default_path: Optional[str] = None


@dataclass
class ReadingListConfig:
    """Main configuration."""
    cli: CLIConfig = field(default_factory=CLIConfig)
    library: LibraryConfig = field(default_factory=LibraryConfig)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cli": asdict(self.cli),
            "library": asdict(self.library),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ReadingListConfig':
        return cls(
            cli=CLIConfig(**data.get("cli", {})),
            library=LibraryConfig(**data.get("library", {})),
        )


def get_config_path() -> Path:
    """
    Get configuration file path.

    1. $XDG_CONFIG_HOME/readinglist/config.json (usually ~/.config/readinglist/config.json)
    2. Fallback: ~/.readinglist/config.json
    """
    xdg = os.environ.get("XDG_CONFIG_HOME")
    xdg_config_home = Path(xdg) if xdg else Path.home() / ".config"
    if xdg_config_home.exists():
        config_dir = xdg_config_home / "readinglist"
    else:
        config_dir = Path.home() / ".readinglist"

    return config_dir / "config.json"


def load_config() -> ReadingListConfig:
    """
    Load configuration from file.

    Returns:
        ReadingListConfig with loaded values, or defaults if the file is
        missing or unreadable
    """
    config_path = get_config_path()

    if not config_path.exists():
        return ReadingListConfig()

    try:
        with open(config_path, 'r') as f:
            data = json.load(f)
        return ReadingListConfig.from_dict(data)
    except (json.JSONDecodeError, OSError, TypeError) as e:
        logger.warning(f"Failed to load config from {config_path}: {e}; using defaults")
        return ReadingListConfig()


def save_config(config: ReadingListConfig) -> Path:
    """Save configuration to file and return its path."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config.to_dict(), f, indent=2)

    logger.debug(f"Configuration saved to {config_path}")
    return config_path


def update_config(
    cli_verbose: Optional[bool] = None,
    cli_color: Optional[bool] = None,
    cli_page_size: Optional[int] = None,
    cli_default_segment: Optional[str] = None,
    library_default_path: Optional[str] = None,
) -> ReadingListConfig:
    """
    Update configuration.

    Only updates provided values, leaving others unchanged.

    Raises:
        ValueError: On a non-positive page size or unknown segment name
    """
    config = load_config()

    if cli_verbose is not None:
        config.cli.verbose = cli_verbose
    if cli_color is not None:
        config.cli.color = cli_color
    if cli_page_size is not None:
        if cli_page_size < 1:
            raise ValueError("Page size must be positive")
        config.cli.page_size = cli_page_size
    if cli_default_segment is not None:
        Segment.from_name(cli_default_segment)
        config.cli.default_segment = cli_default_segment

    if library_default_path is not None:
        config.library.default_path = library_default_path

    save_config(config)
    return config
