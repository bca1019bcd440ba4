"""Configuration management for polyamgraph-mcp."""

import copy
import json
from pathlib import Path
from typing import Dict, Any, Optional

from .constants import (
    DEFAULT_AUTH_TIMEOUT_SECONDS,
    DEFAULT_LAYOUT,
    DEFAULT_RELATIONSHIP_TYPE,
    RELATIONSHIP_TYPES,
)


class ConfigManager:
    """Manages configuration for the network view and session handling."""

    # Default config location
    DEFAULT_CONFIG_DIR = Path.home() / ".config" / "polyamgraph-mcp"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.json"

    # Default configuration
    DEFAULT_CONFIG = {
        "layout": dict(DEFAULT_LAYOUT),
        "auth_timeout_seconds": DEFAULT_AUTH_TIMEOUT_SECONDS,
        "default_relationship_type": DEFAULT_RELATIONSHIP_TYPE,
        "render": {
            "output_path": "network.png",
            "title": "Polycule Network",
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Optional custom config file path
        """
        self.config_path = config_path or self.DEFAULT_CONFIG_FILE
        self.config = self._load_or_create()

    def _load_or_create(self) -> Dict[str, Any]:
        """Load existing config or create default."""
        if self.config_path.exists():
            return self._load()
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self._save(self.DEFAULT_CONFIG)
        return copy.deepcopy(self.DEFAULT_CONFIG)

    def _load(self) -> Dict[str, Any]:
        """Load config from file."""
        try:
            with open(self.config_path, 'r') as f:
                config = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            raise ValueError(f"Failed to load config from {self.config_path}: {e}")

        # Merge with defaults (in case new keys were added)
        merged = copy.deepcopy(self.DEFAULT_CONFIG)
        for key, value in config.items():
            if isinstance(value, dict) and isinstance(merged.get(key), dict):
                merged[key].update(value)
            else:
                merged[key] = value
        return merged

    def _save(self, config: Dict[str, Any]) -> None:
        """Save config to file."""
        try:
            with open(self.config_path, 'w') as f:
                json.dump(config, f, indent=2)
        except IOError as e:
            raise ValueError(f"Failed to save config to {self.config_path}: {e}")

    def save(self) -> None:
        """Save current config to file."""
        self._save(self.config)

    # Layout

    def get_layout(self) -> Dict[str, float]:
        """Anchor position and circle radius for the initial graph layout."""
        return dict(self.config.get("layout", DEFAULT_LAYOUT))

    def set_layout(
        self,
        center_x: Optional[float] = None,
        center_y: Optional[float] = None,
        radius: Optional[float] = None,
    ) -> None:
        """
        Update layout settings. Omitted values are left unchanged.

        Args:
            center_x: Anchor x coordinate (viewer's node)
            center_y: Anchor y coordinate
            radius: Distance from the anchor to everyone else (> 0)
        """
        if radius is not None and radius <= 0:
            raise ValueError(f"Invalid radius: {radius}. Must be greater than 0")

        layout = self.get_layout()
        for key, value in (("center_x", center_x), ("center_y", center_y), ("radius", radius)):
            if value is not None:
                layout[key] = float(value)
        self.config["layout"] = layout
        self.save()

    # Session

    def get_auth_timeout(self) -> float:
        """Seconds to wait for the persisted session before giving up."""
        return float(self.config.get("auth_timeout_seconds", DEFAULT_AUTH_TIMEOUT_SECONDS))

    def set_auth_timeout(self, seconds: float) -> None:
        if seconds <= 0:
            raise ValueError(f"Invalid auth timeout: {seconds}. Must be greater than 0")
        self.config["auth_timeout_seconds"] = float(seconds)
        self.save()

    # Connection requests

    def get_default_relationship_type(self) -> str:
        return self.config.get("default_relationship_type", DEFAULT_RELATIONSHIP_TYPE)

    def set_default_relationship_type(self, relationship_type: str) -> None:
        if relationship_type not in RELATIONSHIP_TYPES:
            raise ValueError(
                f"Invalid relationship type: {relationship_type}. Valid: {RELATIONSHIP_TYPES}"
            )
        self.config["default_relationship_type"] = relationship_type
        self.save()

    # Rendering

    def get_render_settings(self) -> Dict[str, str]:
        return dict(self.config.get("render", self.DEFAULT_CONFIG["render"]))

    def get_config_status(self) -> Dict[str, Any]:
        """Get configuration status for display."""
        return {
            "layout": self.get_layout(),
            "auth_timeout_seconds": self.get_auth_timeout(),
            "default_relationship_type": self.get_default_relationship_type(),
            "render": self.get_render_settings(),
            "config_path": str(self.config_path),
        }
