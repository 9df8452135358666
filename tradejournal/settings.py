"""
settings.py
-----------

Appearance settings kept as key-value pairs in a local JSON file: the
light/dark ``theme`` and ``appSettings`` (accent colour and font).
Missing or unrecognised values fall back to the defaults on load.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)

THEMES = ("light", "dark")
THEME_COLORS = ("blue", "purple", "orange", "teal", "rose")
FONT_FAMILIES = ("Inter", "Playfair Display", "JetBrains Mono")

DEFAULT_THEME = "dark"
DEFAULT_APP_SETTINGS: Dict[str, str] = {"themeColor": "blue", "fontFamily": "Inter"}


class SettingsRepository:
    def __init__(self, path: str = "tradejournal_settings.json") -> None:
        self.path = path

    # ---------- raw key-value ----------
    def _read_all(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        return self._read_all().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        tmp = f"{self.path}.tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)

    # ---------- typed accessors ----------
    def theme(self) -> str:
        saved = self.get("theme")
        return saved if saved in THEMES else DEFAULT_THEME

    def set_theme(self, theme: str) -> str:
        if theme not in THEMES:
            raise ValueError(f"theme must be one of {THEMES}")
        self.set("theme", theme)
        return theme

    def toggle_theme(self) -> str:
        return self.set_theme("light" if self.theme() == "dark" else "dark")

    def app_settings(self) -> Dict[str, str]:
        saved = self.get("appSettings") or {}
        out = dict(DEFAULT_APP_SETTINGS)
        if isinstance(saved, dict):
            if saved.get("themeColor") in THEME_COLORS:
                out["themeColor"] = saved["themeColor"]
            if saved.get("fontFamily") in FONT_FAMILIES:
                out["fontFamily"] = saved["fontFamily"]
        return out

    def update_app_settings(self, theme_color: Optional[str] = None,
                            font_family: Optional[str] = None) -> Dict[str, str]:
        """Merge a partial update into the stored appearance settings."""
        current = self.app_settings()
        if theme_color is not None:
            if theme_color not in THEME_COLORS:
                raise ValueError(f"themeColor must be one of {THEME_COLORS}")
            current["themeColor"] = theme_color
        if font_family is not None:
            if font_family not in FONT_FAMILIES:
                raise ValueError(f"fontFamily must be one of {FONT_FAMILIES}")
            current["fontFamily"] = font_family
        self.set("appSettings", current)
        return current

    def snapshot(self) -> Dict[str, Any]:
        return {"theme": self.theme(), **self.app_settings()}
