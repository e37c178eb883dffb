"""Simple JSON-based config store."""

from __future__ import annotations

import json
from pathlib import Path

from capabilities import DEVICE_CLASSES
from models import MatchConfig

SUPPORTED_LANGUAGES = {
    "sr-RS": "Srpski (RS)",
    "hr-HR": "Hrvatski (HR)",
    "bs-BA": "Bosanski (BA)",
    "en-US": "English (US)",
    "de-DE": "Deutsch (DE)",
}
DEFAULT_LANGUAGE = "sr-RS"
DEFAULT_HOTKEY = "Key.f8"


def _flag(value: object, default: bool) -> bool:
    return value if isinstance(value, bool) else default


class JsonConfigStore:
    def __init__(self, path: Path | None = None) -> None:
        self._path = path or Path.home() / ".config" / "brate_counter" / "config.json"
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def get_api_key(self) -> str:
        return str(self._read_all().get("api_key", ""))

    def set_api_key(self, key: str) -> None:
        self._update(api_key=key)

    def get_language(self) -> str:
        language = str(self._read_all().get("language", DEFAULT_LANGUAGE))
        return language if language in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE

    def set_language(self, language: str) -> None:
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"unsupported language: {language}")
        self._update(language=language)

    def get_device_class(self) -> str:
        device_class = str(self._read_all().get("device_class", "auto"))
        return device_class if device_class in DEVICE_CLASSES else "auto"

    def set_device_class(self, device_class: str) -> None:
        if device_class not in DEVICE_CLASSES:
            raise ValueError(f"unknown device class: {device_class}")
        self._update(device_class=device_class)

    def get_hotkey(self) -> str:
        return str(self._read_all().get("hotkey", DEFAULT_HOTKEY))

    def set_hotkey(self, hotkey: str) -> None:
        self._update(hotkey=hotkey)

    def load_match_config(self) -> MatchConfig:
        data = self._read_all()
        defaults = MatchConfig()
        return MatchConfig(
            target_word=str(data.get("target_word", defaults.target_word)),
            whole_word=_flag(data.get("whole_word"), defaults.whole_word),
            allow_stretch=_flag(data.get("allow_stretch"), defaults.allow_stretch),
        )

    def save_match_config(self, config: MatchConfig) -> None:
        self._update(
            target_word=config.target_word,
            whole_word=config.whole_word,
            allow_stretch=config.allow_stretch,
        )

    def _update(self, **values: object) -> None:
        data = self._read_all()
        data.update(values)
        self._write_all(data)

    def _read_all(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict) -> None:
        self._path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
