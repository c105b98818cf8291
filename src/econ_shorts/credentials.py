"""Storage for the single Gemini API key."""

import json
import logging
import os
from pathlib import Path

import typer

from .errors import InvalidCredentialError

logger = logging.getLogger(__name__)

APP_NAME = "econ-shorts"
SETTINGS_KEY = "gemini_api_key"
API_KEY_PREFIXES = ("AIza",)


def validate_api_key(key: str | None) -> bool:
    """Return True if ``key`` looks like a Google API key."""
    if not key:
        return False
    key = key.strip()
    return key.startswith(API_KEY_PREFIXES) and len(key) > len("AIza")


def default_settings_path() -> Path:
    return Path(typer.get_app_dir(APP_NAME)) / "settings.json"


class CredentialStore:
    """Persist the API key in the per-user application directory.

    A key granted from outside (environment, ``.env`` or a command-line
    option) is used when no key has been stored. With ``prefer_external``
    that key overrides the stored one instead. The store is read on every
    request; nothing caches the key.
    """

    def __init__(
        self,
        path: Path | None = None,
        external_key: str | None = None,
        prefer_external: bool = False,
    ) -> None:
        self.path = path or default_settings_path()
        self._external_key = external_key or None
        self.prefer_external = prefer_external

    @classmethod
    def from_env(cls, path: Path | None = None) -> "CredentialStore":
        return cls(
            path=path,
            external_key=os.getenv("GEMINI_API_KEY"),
            prefer_external=True,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------
    def _load(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def get(self) -> str | None:
        if self.prefer_external and self._external_key:
            return self._external_key
        stored = self._load().get(SETTINGS_KEY)
        return stored or self._external_key

    def has_key(self) -> bool:
        return bool(self.get())

    def set(self, key: str) -> None:
        """Store a user-entered key after checking its vendor prefix."""
        if not validate_api_key(key):
            msg = "API 키 형식이 올바르지 않습니다. 'AIza'로 시작하는 키를 입력해주세요."
            raise InvalidCredentialError(msg)
        data = self._load()
        data[SETTINGS_KEY] = key.strip()
        self._save(data)
        logger.info("Stored API key in %s", self.path)

    def clear(self) -> None:
        """Forget the stored key and any external grant."""
        self._external_key = None
        data = self._load()
        if data.pop(SETTINGS_KEY, None) is not None:
            self._save(data)
        logger.info("Cleared API key")
