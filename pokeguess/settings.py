from __future__ import annotations

import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

from pokeguess.game_data import API_BASE_URL, DEFAULT_GENERATION_LIMIT, MAX_POKE_LIMIT


@dataclass(frozen=True)
class Settings:
    api_base_url: str = API_BASE_URL
    catalog_limit: int = MAX_POKE_LIMIT
    default_generation: int = DEFAULT_GENERATION_LIMIT
    request_timeout: float = 10.0
    secret_key: Optional[str] = None
    max_sessions: int = 1000

    @staticmethod
    def load(path: Optional[Path]) -> "Settings":
        if path is None:
            return Settings()
        with path.open("r", encoding="utf-8") as fh:
            try:
                raw = json.load(fh)
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid settings file {path}: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"Settings file {path} must contain a JSON object")
        return Settings.from_dict(raw)

    @staticmethod
    def from_dict(raw: Dict[str, Any]) -> "Settings":
        known = {f.name for f in fields(Settings)}
        values = {key: value for key, value in raw.items() if key in known}

        if "api_base_url" in values:
            url = values["api_base_url"]
            if not isinstance(url, str) or not url.strip():
                raise ValueError("api_base_url must be a non-empty string")
            values["api_base_url"] = url.rstrip("/")
        for key in ("catalog_limit", "default_generation", "max_sessions"):
            if key in values:
                value = values[key]
                if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                    raise ValueError(f"{key} must be a positive integer")
        if "request_timeout" in values:
            timeout = values["request_timeout"]
            if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
                raise ValueError("request_timeout must be a positive number")
            values["request_timeout"] = float(timeout)
        if values.get("secret_key") is not None and not isinstance(values["secret_key"], str):
            raise ValueError("secret_key must be a string")

        settings = Settings(**values)
        if settings.catalog_limit > MAX_POKE_LIMIT:
            raise ValueError(f"catalog_limit cannot exceed {MAX_POKE_LIMIT}")
        return settings

    def generation_limit(self) -> int:
        return min(self.default_generation, self.catalog_limit)
