"""
PokéAPI access: the HTTP client, the entity record and the name catalog loaded
once at startup for autocomplete.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import requests

from pokeguess import __version__
from pokeguess.game_data import API_BASE_URL, MAX_POKE_LIMIT, MESSAGES

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the catalog API cannot be reached or returns an unusable payload."""


@dataclass(frozen=True)
class Entity:
    id: int
    name: str
    artwork: Optional[str] = None


def pick_artwork(sprites: Dict[str, Any]) -> Optional[str]:
    """Prefer the official artwork, fall back to the default front sprite."""
    other = sprites.get("other") or {}
    official = other.get("official-artwork") or {}
    return official.get("front_default") or sprites.get("front_default") or None


class PokeApiClient:
    def __init__(
        self,
        base_url: str = API_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {"User-Agent": f"pokeguess/{__version__}", "Accept": "application/json"}
        )

    def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as exc:
            raise CatalogError(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(f"Invalid JSON from {url}: {exc}") from exc
        if not isinstance(data, dict):
            raise CatalogError(f"Unexpected payload from {url}")
        return data

    def fetch_names(self, limit: int = MAX_POKE_LIMIT) -> List[str]:
        data = self._get("pokemon", params={"limit": limit})
        try:
            return [str(item["name"]) for item in data["results"]][:limit]
        except (KeyError, TypeError) as exc:
            raise CatalogError(f"Malformed catalog listing: {exc}") from exc

    def fetch_entity(self, identifier: int) -> Entity:
        data = self._get(f"pokemon/{identifier}")
        try:
            name = str(data["name"])
            artwork = pick_artwork(data.get("sprites") or {})
        except (KeyError, TypeError, AttributeError) as exc:
            raise CatalogError(f"Malformed entry for #{identifier}: {exc}") from exc
        return Entity(id=identifier, name=name, artwork=artwork)


class Catalog:
    """Ordered tuple of names, position + 1 is the PokéAPI id."""

    def __init__(self, client: PokeApiClient, limit: int = MAX_POKE_LIMIT) -> None:
        self.client = client
        self.limit = limit
        self.names: Tuple[str, ...] = ()
        self.error: Optional[str] = None
        self.ready = False
        self._thread: Optional[threading.Thread] = None

    def load(self) -> bool:
        try:
            names = self.client.fetch_names(self.limit)
        except CatalogError:
            logger.exception("Catalog load failed")
            self.error = MESSAGES["catalog_failed"]
            return False
        self.names = tuple(names)
        self.error = None
        self.ready = True
        logger.info("Catalog loaded with %d names", len(self.names))
        return True

    def start_background_load(self) -> threading.Thread:
        if self._thread is not None:
            return self._thread
        self._thread = threading.Thread(
            target=self.load,
            name="pokeguess-catalog-load",
            daemon=True,
        )
        self._thread.start()
        return self._thread

    def message(self) -> str:
        if self.error:
            return self.error
        if self.ready:
            return MESSAGES["catalog_ready"]
        return MESSAGES["catalog_loading"]

    def status(self) -> Dict[str, Any]:
        return {
            "ready": self.ready,
            "count": len(self.names),
            "error": self.error,
            "message": self.message(),
        }
