"""
IGDB catalog lookup.

Authenticates with Twitch client credentials and queries the IGDB v4
games endpoint. Lookups are best-effort: any transport or HTTP failure is
logged and degrades to an empty result so queue and rotation operations
never fail because the catalog is down.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

import requests

from gameclub.config import settings
from gameclub.schemas import CatalogGame

logger = logging.getLogger(__name__)

TOKEN_URL = "https://id.twitch.tv/oauth2/token"
BASE_URL = "https://api.igdb.com/v4"
FIELDS = "name,cover.url,first_release_date,platforms.name,summary"


def format_cover_url(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    url = url.replace("t_thumb", "t_cover_big")
    if url.startswith("//"):
        url = "https:" + url
    return url


def release_year(timestamp: Optional[int]) -> Optional[int]:
    if not timestamp:
        return None
    try:
        return datetime.fromtimestamp(timestamp, tz=timezone.utc).year
    except (OverflowError, OSError, ValueError):
        return None


def _to_catalog_game(raw: dict) -> CatalogGame:
    platforms = raw.get("platforms") or []
    return CatalogGame(
        id=raw["id"],
        name=raw.get("name", ""),
        cover_url=format_cover_url((raw.get("cover") or {}).get("url")),
        summary=raw.get("summary"),
        platforms=", ".join(p["name"] for p in platforms if p.get("name")) or None,
        release_year=release_year(raw.get("first_release_date")),
    )


class IGDBClient:
    """Thin client over the IGDB games endpoint."""

    def __init__(self, client_id: str, client_secret: str, session: Optional[requests.Session] = None,
                 timeout: float = 10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.session = session or requests.Session()
        self.timeout = timeout
        self._access_token: Optional[str] = None
        self._token_expires_at = 0.0

    @property
    def enabled(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _get_access_token(self) -> str:
        if self._access_token and time.time() < self._token_expires_at:
            return self._access_token

        logger.info("Requesting new IGDB access token")
        resp = self.session.post(
            TOKEN_URL,
            params={
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "grant_type": "client_credentials",
            },
            timeout=self.timeout,
        )
        resp.raise_for_status()
        data = resp.json()
        self._access_token = data["access_token"]
        # Refresh a minute early
        self._token_expires_at = time.time() + data["expires_in"] - 60
        return self._access_token

    def _query(self, body: str) -> list[dict]:
        headers = {
            "Client-ID": self.client_id,
            "Authorization": f"Bearer {self._get_access_token()}",
            "Accept": "application/json",
        }
        resp = self.session.post(f"{BASE_URL}/games", data=body, headers=headers, timeout=self.timeout)
        resp.raise_for_status()
        return resp.json()

    def search(self, query: str, limit: int = 10) -> list[CatalogGame]:
        """Return up to `limit` ranked candidates for a free-text query."""
        if not self.enabled:
            logger.warning("⚠ IGDB credentials missing — catalog search disabled")
            return []
        escaped = query.replace("\\", "\\\\").replace('"', '\\"')
        body = f'search "{escaped}"; fields {FIELDS}; limit {limit}; where version_parent = null;'
        try:
            return [_to_catalog_game(raw) for raw in self._query(body)]
        except (requests.RequestException, KeyError, ValueError) as exc:
            logger.error("IGDB search failed for %r: %s", query, exc)
            return []

    def get(self, igdb_id: int) -> Optional[CatalogGame]:
        """Resolve one catalog id, or None when unknown or unreachable."""
        if not self.enabled:
            return None
        try:
            rows = self._query(f"fields {FIELDS}; where id = {int(igdb_id)};")
        except (requests.RequestException, KeyError, ValueError) as exc:
            logger.error("IGDB lookup failed for id %s: %s", igdb_id, exc)
            return None
        return _to_catalog_game(rows[0]) if rows else None


_client: Optional[IGDBClient] = None


def get_catalog() -> IGDBClient:
    """Process-wide client so the access token is reused across requests."""
    global _client
    if _client is None:
        _client = IGDBClient(settings.igdb_client_id, settings.igdb_client_secret)
    return _client
