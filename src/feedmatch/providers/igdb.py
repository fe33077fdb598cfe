"""IGDB game search authenticated with a Twitch client-credentials token."""

from __future__ import annotations

import logging
import re
import threading
import time
from datetime import datetime, timezone

from pydantic import TypeAdapter, ValidationError

from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from ..models import PosterMatchIds
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import IgdbGame, IgdbToken

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://api.igdb.com/v4"
TOKEN_URL = "https://id.twitch.tv/oauth2/token"
CONFIDENCE = 0.85
TOKEN_EXPIRY_MARGIN = 60

_GAMES_ADAPTER = TypeAdapter(list[IgdbGame])

_SPLIT = re.compile(r"[\s._\-\[\]()+]+")
_VERSION_TOKEN = re.compile(r"^v?\d+(?:\.\d+)+$|^v\d+$", re.IGNORECASE)
_YEAR_TOKEN = re.compile(r"^(?:19|20)\d{2}$")
NOISE_TOKENS = frozenset({"build", "patch", "update", "hotfix", "repack", "proper", "multi", "gog", "steam"})
OS_TOKENS = frozenset({"win", "windows", "linux", "mac", "osx", "macos", "x64", "x86"})


def sanitize_game_query(title: str) -> str:
    """``"Hades.v1.0.38.Build.123.Windows"`` -> ``"Hades"``."""
    tokens: list[str] = []
    skip_next_number = False
    for token in _SPLIT.split(title or ""):
        if not token:
            continue
        lowered = token.lower()
        if lowered in NOISE_TOKENS:
            skip_next_number = True
            continue
        if skip_next_number and token.isdigit():
            skip_next_number = False
            continue
        skip_next_number = False
        if lowered in OS_TOKENS or _YEAR_TOKEN.match(token) or _VERSION_TOKEN.match(token):
            continue
        tokens.append(token)

    while len(tokens) > 1 and tokens[-1].isdigit():
        tokens.pop()
    return " ".join(tokens).strip()


def cover_url(raw: str | None) -> str | None:
    if not raw:
        return None
    url = raw.strip().replace("t_thumb", "t_cover_big")
    if url.startswith("//"):
        url = f"https:{url}"
    return url


def _escape(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class IgdbClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        self._http = ProviderHttpClient("igdb", settings.base_url or API_BASE_URL, timeout=timeout)
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._lock = threading.Lock()

    def _access_token(self, cancel: threading.Event | None = None) -> str:
        with self._lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token
            payload = self._http.post_json(
                TOKEN_URL,
                params={
                    "client_id": self.settings.client_id,
                    "client_secret": self.settings.client_secret,
                    "grant_type": "client_credentials",
                },
                cancel=cancel,
            )
            try:
                token = IgdbToken.model_validate(payload)
            except ValidationError as exc:
                raise ProviderError("igdb: malformed token payload") from exc
            self._token = token.access_token
            self._token_expires_at = time.monotonic() + max(0, token.expires_in - TOKEN_EXPIRY_MARGIN)
            return self._token

    def search_games(self, query: str, year: int | None, cancel: threading.Event | None = None) -> list[IgdbGame]:
        where = "where cover != null"
        if year is not None:
            start = int(datetime(year, 1, 1, tzinfo=timezone.utc).timestamp())
            end = int(datetime(year + 1, 1, 1, tzinfo=timezone.utc).timestamp())
            where += f" & first_release_date >= {start} & first_release_date < {end}"
        body = f'search "{_escape(query)}"; fields id,name,first_release_date,cover.url; {where}; limit 10;'
        headers = {
            "Client-ID": self.settings.client_id or "",
            "Authorization": f"Bearer {self._access_token(cancel)}",
            "Content-Type": "text/plain",
        }
        payload = self._http.post_json("/games", content=body, headers=headers, cancel=cancel)
        try:
            return _GAMES_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise ProviderError(f"igdb: malformed games payload for {query!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


class IgdbProvider(MatchProvider):
    name = "igdb"

    def __init__(self, settings: ProviderSettings, client: IgdbClient | None = None, timeout: float = DEFAULT_TIMEOUT):
        self.settings = settings
        self.client = client or IgdbClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        query = sanitize_game_query(title) or title
        games = self.client.search_games(query, year, cancel)
        if not games and year is not None:
            games = self.client.search_games(query, None, cancel)

        best: tuple[float, IgdbGame] | None = None
        for game in games:
            if game.cover is None or not game.cover.url:
                continue
            score = score_candidate(query, year, hints.category, game.name, None, game.year, "game")
            if best is None or score > best[0]:
                best = (score, game)
        if best is None:
            LOGGER.debug("IGDB found no game with a cover for %r", query)
            return None

        score, game = best
        url = cover_url(game.cover.url if game.cover else None)
        return MatchCandidate(
            provider=self.name,
            provider_id=str(game.id),
            confidence=CONFIDENCE,
            poster_urls=[url] if url else [],
            ids=PosterMatchIds(igdb=game.id),
            title=game.name,
            year=game.year,
            media_type="game",
            poster_size="cover",
            file_suffix="cover",
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
