"""TheAudioDB track and album search."""

from __future__ import annotations

import logging
import re
import threading

from pydantic import ValidationError

from ..config import ProviderSettings
from ..matching.scorer import score_candidate
from ..matching.titles import normalize_title
from .base import LookupHints, MatchCandidate, MatchProvider, ProviderError
from .http import DEFAULT_TIMEOUT, ProviderHttpClient
from .models import AudioDbAlbumResponse, AudioDbItem, AudioDbTrackResponse

LOGGER = logging.getLogger(__name__)

API_BASE_URL = "https://www.theaudiodb.com/api/v1/json"
CONFIDENCE = 0.65
ARTIST_BONUS = 0.1

ARTIST_SEPARATORS = (" - ", " – ", " — ", " | ", " : ")
_TAGS = re.compile(r"\[[^\]]*\]|\([^)]*\)")
_AUDIO_NOISE = re.compile(
    r"\b(?:flac|mp3|aac|alac|ogg|wav|320|320kbps|256kbps|192kbps|24bit|16bit|web|cd|vinyl|lossless|discography)\b",
    re.IGNORECASE,
)
_SPACES = re.compile(r"\s+")


def _clean(value: str) -> str:
    text = _TAGS.sub(" ", value)
    text = _AUDIO_NOISE.sub(" ", text)
    return _SPACES.sub(" ", text).strip(" -_.")


def parse_audio_query(title: str) -> tuple[str | None, str]:
    """Split ``"Artist - Title"`` into its parts; artist is None when absent."""
    raw = _TAGS.sub(" ", title or "").replace("_", " ")
    for separator in ARTIST_SEPARATORS:
        if separator in raw:
            artist, _, rest = raw.partition(separator)
            artist = _clean(artist)
            rest = _clean(rest)
            if artist and rest:
                return artist, rest
    return None, _clean(raw.replace(".", " "))


class TheAudioDbClient:
    def __init__(self, settings: ProviderSettings, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.settings = settings
        base = (settings.base_url or API_BASE_URL).rstrip("/")
        self._http = ProviderHttpClient("theaudiodb", f"{base}/{(settings.api_key or '').strip('/')}", timeout=timeout)

    def search_tracks(self, artist: str | None, title: str, cancel: threading.Event | None = None) -> list[AudioDbItem]:
        params = {"t": title}
        if artist:
            params["s"] = artist
        payload = self._http.get_json("/searchtrack.php", params=params, cancel=cancel)
        try:
            return AudioDbTrackResponse.model_validate(payload).track or []
        except ValidationError as exc:
            raise ProviderError(f"theaudiodb: malformed track payload for {title!r}") from exc

    def search_albums(self, artist: str | None, title: str, cancel: threading.Event | None = None) -> list[AudioDbItem]:
        params = {"a": title}
        if artist:
            params["s"] = artist
        payload = self._http.get_json("/searchalbum.php", params=params, cancel=cancel)
        try:
            return AudioDbAlbumResponse.model_validate(payload).album or []
        except ValidationError as exc:
            raise ProviderError(f"theaudiodb: malformed album payload for {title!r}") from exc

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self._http.get_bytes(url, cancel=cancel)

    def close(self) -> None:
        self._http.close()


class TheAudioDbProvider(MatchProvider):
    """One TheAudioDB lookup; ``kind`` selects the track or the album search."""

    name = "theaudiodb"

    def __init__(
        self,
        settings: ProviderSettings,
        kind: str = "track",
        client: TheAudioDbClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        if kind not in ("track", "album"):
            raise ValueError(f"Unsupported TheAudioDB search kind: {kind}")
        self.settings = settings
        self.kind = kind
        self.client = client or TheAudioDbClient(settings, timeout=timeout)

    def enabled(self) -> bool:
        return self.settings.active

    def _score(self, item: AudioDbItem, artist: str | None, title: str, year: int | None, hints: LookupHints) -> float:
        name = item.track if self.kind == "track" else item.album
        score = score_candidate(title, year, hints.category, name, None, item.year, "audio")
        if artist and item.artist and normalize_title(artist) == normalize_title(item.artist):
            score = min(1.0, score + ARTIST_BONUS)
        return score

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:
        artist, query = parse_audio_query(title)
        if not query:
            return None
        if self.kind == "track":
            items = self.client.search_tracks(artist, query, cancel)
        else:
            items = self.client.search_albums(artist, query, cancel)

        best: tuple[float, AudioDbItem] | None = None
        for item in items:
            score = self._score(item, artist, query, year, hints)
            if best is None or score > best[0]:
                best = (score, item)
        if best is None:
            LOGGER.debug("TheAudioDB %s search found nothing for %r", self.kind, title)
            return None

        score, item = best
        provider_id = item.id_track if self.kind == "track" else item.id_album
        if not provider_id:
            return None
        thumbs = [item.track_thumb, item.album_thumb] if self.kind == "track" else [item.album_thumb]
        return MatchCandidate(
            provider=self.name,
            provider_id=str(provider_id),
            confidence=CONFIDENCE,
            poster_urls=[thumb for thumb in thumbs if thumb],
            title=item.track or item.album,
            year=item.year,
            media_type="audio",
            score=score,
        )

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:
        return self.client.download(url, cancel)

    def close(self) -> None:
        self.client.close()
