"""Provider contract shared by every catalog client."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..categories.unified import UnifiedCategory
from ..matching.ambiguity import TitleAmbiguity
from ..models import PosterMatchIds


class ProviderError(Exception):
    """A provider call failed (timeout, non-2xx response, malformed payload)."""


class ProviderNotFoundError(ProviderError):
    """Resource not found (404)."""


class FetchCancelled(Exception):
    """The caller cancelled the fetch before the next outbound call."""


def raise_if_cancelled(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise FetchCancelled("fetch cancelled")


AMBIGUOUS_PENALTY = 0.10
EMISSION_PENALTY = 0.05


def adjust_confidence(score: float, hints: LookupHints) -> float:
    """Downgrade a provider score for ambiguous titles and tv shows."""
    confidence = score
    if hints.is_ambiguous:
        confidence -= AMBIGUOUS_PENALTY
    if hints.category is UnifiedCategory.EMISSION or hints.media_type == "emission":
        confidence -= EMISSION_PENALTY
    return max(0.0, min(1.0, confidence))


@dataclass
class LookupHints:
    """Context a strategy hands to providers alongside the title and year."""

    media_type: str | None = None
    category: UnifiedCategory | None = None
    ambiguity: TitleAmbiguity | None = None
    known_ids: PosterMatchIds = field(default_factory=PosterMatchIds)
    reference_score: float | None = None
    original_language: str | None = None
    season: int | None = None
    episode: int | None = None

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.ambiguity and self.ambiguity.is_ambiguous)

    @property
    def is_common_title(self) -> bool:
        return bool(self.ambiguity and self.ambiguity.is_common_title)


@dataclass
class MatchCandidate:
    provider: str
    provider_id: str
    confidence: float
    poster_urls: list[str] = field(default_factory=list)
    ids: PosterMatchIds = field(default_factory=PosterMatchIds)
    title: str | None = None
    year: int | None = None
    media_type: str | None = None
    original_language: str | None = None
    poster_lang: str | None = None
    poster_size: str | None = None
    # Appended to the stored file name, e.g. "w500" in "tmdb-603-w500.jpg".
    file_suffix: str | None = None
    score: float = 0.0
    # Size label per poster URL when the alternatives differ in size.
    url_sizes: dict[str, str] = field(default_factory=dict)

    def select_url(self, url: str) -> None:
        """Record the size of the URL whose download succeeded."""
        size = self.url_sizes.get(url)
        if size:
            self.poster_size = size
            self.file_suffix = size


class MatchProvider:
    """Base class for catalog providers.

    Subclasses implement :meth:`search` and may override :meth:`download`.
    """

    name: str = "provider"

    def enabled(self) -> bool:
        return True

    def search(
        self,
        title: str,
        year: int | None,
        hints: LookupHints,
        cancel: threading.Event | None = None,
    ) -> MatchCandidate | None:  # pragma: no cover - interface
        raise NotImplementedError

    def download(self, url: str, cancel: threading.Event | None = None) -> bytes:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:
        return None
