"""Pydantic models for provider API responses."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _year_from_date(value: str | None) -> int | None:
    if not value or len(value) < 4 or not value[:4].isdigit():
        return None
    return int(value[:4])


# TMDB


class TmdbSearchItem(BaseModel):
    """One movie or tv result from ``/search/movie`` or ``/search/tv``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    title: str | None = None
    name: str | None = None
    original_title: str | None = None
    original_name: str | None = None
    release_date: str | None = None
    first_air_date: str | None = None
    poster_path: str | None = None
    original_language: str | None = None
    popularity: float = 0.0

    @property
    def display_title(self) -> str:
        return (self.title or self.name or "").strip()

    @property
    def display_original_title(self) -> str | None:
        return self.original_title or self.original_name

    @property
    def year(self) -> int | None:
        return _year_from_date(self.release_date or self.first_air_date)


class TmdbSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[TmdbSearchItem] = Field(default_factory=list)


class TmdbImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file_path: str
    iso_639_1: str | None = None
    vote_average: float = 0.0
    vote_count: int = 0


class TmdbImagesResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    posters: list[TmdbImage] = Field(default_factory=list)


class TmdbExternalIds(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tvdb_id: int | None = None
    imdb_id: str | None = None


# TVmaze


class TvMazeImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    medium: str | None = None
    original: str | None = None


class TvMazeExternals(BaseModel):
    model_config = ConfigDict(extra="ignore")

    thetvdb: int | None = None
    imdb: str | None = None


class TvMazeShow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    premiered: str | None = None
    language: str | None = None
    type: str | None = None
    image: TvMazeImage | None = None
    externals: TvMazeExternals = Field(default_factory=TvMazeExternals)

    @property
    def year(self) -> int | None:
        return _year_from_date(self.premiered)


class TvMazeSearchItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    score: float = 0.0
    show: TvMazeShow


# Fanart.tv


class FanartImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None
    lang: str | None = None
    likes: int = 0

    @field_validator("likes", mode="before")
    @classmethod
    def _parse_likes(cls, value: object) -> int:
        try:
            return int(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0


class FanartMovieResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    movieposter: list[FanartImage] = Field(default_factory=list)


class FanartTvResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    tvposter: list[FanartImage] = Field(default_factory=list)


# IGDB


class IgdbToken(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    expires_in: int = 0


class IgdbCover(BaseModel):
    model_config = ConfigDict(extra="ignore")

    url: str | None = None


class IgdbGame(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    first_release_date: int | None = None
    cover: IgdbCover | None = None

    @property
    def year(self) -> int | None:
        if not self.first_release_date:
            return None
        return datetime.fromtimestamp(self.first_release_date, tz=timezone.utc).year


# Jikan


class JikanImageSet(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image_url: str | None = None
    large_image_url: str | None = None


class JikanImages(BaseModel):
    model_config = ConfigDict(extra="ignore")

    jpg: JikanImageSet | None = None
    webp: JikanImageSet | None = None


class JikanAnime(BaseModel):
    model_config = ConfigDict(extra="ignore")

    mal_id: int
    title: str | None = None
    title_english: str | None = None
    year: int | None = None
    scored_by: int | None = None
    images: JikanImages | None = None

    @property
    def image_url(self) -> str | None:
        if self.images is None:
            return None
        for image_set in (self.images.jpg, self.images.webp):
            if image_set is None:
                continue
            url = image_set.large_image_url or image_set.image_url
            if url:
                return url
        return None


class JikanSearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    data: list[JikanAnime] = Field(default_factory=list)


# TheAudioDB


class AudioDbItem(BaseModel):
    """A track or album row; both share the same shape for matching."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id_track: str | None = Field(default=None, alias="idTrack")
    id_album: str | None = Field(default=None, alias="idAlbum")
    track: str | None = Field(default=None, alias="strTrack")
    album: str | None = Field(default=None, alias="strAlbum")
    artist: str | None = Field(default=None, alias="strArtist")
    year_released: str | None = Field(default=None, alias="intYearReleased")
    track_thumb: str | None = Field(default=None, alias="strTrackThumb")
    album_thumb: str | None = Field(default=None, alias="strAlbumThumb")

    @property
    def year(self) -> int | None:
        return _year_from_date(self.year_released)


class AudioDbTrackResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    track: list[AudioDbItem] | None = None


class AudioDbAlbumResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    album: list[AudioDbItem] | None = None


# Google Books


class GoogleBooksImageLinks(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    small_thumbnail: str | None = Field(default=None, alias="smallThumbnail")
    thumbnail: str | None = None


class GoogleBooksIdentifier(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str | None = None
    identifier: str | None = None


class GoogleBooksVolumeInfo(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = None
    published_date: str | None = Field(default=None, alias="publishedDate")
    image_links: GoogleBooksImageLinks | None = Field(default=None, alias="imageLinks")
    industry_identifiers: list[GoogleBooksIdentifier] = Field(default_factory=list, alias="industryIdentifiers")


class GoogleBooksVolume(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    volume_info: GoogleBooksVolumeInfo = Field(default_factory=GoogleBooksVolumeInfo, alias="volumeInfo")

    @property
    def thumbnail_url(self) -> str | None:
        links = self.volume_info.image_links
        if links is None:
            return None
        url = links.thumbnail or links.small_thumbnail
        if url and url.startswith("http://"):
            url = "https://" + url[len("http://"):]
        return url

    def has_isbn(self, isbn: str) -> bool:
        return any(
            (identifier.identifier or "").replace("-", "").upper() == isbn.upper()
            for identifier in self.volume_info.industry_identifiers
        )


class GoogleBooksResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[GoogleBooksVolume] = Field(default_factory=list)


# ComicVine


class ComicVineImage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    original_url: str | None = None
    small_url: str | None = None


class ComicVineResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str | None = None
    start_year: str | None = None
    cover_date: str | None = None
    resource_type: str | None = None
    image: ComicVineImage | None = None

    @property
    def year(self) -> int | None:
        return _year_from_date(self.start_year) or _year_from_date(self.cover_date)


class ComicVineResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    results: list[ComicVineResult] = Field(default_factory=list)
