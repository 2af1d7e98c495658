"""Data models for subtitle lookup."""

from typing import Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class Subtitle(BaseModel):
    """Subtitle metadata returned by the server.

    Does not contain the subtitle text itself, only what is needed to rank and download it.
    """

    model_config = ConfigDict(frozen=True)

    format: Optional[str] = Field(None, description="Subtitle format, e.g. 'srt'")
    id: int = Field(0, description="IDSubtitle")
    hash: Optional[str] = Field(None, description="Hash of the subtitle content")
    filename: Optional[str] = Field(None, description="Original subtitle filename")
    language: Optional[str] = Field(None, description="ISO639 language code")
    hearing_impaired: bool = Field(False, description="Subtitle is for the hearing impaired")
    rating: float = Field(0.0, description="Subtitle rating")
    downloads_count: int = Field(0, description="Number of downloads")
    download_link: Optional[str] = Field(None, description="Gzipped subtitle download URI")
    matched_by: Optional[str] = Field(None, description="Search method that matched this record")

    movie_id: int = Field(0, description="IDMovie")
    imdb_id: int = Field(0, description="IDMovieImdb")
    movie_name: Optional[str] = Field(None, description="Movie name")
    movie_year: int = Field(0, description="Movie year")
    movie_rating: float = Field(0.0, description="IMDB rating of the movie")

    def __str__(self) -> str:
        """String representation of the subtitle."""
        return f"{self.id}: {self.filename} [{self.language}] rating={self.rating} downloads={self.downloads_count}"


class SearchCriteria(BaseModel):
    """Per-search filter settings."""

    model_config = ConfigDict(frozen=True)

    language: str = Field("en", min_length=2, max_length=2, description="Two-letter language code")
    hearing_impaired: bool = Field(False, description="Hearing-impaired preference")
    format: str = Field("srt", description="Subtitle format filter")


class TvShowQuery(BaseModel):
    """Title, season and episode parsed from a filename."""

    model_config = ConfigDict(frozen=True)

    title: str
    season: int
    episode: int


class MovieQuery(BaseModel):
    """Cleaned movie title parsed from a filename."""

    model_config = ConfigDict(frozen=True)

    title: str


ParsedName = Union[TvShowQuery, MovieQuery]
