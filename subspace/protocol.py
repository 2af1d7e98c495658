"""XML-RPC request shapes.

Each request type has typed fields and is rendered to the wire format in one
place, `RpcRequest.render`, which XML-escapes every value before substitution.
"""

from typing import ClassVar, List, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from . import templates
from .codec import encode_template, escape_value


class RpcRequest(BaseModel):
    """Base class for request shapes."""

    model_config = ConfigDict(frozen=True)

    template: ClassVar[str]
    method: ClassVar[str]

    def params(self) -> List[Tuple[str, str]]:
        """(placeholder, value) pairs for this request."""
        raise NotImplementedError

    def render(self) -> str:
        """Serialize to the XML-RPC request body."""
        return encode_template(
            self.template,
            [(name, escape_value(value)) for name, value in self.params()]
        )


class LoginRequest(RpcRequest):
    template: ClassVar[str] = templates.LOG_IN
    method: ClassVar[str] = "LogIn"

    language: str = "en"
    user_agent: str

    def params(self) -> List[Tuple[str, str]]:
        return [("lang", self.language), ("ua", self.user_agent)]


class LogoutRequest(RpcRequest):
    template: ClassVar[str] = templates.LOG_OUT
    method: ClassVar[str] = "LogOut"

    token: str

    def params(self) -> List[Tuple[str, str]]:
        return [("token", self.token)]


class SearchRequest(RpcRequest):
    """Common fields of every SearchSubtitles call."""

    method: ClassVar[str] = "SearchSubtitles"

    token: str
    language: str


class HashSearchRequest(SearchRequest):
    template: ClassVar[str] = templates.SEARCH_HASH

    movie_hash: str = Field(..., description="16 hex digit movie hash")
    size: int = Field(..., ge=0, description="File size in bytes")

    def params(self) -> List[Tuple[str, str]]:
        return [
            ("token", self.token),
            ("lang", self.language),
            ("hash", self.movie_hash),
            ("size", str(self.size)),
        ]


class TagSearchRequest(SearchRequest):
    template: ClassVar[str] = templates.SEARCH_TAG

    tag: str

    def params(self) -> List[Tuple[str, str]]:
        return [("token", self.token), ("lang", self.language), ("tag", self.tag)]


class MovieSearchRequest(SearchRequest):
    template: ClassVar[str] = templates.SEARCH_MOVIE

    query: str

    def params(self) -> List[Tuple[str, str]]:
        return [("token", self.token), ("lang", self.language), ("query", self.query)]


class TvShowSearchRequest(SearchRequest):
    template: ClassVar[str] = templates.SEARCH_TVSHOW

    query: str
    season: int = Field(..., ge=0)
    episode: int = Field(..., ge=0)

    def params(self) -> List[Tuple[str, str]]:
        return [
            ("token", self.token),
            ("lang", self.language),
            ("query", self.query),
            ("season", str(self.season)),
            ("episode", str(self.episode)),
        ]


AnyRequest = Union[
    LoginRequest,
    LogoutRequest,
    HashSearchRequest,
    TagSearchRequest,
    MovieSearchRequest,
    TvShowSearchRequest,
]
