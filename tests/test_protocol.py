"""リクエスト形式のテスト."""

import re

import pytest
from pydantic import ValidationError

from subspace.protocol import (
    HashSearchRequest,
    LoginRequest,
    LogoutRequest,
    MovieSearchRequest,
    TagSearchRequest,
    TvShowSearchRequest,
)

LEFTOVER_PLACEHOLDER = re.compile(r"%[A-Z]+%")


def test_login_request():
    body = LoginRequest(language="en", user_agent="Subspace V1").render()

    assert "<methodName>LogIn</methodName>" in body
    assert "<string>en</string>" in body
    assert "<string>Subspace V1</string>" in body
    assert not LEFTOVER_PLACEHOLDER.search(body)


def test_logout_request():
    body = LogoutRequest(token="abc").render()

    assert "<methodName>LogOut</methodName>" in body
    assert "<string>abc</string>" in body


def test_hash_search_request():
    body = HashSearchRequest(token="abc", language="en", movie_hash="112233445566", size=12345).render()

    assert "<methodName>SearchSubtitles</methodName>" in body
    assert "<string>abc</string>" in body
    assert "<name>moviehash</name>" in body
    assert "<string>112233445566</string>" in body
    assert "<string>12345</string>" in body
    assert not LEFTOVER_PLACEHOLDER.search(body)


def test_tv_show_search_request():
    body = TvShowSearchRequest(token="abc", language="fr", query="Show Name", season=2, episode=5).render()

    assert "<string>Show Name</string>" in body
    assert re.search(r"<name>season</name>\s*<value>\s*<string>2</string>", body)
    assert re.search(r"<name>episode</name>\s*<value>\s*<string>5</string>", body)
    assert "<string>fr</string>" in body


def test_movie_search_request():
    body = MovieSearchRequest(token="abc", language="en", query="Movie Name").render()

    assert "<name>query</name>" in body
    assert "<string>Movie Name</string>" in body


def test_values_are_xml_escaped():
    body = TagSearchRequest(token="abc", language="en", tag="Tom & Jerry <1080p>.mkv").render()

    assert "<string>Tom &amp; Jerry &lt;1080p&gt;.mkv</string>" in body
    assert "Tom & Jerry" not in body


def test_percent_in_value_is_kept_literally():
    body = MovieSearchRequest(token="abc", language="en", query="100%TOKEN% Movie").render()

    assert "<string>100%TOKEN% Movie</string>" in body
    assert "<string>abc</string>" in body


def test_negative_size_rejected():
    with pytest.raises(ValidationError):
        HashSearchRequest(token="abc", language="en", movie_hash="00", size=-1)


def test_requests_are_immutable():
    request = LogoutRequest(token="abc")
    with pytest.raises(ValidationError):
        request.token = "other"
