"""テスト共通のフィクスチャ."""

import gzip
from unittest.mock import AsyncMock, MagicMock

import pytest

from subspace.session import Session


def _member(name, value):
    if value is None:
        return f"<member><name>{name}</name><value><string/></value></member>"
    return f"<member><name>{name}</name><value><string>{value}</string></value></member>"


def build_record(**fields):
    """MatchedBy から始まる1レコード分のXMLを作成."""
    fields.setdefault("MatchedBy", "moviehash")
    members = [_member("MatchedBy", fields.pop("MatchedBy"))]
    members.extend(_member(name, value) for name, value in fields.items())
    return "<value>\n<struct>\n" + "\n".join(members) + "\n</struct>\n</value>"


def build_search_response(records, status="200 OK"):
    """SearchSubtitles の応答XMLを作成（records が空なら data は false）."""
    if records:
        data = (
            "<member><name>data</name><value><array><data>\n"
            + "\n".join(build_record(**record) for record in records)
            + "\n</data></array></value></member>"
        )
    else:
        data = "<member><name>data</name><value><boolean>0</boolean></value></member>"
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<methodResponse><params><param><value><struct>\n"
        f"{_member('status', status)}\n"
        f"{data}\n"
        "<member><name>seconds</name><value><double>0.012</double></value></member>\n"
        "</struct></value></param></params></methodResponse>"
    )


def build_login_response(token="TOKEN123", status="200 OK"):
    members = [_member("status", status)]
    if token is not None:
        members.append(_member("token", token))
    return (
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<methodResponse><params><param><value><struct>\n"
        + "\n".join(members)
        + "\n</struct></value></param></params></methodResponse>"
    )


def subtitle_record(**overrides):
    """フィルタを通過する標準的なレコード."""
    record = {
        "IDSubtitle": "1001",
        "SubFormat": "srt",
        "ISO639": "en",
        "SubHearingImpaired": "0",
        "SubRating": "5.0",
        "SubDownloadsCnt": "10",
        "SubFileName": "Movie.Name.2019.srt",
        "SubDownloadLink": "http://dl.example.com/1001.gz",
        "MovieName": "Movie Name",
        "MovieYear": "2019",
    }
    record.update(overrides)
    return record


@pytest.fixture
def search_response():
    return build_search_response


@pytest.fixture
def login_response():
    return build_login_response


@pytest.fixture
def record():
    return subtitle_record


@pytest.fixture
def http_response():
    """httpx.Response の代わりになるモック（本文はgzip圧縮）."""
    def _make(text=None, content=None, compress=True):
        if content is None:
            content = text.encode("utf-8")
        response = MagicMock()
        response.status_code = 200
        response.raise_for_status = MagicMock()
        response.content = gzip.compress(content) if compress else content
        return response
    return _make


@pytest.fixture
def mock_session():
    """transport.call / transport.get_bytes をモックしたセッション."""
    transport = MagicMock()
    transport.call = AsyncMock()
    transport.get_bytes = AsyncMock()
    return Session(token="TOKEN123", transport=transport)
