"""字幕検索モジュールのテスト."""

import pytest

from subspace.error_handler import ProtocolError, SubtitleIOError
from subspace.models import MovieQuery, TvShowQuery
from subspace.protocol import (
    HashSearchRequest,
    MovieSearchRequest,
    TagSearchRequest,
    TvShowSearchRequest,
)
from subspace.search import TagSearch, clean_name, find_subtitles, parse_filename


class TestParseFilename:
    """ファイル名解析のテスト."""

    def test_clean_name(self):
        assert clean_name("/videos/Some_Show.Name.mkv") == "Some Show Name"

    def test_tv_show_sxxexx(self):
        assert parse_filename("Show.Name.S02E05.720p") == TvShowQuery(title="Show Name", season=2, episode=5)

    def test_tv_show_with_path_and_extension(self):
        parsed = parse_filename("/videos/Show.Name.S02E05.720p.HDTV.mkv")
        assert parsed == TvShowQuery(title="Show Name", season=2, episode=5)

    def test_tv_show_lowercase_short(self):
        assert parse_filename("show_name.s1e3.mkv") == TvShowQuery(title="show name", season=1, episode=3)

    def test_tv_show_three_digit_episode(self):
        assert parse_filename("Anime.S01E105.mkv") == TvShowQuery(title="Anime", season=1, episode=105)

    def test_tv_show_alternate_form(self):
        assert parse_filename("The_Show_3x12.avi") == TvShowQuery(title="The Show", season=3, episode=12)

    def test_movie_year_and_quality_stripped(self):
        assert parse_filename("Movie.Name.2019.1080p") == MovieQuery(title="Movie Name")
        assert parse_filename("Movie.Name.2019.1080p.BluRay.mkv") == MovieQuery(title="Movie Name")

    def test_movie_year_in_parentheses(self):
        assert parse_filename("Some Movie (1999).mp4") == MovieQuery(title="Some Movie")

    def test_movie_resolution_only(self):
        assert parse_filename("Other.Movie.720p.x264.mkv") == MovieQuery(title="Other Movie")

    def test_resolution_is_not_an_episode(self):
        assert isinstance(parse_filename("Movie.1920x1080.mkv"), MovieQuery)

    def test_unparseable_name_falls_back_to_whole_name(self):
        assert parse_filename("2012.mkv") == MovieQuery(title="2012")
        assert parse_filename("Plain Title.mov") == MovieQuery(title="Plain Title")


@pytest.fixture
def video_file(tmp_path):
    def _make(name="Movie.Name.2019.1080p.mkv"):
        path = tmp_path / name
        path.write_bytes(b"\x00" * 4096)
        return path
    return _make


class TestFindSubtitles:
    """検索の連鎖のテスト."""

    @pytest.mark.asyncio
    async def test_hash_match_short_circuits(self, mock_session, video_file, search_response, record):
        mock_session.transport.call.return_value = search_response([record()])

        results = await find_subtitles(mock_session, video_file())

        assert len(results) == 1
        mock_session.transport.call.assert_called_once()
        request = mock_session.transport.call.call_args[0][0]
        assert isinstance(request, HashSearchRequest)
        assert request.token == "TOKEN123"
        assert request.size == 4096
        assert len(request.movie_hash) == 16

    @pytest.mark.asyncio
    async def test_falls_back_to_tag_then_title(self, mock_session, video_file, search_response, record):
        path = video_file()
        mock_session.transport.call.side_effect = [
            search_response([]),
            search_response([]),
            search_response([record(IDSubtitle="7")]),
        ]

        results = await find_subtitles(mock_session, path, language="en")

        assert [sub.id for sub in results] == [7]
        requests = [call[0][0] for call in mock_session.transport.call.call_args_list]
        assert [type(r) for r in requests] == [HashSearchRequest, TagSearchRequest, MovieSearchRequest]
        assert requests[1].tag == "Movie.Name.2019.1080p.mkv"
        assert requests[2].query == "Movie Name"

    @pytest.mark.asyncio
    async def test_tag_match_skips_title(self, mock_session, video_file, search_response, record):
        mock_session.transport.call.side_effect = [
            search_response([]),
            search_response([record()]),
        ]

        results = await find_subtitles(mock_session, video_file())

        assert len(results) == 1
        assert mock_session.transport.call.call_count == 2

    @pytest.mark.asyncio
    async def test_tv_show_title_search(self, mock_session, video_file, search_response, record):
        mock_session.transport.call.side_effect = [
            search_response([]),
            search_response([]),
            search_response([record()]),
        ]

        await find_subtitles(mock_session, video_file("Show.Name.S02E05.720p.mkv"), language="fr")

        request = mock_session.transport.call.call_args_list[2][0][0]
        assert isinstance(request, TvShowSearchRequest)
        assert (request.query, request.season, request.episode) == ("Show Name", 2, 5)
        assert request.language == "fr"

    @pytest.mark.asyncio
    async def test_filtered_out_results_count_as_no_match(self, mock_session, video_file, search_response, record):
        mock_session.transport.call.side_effect = [
            search_response([record(ISO639="fr")]),
            search_response([record(SubFormat="sub")]),
            search_response([record(SubHearingImpaired="1")]),
        ]

        results = await find_subtitles(mock_session, video_file())

        assert results == []
        assert mock_session.transport.call.call_count == 3

    @pytest.mark.asyncio
    async def test_results_are_ranked(self, mock_session, video_file, search_response, record):
        mock_session.transport.call.return_value = search_response([
            record(IDSubtitle="1", SubRating="5.0", SubDownloadsCnt="10"),
            record(IDSubtitle="2", SubRating="5.0", SubDownloadsCnt="100"),
        ])

        results = await find_subtitles(mock_session, video_file())

        assert [sub.id for sub in results] == [2, 1]

    @pytest.mark.asyncio
    async def test_transport_error_propagates_without_fallback(self, mock_session, video_file):
        mock_session.transport.call.side_effect = ProtocolError("HTTP Error 503", status_code=503)

        with pytest.raises(ProtocolError):
            await find_subtitles(mock_session, video_file())

        mock_session.transport.call.assert_called_once()

    @pytest.mark.asyncio
    async def test_unreadable_file(self, mock_session, tmp_path):
        with pytest.raises(SubtitleIOError):
            await find_subtitles(mock_session, tmp_path / "missing.mkv")

        mock_session.transport.call.assert_not_called()

    @pytest.mark.asyncio
    async def test_custom_strategy_list(self, mock_session, search_response, record):
        mock_session.transport.call.return_value = search_response([record()])

        results = await find_subtitles(mock_session, "/nowhere/Release.Group.mkv", strategies=[TagSearch()])

        assert len(results) == 1
        request = mock_session.transport.call.call_args[0][0]
        assert isinstance(request, TagSearchRequest)
        assert request.tag == "Release.Group.mkv"
