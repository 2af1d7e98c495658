"""
字幕検索モジュール

ハッシュ → タグ → ファイル名から解析したタイトル の順に検索し、
最初に結果が得られた時点で終了する。
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .codec import decode_subtitles
from .fingerprint import fingerprint_file_async
from .models import MovieQuery, ParsedName, SearchCriteria, Subtitle, TvShowQuery
from .protocol import (
    HashSearchRequest,
    MovieSearchRequest,
    SearchRequest,
    TagSearchRequest,
    TvShowSearchRequest,
)
from .ranking import filter_and_rank
from .session import Session

logger = logging.getLogger(__name__)

# "Title S01E03" と "Title 1x03"
TV_SHOW_PATTERNS = (
    re.compile(r"(.+?)\s*\bs(\d{1,2})e(\d{1,3})", re.IGNORECASE),
    re.compile(r"(.+?)\s*\b(\d{1,2})x(\d{1,3})\b", re.IGNORECASE),
)

# 解像度・(年)・年以降を切り捨てる
NOISE_PATTERN = re.compile(r"\b\d{3,4}[ip]\b.*$|\(\d{4}\).*$|\b\d{4}\b.*$", re.IGNORECASE)
TRAILING_JUNK_PATTERN = re.compile(r"[\s\-\[\(]+$")

FilePath = Union[str, Path]


def clean_name(file_path: FilePath) -> str:
    """パスと拡張子を除き、'.' と '_' を空白に置き換える."""
    return Path(file_path).stem.replace(".", " ").replace("_", " ")


def _collapse(text: str) -> str:
    return " ".join(text.split())


def parse_filename(file_path: FilePath) -> ParsedName:
    """
    ファイル名からTV番組（タイトル・シーズン・エピソード）または映画タイトルを解析.

    Args:
        file_path: 動画ファイルのパス

    Returns:
        TvShowQuery または MovieQuery
    """
    name = clean_name(file_path)

    for pattern in TV_SHOW_PATTERNS:
        match = pattern.match(name)
        if match:
            title, season, episode = match.groups()
            return TvShowQuery(title=_collapse(title), season=int(season), episode=int(episode))

    title = _collapse(TRAILING_JUNK_PATTERN.sub("", NOISE_PATTERN.sub("", name, count=1)))
    if not title:
        # 名前全体が年や解像度だった場合は整形前の名前で検索する
        title = _collapse(name)
    return MovieQuery(title=title)


class SearchStrategy:
    """検索方法の基底クラス."""

    name = "base"

    async def build_request(
        self, token: str, file_path: Path, criteria: SearchCriteria
    ) -> SearchRequest:
        raise NotImplementedError


class HashSearch(SearchStrategy):
    """ムービーハッシュとファイルサイズで検索."""

    name = "hash"

    async def build_request(self, token, file_path, criteria):
        movie_hash, size = await fingerprint_file_async(file_path)
        return HashSearchRequest(token=token, language=criteria.language, movie_hash=movie_hash, size=size)


class TagSearch(SearchStrategy):
    """ファイル名をそのままタグとして検索."""

    name = "tag"

    async def build_request(self, token, file_path, criteria):
        return TagSearchRequest(token=token, language=criteria.language, tag=file_path.name)


class TitleSearch(SearchStrategy):
    """ファイル名から解析したTV番組・映画タイトルで検索."""

    name = "title"

    async def build_request(self, token, file_path, criteria):
        parsed = parse_filename(file_path)
        if isinstance(parsed, TvShowQuery):
            return TvShowSearchRequest(
                token=token,
                language=criteria.language,
                query=parsed.title,
                season=parsed.season,
                episode=parsed.episode
            )
        return MovieSearchRequest(token=token, language=criteria.language, query=parsed.title)


DEFAULT_STRATEGIES = (HashSearch(), TagSearch(), TitleSearch())


async def run_strategy(
    session: Session,
    strategy: SearchStrategy,
    file_path: FilePath,
    criteria: SearchCriteria
) -> List[Subtitle]:
    """
    1つの検索方法を実行し、フィルタ・並べ替え済みの結果を返す.

    Raises:
        ProtocolError: 通信に失敗した場合
        SubtitleIOError: ファイル読み込み・解凍に失敗した場合
    """
    request = await strategy.build_request(session.token, Path(file_path), criteria)
    text = await session.transport.call(request)
    candidates = decode_subtitles(text)
    results = filter_and_rank(candidates, criteria)
    logger.info(
        f"{strategy.name} search for {Path(file_path).name}: "
        f"{len(results)}/{len(candidates)} candidates kept"
    )
    return results


async def find_subtitles(
    session: Session,
    file_path: FilePath,
    language: str = "en",
    hearing_impaired: bool = False,
    strategies: Optional[Sequence[SearchStrategy]] = None
) -> List[Subtitle]:
    """
    検索方法を順に試し、最初に得られた字幕リストを返す.

    通信エラーは「見つからない」とは扱わず、次の検索方法に進まずにそのまま送出する。

    Args:
        session: ログイン済みのセッション
        file_path: 動画ファイルのパス
        language: 2文字の言語コード
        hearing_impaired: 聴覚障害者向け字幕を探すか
        strategies: 試す検索方法（省略時は ハッシュ → タグ → タイトル）

    Returns:
        並べ替え済みの字幕リスト（見つからない場合は空リスト）
    """
    criteria = SearchCriteria(language=language, hearing_impaired=hearing_impaired)

    for strategy in strategies if strategies is not None else DEFAULT_STRATEGIES:
        results = await run_strategy(session, strategy, file_path, criteria)
        if results:
            return results

    logger.info(f"No subtitles found for {Path(file_path).name} ({language})")
    return []
