#!/usr/bin/env python3
"""
字幕検索MCPサーバー
fastmcpを使用したMCPサーバー実装

使用例:
1. 動画ファイルの字幕を検索して保存:
   result = find_subtitles(file_paths=["/videos/Show.Name.S02E05.720p.mkv"])

2. 言語を指定して候補だけを確認:
   candidates = search_subtitles(
       file_path="/videos/Movie.Name.2019.1080p.mp4",
       language="fr"
   )
"""

import asyncio
import logging
from pathlib import Path
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional
from datetime import datetime

from fastmcp import FastMCP

from subspace import __version__
from subspace.batch import FileStatus, is_video_file, process_files
from subspace.config_handler import ConfigHandler, LookupConfig, SUPPORTED_LANGUAGES
from subspace.error_handler import AuthError, ErrorHandler, SubspaceError
from subspace.search import find_subtitles
from subspace.retrieval import preview_text
from subspace.session import Session, log_in

# ログ設定
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 環境変数から設定を取得（不正な場合はデフォルト）
CONFIG = ConfigHandler().load_from_env() or LookupConfig()

# FastMCPサーバーインスタンスを作成
mcp = FastMCP(
    "subspace",
    instructions="動画ファイルに合う字幕をOpenSubtitlesから検索し、動画の隣に.srtとして保存するMCPサーバー。"
)

# 検索統計を保持
lookup_stats = {
    "total_searches": 0,
    "total_files": 0,
    "subtitles_saved": 0,
    "not_found": 0,
    "last_search": None,
    "errors": 0
}

error_handler = ErrorHandler(__name__)

# アプリケーションが所有するセッション（初回検索時に作成して使い回す）
_session: Optional[Session] = None
_session_lock = asyncio.Lock()
# 使用中のセッションごとの利用数（入れ替え後も最後の利用者が終わるまで閉じない）
_session_users: Dict[Session, int] = {}


@asynccontextmanager
async def session_in_use() -> AsyncIterator[Session]:
    """
    現在のセッションを借りる.

    借りている間にセッションが入れ替えられても、古いセッションは
    最後の利用者が返却した時点で閉じる。
    """
    global _session
    async with _session_lock:
        if _session is None:
            _session = await log_in(config=CONFIG)
        session = _session
        _session_users[session] = _session_users.get(session, 0) + 1

    try:
        yield session
    finally:
        async with _session_lock:
            _session_users[session] -= 1
            retired = _session_users[session] == 0 and session is not _session
            if _session_users[session] == 0:
                del _session_users[session]
        if retired:
            await session.close()


async def renew_session() -> Session:
    """新しくログインし直し、古いセッションは使用中でなければ閉じる."""
    global _session
    async with _session_lock:
        new_session = await log_in(config=CONFIG)
        old_session, _session = _session, new_session
        retired = old_session is not None and old_session not in _session_users

    if retired:
        await old_session.close()
    return new_session


def check_language(language: Optional[str]) -> str:
    """言語コードを検証（省略時は設定の既定値）."""
    language = language or CONFIG.language
    if language not in SUPPORTED_LANGUAGES:
        raise ValueError(f"Unsupported language '{language}'. Use one of: {', '.join(SUPPORTED_LANGUAGES)}")
    return language


def subtitle_path_for(file_path: str) -> Path:
    """動画ファイルの隣に置く字幕ファイルのパス（拡張子を .srt に置換）."""
    return Path(file_path).with_suffix(".srt")


async def save_adjacent(file_path: str, data: bytes) -> Path:
    """字幕を動画ファイルの隣に保存."""
    target = subtitle_path_for(file_path)
    await asyncio.to_thread(target.write_bytes, data)
    return target


@mcp.tool(
    name="find_subtitles",
    description="""動画ファイルの字幕を検索し、見つかった最良の字幕を動画の隣に保存する。

使用例:
   find_subtitles(file_paths=["/videos/Show.Name.S02E05.720p.mkv"], language="en")

注意事項:
- ハッシュ → タグ → ファイル名 の順に検索します
- 対応形式: .mp4 .mkv .mov .avi
- download=False の場合は保存せず結果だけを返します"""
)
async def find_subtitles_for_files(
    file_paths: List[str],
    language: Optional[str] = None,
    hearing_impaired: bool = False,
    download: bool = True
) -> dict:
    """
    複数の動画ファイルについて字幕を検索・保存

    Args:
        file_paths: 動画ファイルのパス
        language: 2文字の言語コード (省略時は環境変数SUBSPACE_LANGUAGEを使用)
        hearing_impaired: 聴覚障害者向け字幕を探すか
        download: 字幕を取得して保存するか

    Returns:
        dict: ファイルごとの結果と要約メッセージ
    """
    language = check_language(language)

    lookup_stats["total_searches"] += 1
    lookup_stats["total_files"] += len(file_paths)
    lookup_stats["last_search"] = datetime.now().isoformat()

    try:
        async with session_in_use() as session:
            batch = await process_files(
                session,
                file_paths,
                language=language,
                hearing_impaired=hearing_impaired,
                download=download,
                max_concurrency=CONFIG.max_concurrent_files
            )
    except AuthError as e:
        lookup_stats["errors"] += 1
        return {"success": False, "message": error_handler.handle_error(e), "files": []}

    files = []
    for outcome in batch.outcomes:
        entry = {
            "file_path": outcome.file_path,
            "status": outcome.status.value,
            "message": outcome.message,
            "subtitle": outcome.best.model_dump() if outcome.best else None,
            "saved_to": None,
            "preview": None
        }
        if outcome.status == FileStatus.SUCCESS and outcome.data is not None:
            try:
                entry["saved_to"] = str(await save_adjacent(outcome.file_path, outcome.data))
                entry["preview"] = preview_text(outcome.data)
                lookup_stats["subtitles_saved"] += 1
            except OSError as e:
                entry["status"] = FileStatus.ERROR.value
                entry["message"] = f"Cannot write subtitle file: {e}"
        if entry["status"] == FileStatus.NOT_FOUND.value:
            lookup_stats["not_found"] += 1
        elif entry["status"] == FileStatus.ERROR.value:
            lookup_stats["errors"] += 1
        files.append(entry)

    return {
        "success": all(entry["status"] == FileStatus.SUCCESS.value for entry in files),
        "message": batch.summary(),
        "files": files
    }


@mcp.tool(
    description="""1つの動画ファイルについて字幕候補を検索し、並べ替え済みの一覧を返す（保存しない）。"""
)
async def search_subtitles(
    file_path: str,
    language: Optional[str] = None,
    hearing_impaired: bool = False,
    limit: int = 10
) -> dict:
    """
    字幕候補の一覧を取得

    Args:
        file_path: 動画ファイルのパス
        language: 2文字の言語コード
        hearing_impaired: 聴覚障害者向け字幕を探すか
        limit: 返す候補の最大数

    Returns:
        dict: 候補一覧
    """
    language = check_language(language)

    if not is_video_file(file_path):
        return {"success": False, "error": f"Unsupported file type: {file_path}", "subtitles": []}

    try:
        async with session_in_use() as session:
            subtitles = await find_subtitles(session, file_path, language, hearing_impaired)
    except SubspaceError as e:
        lookup_stats["errors"] += 1
        return {"success": False, "error": error_handler.handle_error(e), "subtitles": []}

    return {
        "success": True,
        "total": len(subtitles),
        "subtitles": [sub.model_dump() for sub in subtitles[:max(0, limit)]]
    }


@mcp.tool(description="検索に使用できる言語コードの一覧を取得")
async def list_languages() -> dict:
    """対応言語の一覧"""
    return {"default": CONFIG.language, "languages": SUPPORTED_LANGUAGES}


@mcp.tool(
    description="""OpenSubtitlesサーバーへの接続状態を確認する。
    新しくログインし直し、成功した場合はそのセッションを以後の検索に使用します。"""
)
async def check_service_status() -> dict:
    """
    サーバーへの接続確認

    Returns:
        dict: 接続状態
    """
    result = {
        "endpoint": CONFIG.endpoint,
        "logged_in": False,
        "error": None
    }

    try:
        await renew_session()
        result["logged_in"] = True
        result["recommendation"] = "OpenSubtitles server is reachable and ready for searches"
    except AuthError as e:
        result["error"] = error_handler.handle_error(e)
        result["recommendation"] = "Please check the network connection and the SUBSPACE_ENDPOINT setting"

    return result


@mcp.tool(description="サーバー情報と統計を取得")
async def get_server_info() -> dict:
    """
    サーバー情報と統計を取得

    Returns:
        dict: サーバーの名前、バージョン、統計情報
    """
    return {
        "name": "subspace",
        "version": __version__,
        "description": "Subtitle lookup MCP server for OpenSubtitles (XML-RPC)",
        "configuration": {
            "endpoint": CONFIG.endpoint,
            "user_agent": CONFIG.user_agent,
            "timeout": CONFIG.timeout,
            "default_language": CONFIG.language,
            "max_concurrent_files": CONFIG.max_concurrent_files
        },
        "statistics": lookup_stats,
        "capabilities": [
            "Movie hash search",
            "Release tag search",
            "TV show season/episode search from filename",
            "Movie title search from filename",
            "Language and hearing-impaired filtering",
            "Save subtitle next to the video file"
        ]
    }


def main():
    """メインエントリーポイント"""
    # MCPサーバーを起動（stdioトランスポート使用）
    mcp.run()


if __name__ == "__main__":
    main()
