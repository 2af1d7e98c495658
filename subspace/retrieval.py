"""
字幕ファイル取得モジュール

選ばれた字幕をダウンロードし、gzipを解凍して生のバイト列を返す。
表示用のプレビューではchardetで文字コードを判定する。
"""

import logging
from typing import Union
from pathlib import Path

import chardet

from .codec import decompress
from .error_handler import SubtitleIOError, SubtitleNotFoundError
from .models import Subtitle
from .search import find_subtitles
from .session import Session

logger = logging.getLogger(__name__)


async def fetch(session: Session, subtitle: Subtitle) -> bytes:
    """
    字幕本体を取得する（キャッシュしない）.

    Args:
        session: セッション
        subtitle: 取得する字幕

    Returns:
        解凍済みの字幕バイト列

    Raises:
        SubtitleIOError: ダウンロード・解凍に失敗した場合
    """
    if not subtitle.download_link:
        raise SubtitleIOError(f"Subtitle {subtitle.id} has no download link", operation="download")

    data = decompress(await session.transport.get_bytes(subtitle.download_link))
    logger.info(f"Downloaded subtitle {subtitle.id} ({len(data)} bytes)")
    return data


async def download_best(
    session: Session,
    file_path: Union[str, Path],
    language: str = "en",
    hearing_impaired: bool = False
) -> bytes:
    """
    検索して先頭の字幕を取得.

    Raises:
        SubtitleNotFoundError: どの検索方法でも見つからなかった場合
    """
    subtitles = await find_subtitles(session, file_path, language, hearing_impaired)
    if not subtitles:
        raise SubtitleNotFoundError(
            f"No subtitles found for {Path(file_path).name}",
            file_path=str(file_path),
            language=language
        )
    return await fetch(session, subtitles[0])


def detect_encoding(data: bytes) -> str:
    """
    字幕バイト列のエンコーディングを検出（UTF-8を優先）.

    Returns:
        str: エンコーディング名
    """
    detected = chardet.detect(data)
    encoding = detected['encoding'] if detected['encoding'] else 'utf-8'

    if encoding.lower() in ['ascii', 'utf-8']:
        return 'utf-8'

    return encoding


def decode_subtitle_text(data: bytes) -> str:
    """表示用に字幕バイト列を文字列へ変換."""
    return data.decode(detect_encoding(data), errors="replace")


def preview_text(data: bytes, max_lines: int = 6) -> str:
    """
    保存した字幕の先頭部分をプレビュー用に取り出す.

    Args:
        data: 字幕バイト列
        max_lines: 取り出す最大行数（空行は数えない）

    Returns:
        str: 先頭の数行
    """
    lines = [line for line in decode_subtitle_text(data).lstrip("\ufeff").splitlines() if line.strip()]
    return "\n".join(lines[:max(0, max_lines)])
