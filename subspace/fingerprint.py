"""
動画ファイルのハッシュ計算モジュール

OpenSubtitles互換のムービーハッシュ（ファイルサイズ + 先頭/末尾64KBの64bit和）を計算する。
"""

import asyncio
import logging
import os
import struct
from typing import BinaryIO, Tuple, Union

from .error_handler import SubtitleIOError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 65536
WORD_SIZE = struct.calcsize("<Q")
MASK_64 = 0xFFFFFFFFFFFFFFFF

PathLike = Union[str, os.PathLike]


def _sum_window(stream: BinaryIO) -> int:
    """
    現在位置から最大64KBを読み、リトルエンディアン64bit整数の和を返す.

    8バイトに満たない末尾の端数は加算しない。
    """
    buffer = stream.read(CHUNK_SIZE)
    word_count = len(buffer) // WORD_SIZE
    if word_count == 0:
        return 0
    return sum(struct.unpack_from(f"<{word_count}Q", buffer))


def compute_movie_hash(stream: BinaryIO, size: int) -> bytes:
    """
    ストリームからムービーハッシュを計算.

    Args:
        stream: シーク可能なバイナリストリーム
        size: ストリームのバイト長

    Returns:
        8バイトのハッシュ（ビッグエンディアン）
    """
    file_hash = size

    stream.seek(0)
    file_hash = (file_hash + _sum_window(stream)) & MASK_64

    stream.seek(max(0, size - CHUNK_SIZE))
    file_hash = (file_hash + _sum_window(stream)) & MASK_64

    return file_hash.to_bytes(8, "big")


def to_hexadecimal(digest: bytes) -> str:
    """ハッシュを小文字16進文字列に変換."""
    return digest.hex()


def fingerprint_file(file_path: PathLike) -> Tuple[str, int]:
    """
    ファイルのムービーハッシュとサイズを取得.

    Args:
        file_path: 動画ファイルのパス

    Returns:
        (16桁の16進ハッシュ, ファイルサイズ)

    Raises:
        SubtitleIOError: ファイルを開けない・読めない場合
    """
    try:
        with open(file_path, "rb") as f:
            size = os.fstat(f.fileno()).st_size
            digest = compute_movie_hash(f, size)
    except OSError as e:
        logger.error(f"Failed to fingerprint {file_path}: {e}")
        raise SubtitleIOError(
            f"Cannot read file: {e}", file_path=str(file_path), operation="fingerprint"
        ) from e

    movie_hash = to_hexadecimal(digest)
    logger.debug(f"Fingerprint of {file_path}: {movie_hash} ({size} bytes)")
    return movie_hash, size


async def fingerprint_file_async(file_path: PathLike) -> Tuple[str, int]:
    """ディスク読み込みをワーカースレッドで行う fingerprint_file."""
    return await asyncio.to_thread(fingerprint_file, file_path)
