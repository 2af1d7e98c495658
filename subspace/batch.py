"""
複数ファイルの一括処理モジュール

ファイルごとに 検索 → (任意で)取得 を行い、結果をファイル単位で集計する。
1ファイルの失敗で残りの処理は止めない。
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from .error_handler import ErrorHandler, SubspaceError
from .models import SearchCriteria, Subtitle
from .retrieval import fetch
from .search import find_subtitles
from .session import Session

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".mkv", ".mov", ".avi")

StatusCallback = Callable[[str], None]


class FileStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class FileOutcome:
    """1ファイルの処理結果"""
    file_path: str
    status: FileStatus
    subtitles: List[Subtitle] = field(default_factory=list)
    data: Optional[bytes] = None
    message: Optional[str] = None

    @property
    def best(self) -> Optional[Subtitle]:
        return self.subtitles[0] if self.subtitles else None


@dataclass
class BatchResult:
    """一括処理の結果（入力と同じ順序）"""
    outcomes: List[FileOutcome]

    def count(self, status: FileStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status == status)

    def summary(self) -> str:
        """
        結果の要約メッセージを生成.

        Returns:
            str: ユーザー向けの要約
        """
        not_found = self.count(FileStatus.NOT_FOUND)
        errors = self.count(FileStatus.ERROR)
        cancelled = self.count(FileStatus.CANCELLED)
        loaded = self.count(FileStatus.SUCCESS)

        parts = []
        if not_found > 1:
            parts.append(f"Couldn't find subtitles for {not_found} files.")
        elif not_found == 1:
            parts.append("Couldn't find subtitles for one file.")

        if errors > 1:
            parts.append(f"{errors} files failed.")
        elif errors == 1:
            parts.append("One file failed.")

        if cancelled:
            parts.append(f"{cancelled} cancelled.")

        if parts:
            return " ".join(parts)

        return "One subtitle loaded." if loaded == 1 else f"{loaded} subtitles loaded."


def is_video_file(file_path: Union[str, Path]) -> bool:
    """拡張子が対応する動画形式か判定."""
    return Path(file_path).suffix.lower() in VIDEO_EXTENSIONS


def _report(on_status: Optional[StatusCallback], message: str) -> None:
    logger.info(message)
    if on_status is not None:
        on_status(message)


async def process_file(
    session: Session,
    file_path: Union[str, Path],
    language: str = "en",
    hearing_impaired: bool = False,
    download: bool = False,
    on_status: Optional[StatusCallback] = None,
    error_handler: Optional[ErrorHandler] = None
) -> FileOutcome:
    """
    1ファイルを検索し、download=True の場合は先頭の字幕を取得.

    字幕検索エンジンの例外は FileOutcome(status=ERROR) に変換する。
    """
    error_handler = error_handler or ErrorHandler(__name__)
    file_path = str(file_path)
    friendly_name = Path(file_path).stem

    if not is_video_file(file_path):
        return FileOutcome(
            file_path, FileStatus.ERROR,
            message=f"Unsupported file type: {Path(file_path).suffix or '(none)'}"
        )

    try:
        _report(on_status, f"Searching subtitles for {friendly_name}...")
        subtitles = await find_subtitles(session, file_path, language, hearing_impaired)

        if not subtitles:
            return FileOutcome(file_path, FileStatus.NOT_FOUND,
                               message=f"Couldn't find subtitles for {friendly_name}.")

        data = None
        if download:
            _report(on_status, f"Downloading subtitles for {friendly_name}...")
            data = await fetch(session, subtitles[0])

        return FileOutcome(file_path, FileStatus.SUCCESS, subtitles=subtitles, data=data)

    except SubspaceError as e:
        context = ErrorHandler.create_context(
            operation="download" if download else "search",
            file_path=file_path,
            language=language
        )
        return FileOutcome(file_path, FileStatus.ERROR, message=error_handler.handle_error(e, context))


async def process_files(
    session: Session,
    file_paths: Sequence[Union[str, Path]],
    language: str = "en",
    hearing_impaired: bool = False,
    download: bool = False,
    max_concurrency: int = 1,
    on_status: Optional[StatusCallback] = None
) -> BatchResult:
    """
    複数ファイルを処理する.

    max_concurrency=1 の場合は1ファイルずつ順番に処理する。結果は常に入力順。

    Args:
        session: ログイン済みのセッション（全ファイルで共有）
        file_paths: 動画ファイルのパス
        language: 2文字の言語コード
        hearing_impaired: 聴覚障害者向け字幕を探すか
        download: 先頭の字幕を取得するか
        max_concurrency: 同時に処理するファイル数
        on_status: 進捗メッセージを受け取るコールバック

    Returns:
        BatchResult: ファイルごとの結果

    Raises:
        ValueError: 言語コードや同時実行数が不正な場合
    """
    # 不正な条件は全ファイル共通なので先に検証する
    SearchCriteria(language=language, hearing_impaired=hearing_impaired)
    if max_concurrency < 1:
        raise ValueError("max_concurrency must be at least 1")

    error_handler = ErrorHandler(__name__)
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _run(path) -> FileOutcome:
        async with semaphore:
            return await process_file(
                session, path, language, hearing_impaired, download, on_status, error_handler
            )

    tasks = [asyncio.ensure_future(_run(path)) for path in file_paths]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = []
    for path, result in zip(file_paths, results):
        if isinstance(result, asyncio.CancelledError):
            outcomes.append(FileOutcome(str(path), FileStatus.CANCELLED, message="Search cancelled."))
        elif isinstance(result, BaseException):
            message = error_handler.handle_error(result, ErrorHandler.create_context(file_path=str(path)))
            outcomes.append(FileOutcome(str(path), FileStatus.ERROR, message=message))
        else:
            outcomes.append(result)

    batch = BatchResult(outcomes)
    logger.info(f"Batch finished: {batch.summary()}")
    return batch
