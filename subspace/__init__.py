"""
Subspace - 字幕検索エンジン

動画ファイルのハッシュ・タグ・ファイル名からOpenSubtitlesの字幕を検索し取得します。
"""

from .batch import BatchResult, FileOutcome, FileStatus, process_files
from .config_handler import LookupConfig, ConfigHandler, SUPPORTED_LANGUAGES
from .error_handler import (
    SubspaceError,
    AuthError,
    ProtocolError,
    SubtitleIOError,
    SubtitleNotFoundError,
    ErrorHandler
)
from .models import SearchCriteria, Subtitle
from .retrieval import download_best, fetch
from .search import find_subtitles
from .session import Session, log_in, log_out

# 呼び出し側インターフェース名
search = find_subtitles

__all__ = [
    'BatchResult',
    'FileOutcome',
    'FileStatus',
    'process_files',
    'LookupConfig',
    'ConfigHandler',
    'SUPPORTED_LANGUAGES',
    'SubspaceError',
    'AuthError',
    'ProtocolError',
    'SubtitleIOError',
    'SubtitleNotFoundError',
    'ErrorHandler',
    'SearchCriteria',
    'Subtitle',
    'download_best',
    'fetch',
    'search',
    'find_subtitles',
    'Session',
    'log_in',
    'log_out',
]

__version__ = "1.0.0"
