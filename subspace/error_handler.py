"""
エラーハンドリングモジュール

字幕検索エンジンの例外クラスとエラー処理機能を提供します。
"""

import logging
import traceback
import datetime
from typing import Dict, Optional, Any


class SubspaceError(Exception):
    """字幕検索エンジンの基底例外クラス"""

    def __init__(self, message: str, error_code: str = None, context: Dict[str, Any] = None):
        """
        初期化

        Args:
            message: エラーメッセージ
            error_code: エラーコード
            context: エラーコンテキスト情報
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.context = context or {}
        self.timestamp = datetime.datetime.now()


class AuthError(SubspaceError):
    """認証エラー（ログイン失敗・トークン欠落）"""

    def __init__(self, message: str, endpoint: str = None, status: str = None):
        """
        認証エラーの初期化

        Args:
            message: エラーメッセージ
            endpoint: 接続先エンドポイント
            status: サーバーが返したステータス
        """
        context = {}
        if endpoint:
            context['endpoint'] = endpoint
        if status:
            context['status'] = status

        super().__init__(message, "AUTH_ERROR", context)


class ProtocolError(SubspaceError):
    """RPC通信エラー（HTTPステータス異常・タイムアウト・不正な応答）"""

    def __init__(self, message: str, url: str = None, status_code: int = None,
                 timeout: float = None, method: str = None):
        """
        RPC通信エラーの初期化

        Args:
            message: エラーメッセージ
            url: 接続先URL
            status_code: HTTPステータスコード
            timeout: タイムアウト時間
            method: 呼び出していたRPCメソッド名
        """
        context = {}
        if url:
            context['url'] = url
        if status_code is not None:
            context['status_code'] = status_code
        if timeout is not None:
            context['timeout'] = timeout
        if method:
            context['method'] = method

        super().__init__(message, "PROTOCOL_ERROR", context)


class SubtitleIOError(SubspaceError):
    """入出力エラー（ファイル読み込み・解凍・ダウンロード）"""

    def __init__(self, message: str, file_path: str = None, operation: str = None, url: str = None):
        """
        入出力エラーの初期化

        Args:
            message: エラーメッセージ
            file_path: 操作対象ファイルパス
            operation: 実行していた操作
            url: ダウンロード先URL
        """
        context = {}
        if file_path:
            context['file_path'] = file_path
        if operation:
            context['operation'] = operation
        if url:
            context['url'] = url

        super().__init__(message, "IO_ERROR", context)


class SubtitleNotFoundError(SubspaceError):
    """検索を全て試しても字幕が見つからなかった"""

    def __init__(self, message: str, file_path: str = None, language: str = None):
        context = {}
        if file_path:
            context['file_path'] = file_path
        if language:
            context['language'] = language

        super().__init__(message, "NOT_FOUND", context)


class ErrorHandler:
    """エラー処理クラス"""

    def __init__(self, logger_name: str = __name__):
        """
        初期化

        Args:
            logger_name: ロガー名
        """
        self.logger = logging.getLogger(logger_name)

    def log_error(self, error: BaseException, context: Dict[str, Any] = None) -> None:
        """
        エラーをログに記録

        Args:
            error: ログに記録する例外
            context: 追加のコンテキスト情報
        """
        error_info = {
            'error_type': error.__class__.__name__,
            'error_message': str(error),
            'timestamp': datetime.datetime.now().isoformat(),
        }

        if isinstance(error, SubspaceError):
            error_info.update({
                'error_code': error.error_code,
                'error_context': error.context,
            })

        if context:
            error_info['additional_context'] = context

        # 例外処理中でなければ "NoneType: None" になる
        error_info['stack_trace'] = traceback.format_exc()

        if isinstance(error, (AuthError, SubtitleIOError)):
            self.logger.error(f"Critical error: {error_info}")
        elif isinstance(error, (ProtocolError, SubtitleNotFoundError)):
            self.logger.warning(f"Lookup error: {error_info}")
        else:
            self.logger.error(f"Unexpected error: {error_info}")

    def format_user_message(self, error: BaseException) -> str:
        """
        ユーザー向けエラーメッセージ生成

        Args:
            error: フォーマット対象の例外

        Returns:
            str: ユーザー向けのエラーメッセージ
        """
        if isinstance(error, AuthError):
            return "Server error: Couldn't connect to OpenSubtitles server."

        elif isinstance(error, ProtocolError):
            base_message = f"Server error: {error.message}"
            if 'status_code' in error.context:
                base_message += f" (status code: {error.context['status_code']})"
            return base_message

        elif isinstance(error, SubtitleIOError):
            base_message = f"I/O error: {error.message}"
            if 'file_path' in error.context:
                base_message += f" (file: {error.context['file_path']})"
            if 'operation' in error.context:
                base_message += f" (operation: {error.context['operation']})"
            return base_message

        elif isinstance(error, SubtitleNotFoundError):
            if 'file_path' in error.context:
                return f"Couldn't find subtitles for {error.context['file_path']}."
            return "Couldn't find subtitles."

        elif isinstance(error, SubspaceError):
            return f"Internal error: {error.message}"

        else:
            return f"Internal error: {str(error)}"

    def handle_error(self, error: BaseException, context: Dict[str, Any] = None) -> str:
        """
        エラーの総合的な処理

        Args:
            error: 処理対象の例外
            context: 追加のコンテキスト情報

        Returns:
            str: ユーザー向けメッセージ
        """
        self.log_error(error, context)
        return self.format_user_message(error)

    @staticmethod
    def create_context(operation: str = None, file_path: str = None,
                       language: Optional[str] = None, **kwargs) -> Dict[str, Any]:
        """
        コンテキスト情報を作成

        Args:
            operation: 実行中の操作
            file_path: 処理中のファイルパス
            language: 検索言語
            **kwargs: その他の情報

        Returns:
            Dict[str, Any]: コンテキスト辞書
        """
        context = {}

        if operation:
            context['operation'] = operation
        if file_path:
            context['file_path'] = file_path
        if language:
            context['language'] = language

        context.update(kwargs)

        return context
