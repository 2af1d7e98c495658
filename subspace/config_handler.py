"""
設定管理モジュール

字幕検索エンジンの設定値を管理し、検証を行います。
"""

import os
import re
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse


DEFAULT_ENDPOINT = "http://api.opensubtitles.org/xml-rpc"
DEFAULT_USER_AGENT = "Subspace V1"
DEFAULT_LANGUAGE = "en"

# 検索可能な言語（コード → 表示名）
SUPPORTED_LANGUAGES = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "fi": "Finnish",
    "pl": "Polish",
    "sv": "Swedish",
    "ru": "Russian",
    "el": "Greek",
    "it": "Italian",
    "da": "Danish",
    "tr": "Turkish",
    "jp": "Japanese",
    "ch": "Chinese",
}


@dataclass
class LookupConfig:
    """字幕検索設定を格納するデータクラス"""
    endpoint: str = DEFAULT_ENDPOINT
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 30.0
    language: str = DEFAULT_LANGUAGE
    max_concurrent_files: int = 1

    def __post_init__(self):
        """初期化後の検証"""
        if self.timeout <= 0:
            raise ValueError("Timeout must be a positive number")
        if self.max_concurrent_files < 1:
            raise ValueError("max_concurrent_files must be at least 1")
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language code: {self.language}")


class ConfigHandler:
    """設定管理クラス"""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def validate_config(self, config: LookupConfig) -> bool:
        """
        設定値の検証

        Args:
            config: 検証対象の設定

        Returns:
            bool: 検証結果（True: 成功, False: 失敗）
        """
        if not self.validate_url(config.endpoint):
            self.logger.error(f"Invalid endpoint URL: {config.endpoint}")
            return False

        if not self.validate_user_agent(config.user_agent):
            self.logger.error(f"Invalid user agent: {config.user_agent!r}")
            return False

        if not self.validate_language(config.language):
            self.logger.error(f"Unsupported language: {config.language}")
            return False

        if config.timeout <= 0:
            self.logger.error(f"Invalid timeout: {config.timeout}")
            return False

        if config.max_concurrent_files < 1:
            self.logger.error(f"Invalid max_concurrent_files: {config.max_concurrent_files}")
            return False

        self.logger.info("Configuration validated")
        return True

    def validate_url(self, url: str) -> bool:
        """
        URL形式の検証

        Args:
            url: 検証対象のURL

        Returns:
            bool: 検証結果
        """
        if not url or not isinstance(url, str):
            return False

        try:
            parsed = urlparse(url.strip())

            # スキームチェック（http/https）
            if parsed.scheme not in ('http', 'https'):
                return False

            if not parsed.netloc:
                return False

            # parsed.port は範囲外のポートで ValueError を送出する
            if parsed.port is not None and not (1 <= parsed.port <= 65535):
                return False
        except ValueError:
            return False

        return True

    def validate_language(self, language: str) -> bool:
        """言語コードがサポート対象か検証"""
        return isinstance(language, str) and language in SUPPORTED_LANGUAGES

    def validate_user_agent(self, user_agent: str) -> bool:
        """
        ユーザーエージェント文字列の検証

        XMLテンプレートにそのまま埋め込まれるため、印字可能なASCIIのみ許可する。
        """
        if not user_agent or not isinstance(user_agent, str):
            return False

        if not user_agent.strip():
            return False

        return re.match(r'^[\x20-\x7e]+$', user_agent) is not None

    def load_from_env(self) -> Optional[LookupConfig]:
        """
        環境変数から設定を読み込み

        Returns:
            LookupConfig: 設定オブジェクト（失敗時はNone）
        """
        try:
            config = LookupConfig(
                endpoint=os.getenv('SUBSPACE_ENDPOINT', DEFAULT_ENDPOINT),
                user_agent=os.getenv('SUBSPACE_USER_AGENT', DEFAULT_USER_AGENT),
                timeout=float(os.getenv('SUBSPACE_TIMEOUT', '30')),
                language=os.getenv('SUBSPACE_LANGUAGE', DEFAULT_LANGUAGE),
                max_concurrent_files=int(os.getenv('SUBSPACE_MAX_CONCURRENT_FILES', '1'))
            )
        except ValueError as e:
            self.logger.error(f"Invalid environment value: {str(e)}")
            return None

        if self.validate_config(config):
            return config
        return None
