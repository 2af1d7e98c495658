"""OpenSubtitles XML-RPC トランスポート."""

import logging
from typing import Optional

import httpx

from .codec import check_status, decode_text, decompress, parse_members
from .config_handler import DEFAULT_ENDPOINT, DEFAULT_USER_AGENT, LookupConfig
from .error_handler import ProtocolError, SubtitleIOError
from .protocol import AnyRequest

logger = logging.getLogger(__name__)


class RpcTransport:
    """単一エンドポイントへのPOSTでXML-RPCを呼び出すクラス."""

    def __init__(
        self,
        endpoint: str = DEFAULT_ENDPOINT,
        user_agent: str = DEFAULT_USER_AGENT,
        request_timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        """
        トランスポートを初期化.

        Args:
            endpoint: XML-RPCエンドポイントURL
            user_agent: ログイン時に送るクライアント識別子
            request_timeout: 各リクエストのタイムアウト（秒）
            client: 既存のHTTPクライアント（省略時は新規作成）
        """
        self.endpoint = endpoint
        self.user_agent = user_agent
        self.request_timeout = request_timeout

        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(request_timeout),
            headers={"Accept-Encoding": "gzip"}
        )

    @classmethod
    def from_config(cls, config: LookupConfig) -> "RpcTransport":
        """設定オブジェクトからトランスポートを作成."""
        return cls(
            endpoint=config.endpoint,
            user_agent=config.user_agent,
            request_timeout=config.timeout
        )

    async def __aenter__(self):
        """非同期コンテキストマネージャーの開始."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """非同期コンテキストマネージャーの終了."""
        await self.aclose()

    async def aclose(self) -> None:
        """HTTPクライアントを閉じる."""
        await self.client.aclose()

    @property
    def is_closed(self) -> bool:
        return self.client.is_closed

    async def call(self, request: AnyRequest) -> str:
        """
        リクエストを送信し、解凍済みの応答本文を返す.

        Args:
            request: 送信するリクエスト

        Returns:
            応答本文（XML文字列）

        Raises:
            ProtocolError: HTTPエラー・通信エラー・タイムアウト・status異常の場合
            SubtitleIOError: 応答の解凍に失敗した場合
        """
        body = request.render()

        if self.client.is_closed:
            raise ProtocolError(
                f"Transport is closed, cannot call {request.method}", url=self.endpoint, method=request.method
            )

        try:
            response = await self.client.post(
                self.endpoint,
                content=body.encode("utf-8"),
                headers={"Content-Type": "text/xml"}
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP Error {e.response.status_code} calling {request.method}"
            logger.error(f"RPC request failed: {error_msg}")
            raise ProtocolError(
                error_msg, url=self.endpoint, status_code=e.response.status_code, method=request.method
            ) from e
        except httpx.TimeoutException as e:
            error_msg = f"Timed out after {self.request_timeout}s calling {request.method}"
            logger.error(f"RPC request failed: {error_msg}")
            raise ProtocolError(
                error_msg, url=self.endpoint, timeout=self.request_timeout, method=request.method
            ) from e
        except httpx.DecodingError as e:
            error_msg = f"Cannot decompress response to {request.method}: {str(e)}"
            logger.error(f"RPC request failed: {error_msg}")
            raise SubtitleIOError(error_msg, operation="decompress", url=self.endpoint) from e
        except httpx.RequestError as e:
            error_msg = f"Request Error: {str(e)}"
            logger.error(f"RPC request failed: {error_msg}")
            raise ProtocolError(error_msg, url=self.endpoint, method=request.method) from e

        text = decode_text(decompress(response.content))
        check_status(parse_members(text), method=request.method)
        return text

    async def get_bytes(self, url: str) -> bytes:
        """
        URLから本文を取得（解凍はしない）.

        Raises:
            SubtitleIOError: 取得に失敗した場合
        """
        if self.client.is_closed:
            raise SubtitleIOError(f"Transport is closed, cannot download {url}", operation="download", url=url)

        try:
            response = await self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP Error {e.response.status_code} downloading {url}"
            logger.error(f"Download failed: {error_msg}")
            raise SubtitleIOError(error_msg, operation="download", url=url) from e
        except httpx.TimeoutException as e:
            error_msg = f"Timed out after {self.request_timeout}s downloading {url}"
            logger.error(f"Download failed: {error_msg}")
            raise SubtitleIOError(error_msg, operation="download", url=url) from e
        except httpx.DecodingError as e:
            error_msg = f"Cannot decompress download {url}: {str(e)}"
            logger.error(f"Download failed: {error_msg}")
            raise SubtitleIOError(error_msg, operation="decompress", url=url) from e
        except httpx.RequestError as e:
            error_msg = f"Request Error: {str(e)}"
            logger.error(f"Download failed: {error_msg}")
            raise SubtitleIOError(error_msg, operation="download", url=url) from e

        return response.content
