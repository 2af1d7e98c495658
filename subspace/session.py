"""
セッション管理モジュール

ログインして得たトークンとトランスポートを Session としてまとめる。
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .codec import parse_members
from .config_handler import LookupConfig
from .error_handler import AuthError, ProtocolError, SubtitleIOError
from .protocol import LoginRequest, LogoutRequest
from .transport import RpcTransport

logger = logging.getLogger(__name__)

LOGIN_LANGUAGE = "en"


@dataclass(frozen=True)
class Session:
    """認証トークンとトランスポートの組

    検索・取得の呼び出しごとに明示的に渡す。トークンが拒否された場合は
    新しい Session を作り直す（このオブジェクトは書き換えない）。
    """
    token: str
    transport: RpcTransport

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self) -> None:
        """ログアウトしてトランスポートを閉じる."""
        if self.transport.is_closed:
            return
        await log_out(self)
        await self.transport.aclose()


async def log_in(
    transport: Optional[RpcTransport] = None,
    config: Optional[LookupConfig] = None
) -> Session:
    """
    匿名ログインしてセッションを作成.

    Args:
        transport: 使用するトランスポート（省略時は config から作成）
        config: 設定（transport 省略時のみ使用）

    Returns:
        Session: 作成したセッション

    Raises:
        AuthError: 通信失敗・解凍失敗・トークン欠落の場合
    """
    owns_transport = transport is None
    if transport is None:
        transport = RpcTransport.from_config(config or LookupConfig())

    request = LoginRequest(language=LOGIN_LANGUAGE, user_agent=transport.user_agent)

    try:
        text = await transport.call(request)
        fields = parse_members(text)
        token = fields.get("token")
        if not token:
            raise AuthError("Error logging in: no token in response",
                            endpoint=transport.endpoint, status=fields.get("status"))
    except (ProtocolError, SubtitleIOError) as e:
        logger.error(f"Login failed: {e}")
        if owns_transport:
            await transport.aclose()
        raise AuthError(f"Error logging in: {e.message}", endpoint=transport.endpoint) from e
    except AuthError:
        logger.error("Login failed: token missing from response")
        if owns_transport:
            await transport.aclose()
        raise

    logger.info(f"Logged in to {transport.endpoint} (token {token[:4]}...)")
    return Session(token=token, transport=transport)


async def log_out(session: Session) -> bool:
    """
    トークンを無効化する.

    失敗してもログに残すだけで例外は送出しない。

    Returns:
        ログアウトに成功した場合True
    """
    try:
        await session.transport.call(LogoutRequest(token=session.token))
    except (ProtocolError, SubtitleIOError) as e:
        logger.warning(f"Logout failed: {e}")
        return False

    logger.info("Logged out")
    return True
