"""
会话管理
会话状态保存在进程内存中，Cookie 只携带签名后的会话 ID

每个会话有独立的 salt，动作令牌由 站点密钥 + 时间戳 + 会话 ID + salt 派生，
因此令牌无法在其他会话中重放。
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple
import logging
import secrets
import threading

from fastapi import Request, Response

from app.config import settings
from app.security.auth import create_session_token, decode_session_token
from core.actions.context import CallerIdentity
from core.actions.messages import MessageQueue

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return secrets.token_urlsafe(32)


def _new_salt() -> str:
    return secrets.token_hex(16)


@dataclass
class SessionState:
    """
    会话状态

    Attributes:
        session_id: 会话ID
        salt: 会话级令牌盐
        user_id: 登录用户ID，未登录为 None
        is_admin: 是否管理员
        messages: 待展示的用户消息（跨 forward 保留）
        created_at: 创建时间
        last_seen_at: 最近一次使用时间
    """

    session_id: str = field(default_factory=_new_session_id)
    salt: str = field(default_factory=_new_salt)
    user_id: Optional[int] = None
    is_admin: bool = False
    messages: MessageQueue = field(default_factory=MessageQueue)
    created_at: datetime = field(default_factory=datetime.now)
    last_seen_at: datetime = field(default_factory=datetime.now)

    @property
    def is_logged_in(self) -> bool:
        return self.user_id is not None

    def identity(self) -> CallerIdentity:
        """当前会话的调用者身份"""
        return CallerIdentity(user_id=self.user_id, is_admin=self.is_admin)

    def login(self, user_id: int, is_admin: bool = False) -> None:
        self.user_id = user_id
        self.is_admin = bool(is_admin)

    def logout(self) -> None:
        self.user_id = None
        self.is_admin = False


class SessionStore:
    """
    内存会话存储（线程安全）

    会话空闲超过 max_age 秒即过期：get 时不再返回，create 时顺带清理。

    Example:
        >>> store = SessionStore()
        >>> state = store.create()
        >>> store.get(state.session_id) is state
        True
    """

    def __init__(
        self,
        max_age: Optional[int] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """
        Args:
            max_age: 空闲过期秒数，默认 SESSION_EXPIRE_HOURS
            clock: 当前时间（用于测试）
        """
        self.max_age = timedelta(seconds=max_age if max_age is not None else settings.SESSION_EXPIRE_HOURS * 3600)
        self._clock = clock
        self._sessions: Dict[str, SessionState] = {}
        self._lock = threading.Lock()

    def _expired(self, state: SessionState, now: datetime) -> bool:
        return now - state.last_seen_at >= self.max_age

    def purge_expired(self) -> int:
        """删除全部过期会话，返回删除数量"""
        now = self._clock()
        with self._lock:
            expired = [sid for sid, state in self._sessions.items() if self._expired(state, now)]
            for sid in expired:
                del self._sessions[sid]
        if expired:
            logger.debug(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def create(self) -> SessionState:
        self.purge_expired()
        now = self._clock()
        state = SessionState(created_at=now, last_seen_at=now)
        with self._lock:
            self._sessions[state.session_id] = state
        logger.debug("Session created")
        return state

    def get(self, session_id: Optional[str]) -> Optional[SessionState]:
        if not session_id:
            return None
        now = self._clock()
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                return None
            if self._expired(state, now):
                del self._sessions[session_id]
                return None
            state.last_seen_at = now
            return state

    def regenerate(self, state: SessionState) -> SessionState:
        """
        为会话换发新的 ID 与 salt（登录、登出时调用）

        旧 ID 立即失效，旧 ID 下签发的令牌随之作废；消息队列与登录状态保留。
        """
        with self._lock:
            self._sessions.pop(state.session_id, None)
            state.session_id = _new_session_id()
            state.salt = _new_salt()
            state.last_seen_at = self._clock()
            self._sessions[state.session_id] = state
        logger.debug("Session id regenerated")
        return state

    def destroy(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


def load_session(request: Request, store: SessionStore) -> Tuple[SessionState, bool]:
    """
    根据请求 Cookie 取得会话，不存在时新建

    Returns:
        (会话状态, 是否新建)
    """
    session_id = decode_session_token(request.cookies.get(settings.SESSION_COOKIE_NAME))
    state = store.get(session_id)
    if state is not None:
        return state, False
    return store.create(), True


def attach_session_cookie(response: Response, state: SessionState) -> None:
    """把会话 Cookie 写入响应"""
    response.set_cookie(
        key=settings.SESSION_COOKIE_NAME,
        value=create_session_token(state.session_id),
        max_age=settings.SESSION_EXPIRE_HOURS * 3600,
        httponly=True,
        samesite="lax",
    )
