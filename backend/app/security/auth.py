"""
认证模块
密码哈希（bcrypt）与会话 Cookie 签名（JWT）
"""
import bcrypt
import logging
from datetime import datetime, timedelta, UTC
from typing import Optional
from jose import JWTError, jwt

from app.config import settings

logger = logging.getLogger(__name__)


def get_password_hash(password: str) -> str:
    """密码哈希"""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """验证密码"""
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        # 存储的哈希格式无效
        logger.warning("Stored password hash is malformed")
        return False


def create_session_token(session_id: str) -> str:
    """把会话 ID 签名为 JWT，作为会话 Cookie 的值"""
    expire = datetime.now(UTC) + timedelta(hours=settings.SESSION_EXPIRE_HOURS)
    to_encode = {
        "sid": session_id,
        "exp": expire
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: Optional[str]) -> Optional[str]:
    """解码会话 Cookie，签名无效或过期时返回 None"""
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        logger.debug("Rejected session cookie")
        return None
    session_id = payload.get("sid")
    return session_id if isinstance(session_id, str) and session_id else None
