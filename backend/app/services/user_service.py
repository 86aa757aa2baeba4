"""
用户服务 - 账号注册与登录校验
"""
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from app.config import settings
from app.models.user import User
from app.security.auth import get_password_hash, verify_password

logger = logging.getLogger(__name__)


class UserService:
    """用户服务"""

    def __init__(self, db: Session):
        self.db = db

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def get_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def authenticate(self, username: str, password: str) -> Optional[User]:
        """
        校验用户名和密码

        Returns:
            成功返回用户；用户不存在或密码错误返回 None

        Raises:
            ValueError: 账号已停用
        """
        user = self.get_by_username(username)
        if not user or not verify_password(password, user.password_hash):
            return None
        if not user.is_active:
            raise ValueError("This account has been disabled.")

        user.last_login_at = datetime.now()
        self.db.commit()
        return user

    def create_user(self, username: str, password: str, name: str = "", is_admin: bool = False) -> User:
        """
        创建用户

        Raises:
            ValueError: 用户名为空、已存在或密码过短
        """
        username = (username or "").strip()
        if not username:
            raise ValueError("A username is required.")
        if len(password or "") < settings.MIN_PASSWORD_LENGTH:
            raise ValueError(f"Passwords must be at least {settings.MIN_PASSWORD_LENGTH} characters long.")
        if self.get_by_username(username):
            raise ValueError(f"The username {username} is already taken.")

        user = User(
            username=username,
            password_hash=get_password_hash(password),
            name=name or username,
            is_admin=is_admin,
            is_active=True,
        )
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"User created: {username} (admin={is_admin})")
        return user
