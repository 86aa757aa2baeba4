"""
站点密钥存储
站点密钥保存在 datalist 表中，首次使用时自动生成

动作令牌由站点密钥派生；更换密钥会让所有已签发的令牌立即失效。
"""
from typing import Callable, Optional
import logging
import secrets
import threading

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.datalist import Datalist
from core.actions.errors import SecretUnavailable

logger = logging.getLogger(__name__)

SITE_SECRET_NAME = "__site_secret__"


def generate_secret() -> str:
    """生成新的随机站点密钥"""
    return secrets.token_hex(32)


class SiteSecretStore:
    """
    站点密钥提供者

    读取后缓存在内存中；首次读取时若不存在则生成并持久化。

    Example:
        >>> store = SiteSecretStore(SessionLocal)
        >>> secret = store.get()      # 首次调用时生成
        >>> store.get() == secret
        True
        >>> store.init() != secret    # 轮换密钥
        True
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Args:
            session_factory: 返回数据库会话的工厂（如 SessionLocal）
        """
        self._session_factory = session_factory
        self._cached: Optional[str] = None
        self._lock = threading.Lock()

    def get(self) -> str:
        """
        获取站点密钥，不存在时创建

        Raises:
            SecretUnavailable: 数据库不可用
        """
        if self._cached:
            return self._cached

        with self._lock:
            if self._cached:
                return self._cached

            db = self._session_factory()
            try:
                row = db.get(Datalist, SITE_SECRET_NAME)
                if row is not None and row.value:
                    self._cached = row.value
                else:
                    self._cached = self._create(db)
            except SQLAlchemyError as e:
                db.rollback()
                raise SecretUnavailable(f"cannot load site secret: {e}") from e
            finally:
                db.close()

        return self._cached

    def _create(self, db: Session) -> str:
        secret = generate_secret()
        db.add(Datalist(name=SITE_SECRET_NAME, value=secret))
        try:
            db.commit()
        except IntegrityError:
            # 另一个进程抢先创建，使用已保存的密钥
            db.rollback()
            row = db.get(Datalist, SITE_SECRET_NAME)
            if row is None or not row.value:
                raise SecretUnavailable("site secret disappeared while being created")
            return row.value
        logger.info("Site secret created")
        return secret

    def init(self) -> str:
        """
        生成并保存新的站点密钥（覆盖旧值）

        Raises:
            SecretUnavailable: 数据库不可用
        """
        secret = generate_secret()
        with self._lock:
            db = self._session_factory()
            try:
                db.merge(Datalist(name=SITE_SECRET_NAME, value=secret))
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                raise SecretUnavailable(f"cannot save site secret: {e}") from e
            finally:
                db.close()
            self._cached = secret

        logger.info("Site secret regenerated")
        return secret

    def clear_cache(self) -> None:
        """丢弃内存缓存（用于测试）"""
        with self._lock:
            self._cached = None
