"""
Pytest 配置和共享 fixtures
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from app.database import Base, get_db
from app.models import user, datalist  # noqa
from app.models.user import User
from app.security.auth import get_password_hash
from app.security.session import SessionStore
from app.services.action_service import create_action_system, get_action_system, get_session_store
from app.services.secret_store import SiteSecretStore
from app.main import app
from core.actions import ActionSystem

# 固定时钟的当前时间
NOW = 1_700_000_000


class StaticSecretProvider:
    """固定站点密钥（用于单元测试）"""

    def __init__(self, secret: str = "test-site-secret"):
        self.secret = secret
        self.init_calls = 0

    def get(self) -> str:
        return self.secret

    def init(self) -> str:
        self.init_calls += 1
        self.secret = f"rotated-secret-{self.init_calls}"
        return self.secret


class FrozenClock:
    """可调时钟"""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def secrets_provider():
    return StaticSecretProvider()


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def system(secrets_provider, clock):
    """单元测试用动作系统（无数据库）"""
    return ActionSystem(
        secrets_provider,
        site_url="http://site.example/",
        clock=clock,
    )


# ============== 数据库相关 Fixtures ==============

@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory):
    """创建数据库会话"""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def secret_store(session_factory):
    return SiteSecretStore(session_factory)


@pytest.fixture
def app_action_system(secret_store):
    """与测试数据库绑定的应用动作系统"""
    return create_action_system(secret_store)


@pytest.fixture
def session_store():
    return SessionStore()


@pytest.fixture(scope="function")
def client(db_session, app_action_system, session_store):
    """创建测试客户端（不自动跟随重定向）"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_action_system] = lambda: app_action_system
    app.dependency_overrides[get_session_store] = lambda: session_store
    with TestClient(app, follow_redirects=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 用户相关 Fixtures ==============

def _create_user(db_session, username: str, password: str, is_admin: bool = False, is_active: bool = True) -> User:
    account = User(
        username=username,
        password_hash=get_password_hash(password),
        name=username,
        is_admin=is_admin,
        is_active=is_active,
    )
    db_session.add(account)
    db_session.commit()
    db_session.refresh(account)
    return account


@pytest.fixture
def sample_user(db_session):
    """普通用户"""
    return _create_user(db_session, "alice", "password123")


@pytest.fixture
def admin_user(db_session):
    """管理员"""
    return _create_user(db_session, "root", "adminpass", is_admin=True)


@pytest.fixture
def inactive_user(db_session):
    """已停用用户"""
    return _create_user(db_session, "bob", "password123", is_active=False)


@pytest.fixture
def action_token(client):
    """为客户端当前会话获取令牌，返回可直接提交的参数"""
    response = client.get("/security/token")
    assert response.status_code == 200
    data = response.json()
    return {data["token_field"]: data["token"], data["ts_field"]: str(data["ts"])}


XHR_HEADERS = {"X-Requested-With": "XMLHttpRequest"}


@pytest.fixture
def xhr_headers():
    return dict(XHR_HEADERS)
