"""
动作 API 集成测试
覆盖 /action/<name>、/security/token、/security/session
"""
from fastapi.testclient import TestClient

from app.config import settings
from app.languages import APP_MESSAGES
from app.models.user import User
from app.security.auth import decode_session_token
from core.actions.messages import DEFAULT_CATALOG


def login(client: TestClient, username: str, password: str):
    return client.post("/action/login", data={"username": username, "password": password})


def session_info(client: TestClient) -> dict:
    response = client.get("/security/session")
    assert response.status_code == 200
    return response.json()


class TestSecurityEndpoints:
    """令牌与会话接口测试"""

    def test_token_sets_session_cookie(self, client: TestClient):
        """测试获取令牌时建立会话"""
        response = client.get("/security/token")

        assert response.status_code == 200
        data = response.json()
        assert data["token_field"] == settings.ACTION_TOKEN_FIELD
        assert data["ts_field"] == settings.ACTION_TS_FIELD
        assert len(data["token"]) == 64
        assert settings.SESSION_COOKIE_NAME in response.cookies

    def test_token_keeps_session(self, client: TestClient, session_store):
        """测试同一客户端复用会话"""
        client.get("/security/token")
        client.get("/security/token")
        assert len(session_store) == 1

    def test_anonymous_session(self, client: TestClient):
        assert session_info(client) == {"logged_in": False, "is_admin": False, "user": None}

    def test_root_and_health(self, client: TestClient):
        assert client.get("/").json()["name"] == settings.APP_NAME
        assert client.get("/health").json() == {"status": "healthy"}


class TestLoginAction:
    """登录动作测试（免令牌）"""

    def test_login_redirects(self, client: TestClient, sample_user):
        """测试登录成功后重定向到站点根"""
        response = login(client, "alice", "password123")

        assert response.status_code == 302
        assert response.headers["location"] == settings.SITE_URL
        info = session_info(client)
        assert info["logged_in"] is True
        assert info["user"]["username"] == "alice"

    def test_login_forward(self, client: TestClient, sample_user):
        response = client.post(
            "/action/login",
            data={"username": "alice", "password": "password123", "forward": "/dashboard"},
        )
        assert response.headers["location"] == f"{settings.SITE_URL}dashboard"

    def test_login_wrong_password(self, client: TestClient, sample_user, xhr_headers):
        response = client.post(
            "/action/login",
            data={"username": "alice", "password": "wrong"},
            headers=xhr_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [APP_MESSAGES["login:error"]]
        assert session_info(client)["logged_in"] is False

    def test_login_inactive(self, client: TestClient, inactive_user, xhr_headers):
        data = client.post(
            "/action/login",
            data={"username": "bob", "password": "password123"},
            headers=xhr_headers,
        ).json()
        assert data["status"] == -1
        assert "disabled" in data["system_messages"]["errors"][0]

    def test_login_json_body(self, client: TestClient, sample_user, xhr_headers):
        data = client.post(
            "/action/login",
            json={"username": "alice", "password": "password123"},
            headers=xhr_headers,
        ).json()

        assert data["status"] == 0
        assert data["system_messages"]["messages"] == [APP_MESSAGES["login:ok"]]

    def test_login_forward_not_a_string(self, client: TestClient, sample_user, xhr_headers):
        """测试 JSON 请求体中的非字符串 forward 被忽略"""
        response = client.post(
            "/action/login",
            json={"username": "alice", "password": "password123", "forward": ["a", "b"]},
            headers=xhr_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == 0
        assert data["forward_url"] == settings.SITE_URL

    def test_login_forward_number(self, client: TestClient, xhr_headers):
        response = client.post(
            "/action/login",
            json={"username": "x", "password": "y", "forward": 123},
            headers=xhr_headers,
        )

        assert response.status_code == 200
        assert response.json()["status"] == -1

    def test_login_rotates_session(self, client: TestClient, sample_user):
        """测试登录后换发会话 ID"""
        client.get("/security/token")
        before = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        login(client, "alice", "password123")
        after = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        assert before and after
        assert after != before
        assert session_info(client)["logged_in"] is True

    def test_token_from_before_login_rejected(self, client: TestClient, sample_user, action_token, xhr_headers):
        login(client, "alice", "password123")

        data = client.post("/action/security/refreshtoken", data=action_token, headers=xhr_headers).json()

        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["actiongate:token_invalid"]]

    def test_failed_login_keeps_session(self, client: TestClient, sample_user):
        client.get("/security/token")
        before = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        login(client, "alice", "wrong")

        assert decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME)) == before

    def test_logout(self, client: TestClient, sample_user, session_store):
        login(client, "alice", "password123")
        logged_in = decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME))

        response = client.get("/action/logout")

        assert response.status_code == 302
        assert session_store.get(logged_in) is None
        assert decode_session_token(client.cookies.get(settings.SESSION_COOKIE_NAME)) != logged_in
        assert session_info(client)["logged_in"] is False


class TestGatedActions:
    """需要令牌的动作"""

    def test_register_with_token(self, client: TestClient, db_session, action_token):
        response = client.post(
            "/action/register",
            data={"username": "carol", "password": "secret99", **action_token},
        )

        assert response.status_code == 302
        assert db_session.query(User).filter(User.username == "carol").count() == 1
        assert session_info(client)["logged_in"] is True

    def test_register_without_token(self, client: TestClient, db_session, xhr_headers):
        client.get("/security/token")
        data = client.post(
            "/action/register",
            data={"username": "carol", "password": "secret99"},
            headers=xhr_headers,
        ).json()

        assert data["status"] == -1
        assert data["forward_url"] == settings.SITE_URL
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["actiongate:missing_fields"]]
        assert db_session.query(User).filter(User.username == "carol").count() == 0

    def test_token_in_headers(self, client: TestClient, action_token, xhr_headers):
        headers = {
            **xhr_headers,
            settings.ACTION_TOKEN_HEADER: action_token[settings.ACTION_TOKEN_FIELD],
            settings.ACTION_TS_HEADER: action_token[settings.ACTION_TS_FIELD],
        }
        data = client.post("/action/security/refreshtoken", headers=headers).json()
        assert data["status"] == 0

    def test_refreshtoken_output(self, client: TestClient, action_token, xhr_headers):
        """测试异步调用返回新令牌"""
        response = client.get("/action/security/refreshtoken", params=action_token, headers=xhr_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("application/json")
        data = response.json()
        assert set(data) == {"current_url", "forward_url", "system_messages", "status", "output"}
        assert data["status"] == 0
        assert set(data["output"]) == {settings.ACTION_TOKEN_FIELD, settings.ACTION_TS_FIELD}
        assert isinstance(data["output"][settings.ACTION_TS_FIELD], int)

    def test_refreshed_token_is_valid(self, client: TestClient, action_token, xhr_headers):
        output = client.get(
            "/action/security/refreshtoken", params=action_token, headers=xhr_headers
        ).json()["output"]
        fresh = {key: str(value) for key, value in output.items()}

        data = client.get("/action/security/refreshtoken", params=fresh, headers=xhr_headers).json()
        assert data["status"] == 0

    def test_undefined_action(self, client: TestClient, action_token, xhr_headers):
        data = client.post("/action/no/such/action", data=action_token, headers=xhr_headers).json()

        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [
            DEFAULT_CATALOG["action:undefined"] % "no/such/action"
        ]

    def test_token_from_other_session(self, client: TestClient, action_token, xhr_headers):
        """测试令牌不能跨会话使用"""
        client.cookies.clear()

        data = client.post("/action/security/refreshtoken", data=action_token, headers=xhr_headers).json()

        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["actiongate:token_invalid"]]

    def test_messages_kept_for_next_request(self, client: TestClient, action_token, xhr_headers):
        """测试同步调用的消息保留在会话中，由下一次异步调用取走"""
        response = client.post("/action/no/such/action", data=action_token)
        assert response.status_code == 302

        data = client.post("/action/security/refreshtoken", data=action_token, headers=xhr_headers).json()

        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["action:undefined"] % "no/such/action"]


class TestAdminActions:
    """管理员动作"""

    def test_user_is_unauthorized(self, client: TestClient, sample_user, xhr_headers):
        login(client, "alice", "password123")
        token = client.get("/security/token").json()
        params = {token["token_field"]: token["token"], token["ts_field"]: str(token["ts"])}

        data = client.post("/action/admin/site/regenerate_secret", data=params, headers=xhr_headers).json()

        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["action:unauthorized"]]

    def test_regenerate_secret_invalidates_tokens(self, client: TestClient, admin_user, xhr_headers):
        login(client, "root", "adminpass")
        token = client.get("/security/token").json()
        params = {token["token_field"]: token["token"], token["ts_field"]: str(token["ts"])}

        data = client.post("/action/admin/site/regenerate_secret", data=params, headers=xhr_headers).json()
        assert data["status"] == 0
        assert APP_MESSAGES["admin:site:secret_regenerated"] in data["system_messages"]["messages"]

        data = client.post("/action/security/refreshtoken", data=params, headers=xhr_headers).json()
        assert data["status"] == -1
        assert data["system_messages"]["errors"] == [DEFAULT_CATALOG["actiongate:token_invalid"]]
