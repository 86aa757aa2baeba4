"""
应用配置
从环境变量读取配置（支持 .env 文件）
"""
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Action Gateway"
    DEBUG: bool = False

    # 站点根地址（forward 目标以它为基准）
    SITE_URL: str = "http://localhost:8000/"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./actions.db"

    # 会话 Cookie 签名配置
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "action_session"
    SESSION_EXPIRE_HOURS: int = 24

    # 动作令牌配置
    ACTION_TOKEN_FIELD: str = "__action_token"
    ACTION_TS_FIELD: str = "__action_ts"
    ACTION_TOKEN_HEADER: str = "X-Action-Token"
    ACTION_TS_HEADER: str = "X-Action-Ts"
    ACTION_TOKEN_WINDOW_SECONDS: int = 3600

    # 无需令牌即可调用的动作
    ACTION_GATE_EXEMPTIONS: List[str] = [
        "admin/plugins/disable",
        "logout",
        "login",
        "file/download",
    ]

    # 未指定处理器时，按 <包>.<动作名> 查找处理模块
    ACTION_HANDLER_BASE: str = "app.actions"

    # 重复注册同名动作时是否报错（默认后注册者覆盖）
    ACTION_REJECT_DUPLICATES: bool = False

    # 异步客户端识别
    ASYNC_CLIENT_HEADER: str = "X-Requested-With"
    ASYNC_CLIENT_MARKER: str = "xmlhttprequest"

    # 允许跨域调用的来源
    CORS_ORIGINS: List[str] = ["http://localhost:5173"]

    # 注册账号的最短密码长度
    MIN_PASSWORD_LENGTH: int = 6

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
