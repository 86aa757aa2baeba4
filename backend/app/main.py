"""
应用入口
动作分发服务：令牌校验、登录/管理员检查、同步重定向与异步 JSON 响应
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import init_db
from app.routers import action, security
from app.security.session import SessionStore
from app.services.action_service import create_action_system

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 启动时执行
    init_db()

    # 动作注册在处理请求前完成，之后注册表只读
    app.state.session_store = SessionStore()
    app.state.action_system = create_action_system()
    logger.info(f"{settings.APP_NAME} started with {len(app.state.action_system.registry)} actions")

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="带令牌校验与异步 JSON 响应的动作分发服务",
    version="1.0.0",
    lifespan=lifespan
)

# CORS 配置（异步调用方跨域携带会话 Cookie）
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(action.router)
app.include_router(security.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
