"""
Pydantic 模型 - API 响应结构
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict


class TokenPairResponse(BaseModel):
    """当前会话的动作令牌"""
    token: str
    ts: int
    token_field: str
    ts_field: str


class UserResponse(BaseModel):
    """用户信息"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    name: str
    is_admin: bool
    is_active: bool


class SessionResponse(BaseModel):
    """当前会话信息"""
    logged_in: bool
    is_admin: bool
    user: Optional[UserResponse] = None
