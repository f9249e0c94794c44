"""通用响应模型"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class BaseResponse(BaseModel):
    """基础响应模型"""
    success: bool = Field(
        ...,
        description="请求是否成功"
    )
    message: Optional[str] = Field(
        None,
        description="响应消息"
    )


class ErrorResponse(BaseResponse):
    """失败响应"""
    success: bool = False
    error: Optional[Any] = None


class HealthCheckResponse(BaseModel):
    """健康检查响应"""
    status: str = Field("up", description="服务状态")
    timestamp: str
    database: dict
    environment: str
