"""
文件功能：
    本地开发链节点管理的 FastAPI 路由：暴露节点状态查询与启动/停止接口。

公开接口：
    - GET /node/status -> ContainerStatus
    - POST /node/start?only=bool -> RunOutcome
    - POST /node/stop -> RunOutcome

内部方法：
    - _to_http_error: 将编排错误映射为 HTTPException
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from src.devnet.config import load_config
from src.devnet.errors import (
    CompilerPortConflictError,
    ConfigValidationError,
    DevnetError,
    HeightTimeoutError,
    NodeStartTimeoutError,
    PortConflictError,
)
from .schemas import ContainerStatus, RunOptions, RunOutcome
from . import services


router = APIRouter(prefix="/node", tags=["Devnet Node"])


def _to_http_error(e: DevnetError) -> HTTPException:
    if isinstance(e, ConfigValidationError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, (PortConflictError, CompilerPortConflictError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (NodeStartTimeoutError, HeightTimeoutError)):
        return HTTPException(status_code=504, detail=str(e))
    return HTTPException(status_code=500, detail=f"节点编排失败: {e}")


@router.get("/status", response_model=ContainerStatus)
def get_status() -> ContainerStatus:
    """获取节点容器状态。"""
    try:
        return services.status(load_config())
    except DevnetError as e:
        raise _to_http_error(e)


@router.post("/start", response_model=RunOutcome)
def post_start(only: bool = False) -> RunOutcome:
    """启动节点；only 为 false 时同时启动编译器并为钱包充值。"""
    try:
        return services.run(RunOptions(only=only), load_config())
    except DevnetError as e:
        raise _to_http_error(e)


@router.post("/stop", response_model=RunOutcome)
def post_stop() -> RunOutcome:
    """停止节点与编译器。"""
    try:
        return services.run(RunOptions(stop=True), load_config())
    except DevnetError as e:
        raise _to_http_error(e)
