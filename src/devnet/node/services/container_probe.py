"""
容器健康探测服务。

通过 Docker SDK 查询容器运行时，判断某镜像对应的容器是否存在、是否 healthy。
"""

from __future__ import annotations

from typing import Any, Callable

import docker
import requests
from docker.errors import DockerException
from loguru import logger

from src.devnet.errors import ProbeError
from ..schemas import ContainerInfo, ContainerStatus

HEALTHY_MARKER = "healthy"

# 返回 docker.DockerClient（或具有相同 api.containers() 接口的对象）
DockerClientFactory = Callable[[], Any]


def container_info(row: dict[str, Any]) -> ContainerInfo:
    """将低层 API 的容器列表行（Image/Status/Names）转换为 ContainerInfo。"""
    names = row.get("Names") or []
    return ContainerInfo(
        image=str(row.get("Image", "")),
        status=str(row.get("Status", "")),
        names=",".join(str(n).lstrip("/") for n in names),
    )


def list_containers(client_factory: DockerClientFactory | None = None) -> list[ContainerInfo]:
    """列出运行中的容器。运行时不可用时抛出 ProbeError。"""
    try:
        client = (client_factory or docker.from_env)()
        try:
            # 低层 API 的 Status 即 `docker ps` 的状态字符串，如 Up 2 minutes (healthy)
            rows = client.api.containers()
        finally:
            client.close()
    except (DockerException, requests.exceptions.RequestException) as e:
        raise ProbeError(f"查询容器列表失败，请确认 Docker 已安装并正在运行: {e}") from e
    return [container_info(row) for row in rows]


def is_healthy_status(status: str) -> bool:
    """仅当状态字符串包含 healthy 时视为健康，单纯 Up/running 不算。"""
    return HEALTHY_MARKER in status


def probe(image_prefix: str, client_factory: DockerClientFactory | None = None) -> ContainerStatus:
    """探测镜像名以 image_prefix 开头的容器。运行时不可用时抛出 ProbeError，不做重试。"""
    matched = [c for c in list_containers(client_factory) if c.image.startswith(image_prefix)]
    healthy = any(is_healthy_status(c.status) for c in matched)
    if matched:
        logger.debug(f"容器探测 {image_prefix}: {[c.status for c in matched]}")
    return ContainerStatus(image_name=image_prefix, present=bool(matched), healthy=healthy)
