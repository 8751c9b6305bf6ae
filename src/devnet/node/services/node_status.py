"""
节点状态服务。

提供节点状态查询与一次完整编排（启动/停止）的接口。
"""

from __future__ import annotations

from src.devnet.config import Config
from ..schemas import ContainerStatus, RunOptions, RunOutcome
from .container_probe import probe
from .orchestrator import NodeOrchestrator


def status(config: Config) -> ContainerStatus:
    """获取节点容器状态。"""
    return probe(config.node_docker_image)


def run(options: RunOptions, config: Config) -> RunOutcome:
    """按选项执行一次启动或停止流程。"""
    return NodeOrchestrator(config).run(options)
