"""
本地开发链节点管理服务模块集合。

此包包含容器探测、compose 启停、配置预检与生命周期编排，按功能拆分以提高可维护性。
"""

from .node_status import run, status
from .orchestrator import NodeOrchestrator, classify_port_conflict

__all__ = [
    "run",
    "status",
    "NodeOrchestrator",
    "classify_port_conflict",
]
