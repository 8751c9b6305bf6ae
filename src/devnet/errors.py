"""
本地开发链编排过程中的错误类型。

所有错误都继承自 DevnetError（RuntimeError 的子类），由 CLI 顶层或 API 路由统一捕获并上报。
"""

from __future__ import annotations


class DevnetError(RuntimeError):
    """编排错误基类。"""


class ConfigValidationError(DevnetError):
    """节点/编译器配置文件缺失或内容不合法。在任何容器操作之前抛出。"""


class ProbeError(DevnetError):
    """无法查询容器运行时（docker 未安装、未启动或配置错误）。"""


class LaunchError(DevnetError):
    """无法执行 compose 命令。"""


class NodeStopError(DevnetError):
    """compose down 以非零退出码结束，节点与编译器可能仍在运行。"""

    def __init__(self, message: str, stderr: str = "") -> None:
        self.stderr = stderr
        super().__init__(message)


class PortConflictError(DevnetError):
    """节点启动时端口已被占用。"""


class NodeStartTimeoutError(DevnetError):
    """节点在轮询上限内未进入 healthy 状态。"""


class CompilerStartError(DevnetError):
    """编译器容器组启动失败。"""


class CompilerPortConflictError(CompilerStartError):
    """编译器启动时端口已被占用。"""


class ChainClientError(DevnetError):
    """链节点 HTTP 接口调用失败。"""


class HeightTimeoutError(ChainClientError):
    """在轮询上限内链高度未达到目标值。"""


class FundingError(DevnetError):
    """为某个钱包转账失败，后续钱包不再处理。"""

    def __init__(self, label: str, cause: BaseException) -> None:
        self.label = label
        self.cause = cause
        super().__init__(f"为钱包 {label} 充值失败: {cause}")
