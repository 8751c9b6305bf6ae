"""
文件功能：
    定义节点编排相关的公开数据模型（Pydantic）。

公开接口：
    - ContainerInfo: 容器运行时列出的一行容器信息
    - ContainerStatus: 某镜像对应容器的探测结果
    - RunOptions: 一次调用的运行选项
    - SpawnResult: 一次 compose 进程的终态输出
    - OrchestratorState: 编排状态机的状态
    - RunOutcome: 一次编排成功结束后的结果

内部方法：
    无

公开接口的 Pydantic 模型：
    - ContainerInfo
    - ContainerStatus
    - RunOptions
    - SpawnResult
    - RunOutcome
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from src.devnet.wallets.schemas import WalletBalance


class ContainerInfo(BaseModel):
    """容器运行时列出的一行容器信息。"""

    image: str = Field(description="镜像名（含 tag）")
    status: str = Field(description="运行时报告的状态字符串，如 Up 2 minutes (healthy)")
    names: str = Field(default="", description="容器名")


class ContainerStatus(BaseModel):
    """镜像探测结果，每次探测都重新生成，不做缓存。"""

    image_name: str = Field(description="用于匹配的镜像名前缀")
    present: bool = Field(description="是否存在匹配的运行中容器")
    healthy: bool = Field(description="是否有匹配容器的状态包含 healthy")


class RunOptions(BaseModel):
    """一次调用的运行选项。"""

    model_config = ConfigDict(frozen=True)

    stop: bool = Field(default=False, description="是否走停止流程")
    only: bool = Field(default=False, description="仅启动节点，跳过编译器与钱包充值")


class SpawnResult(BaseModel):
    """compose 子进程结束后的输出。"""

    exit_occurred: bool = Field(description="进程是否已退出")
    returncode: int | None = Field(default=None, description="退出码，未退出时为 None")
    stdout_lines: list[str] = Field(default_factory=list, description="标准输出的各行")
    stderr_accumulated: str = Field(default="", description="累积的标准错误文本")

    @property
    def failed(self) -> bool:
        return self.exit_occurred and self.returncode not in (0, None)


class OrchestratorState(str, Enum):
    IDLE = "idle"
    PROBING = "probing"
    STOPPING = "stopping"
    STARTING = "starting"
    POLLING_HEALTH = "polling_health"
    COMPILER_STARTING = "compiler_starting"
    FUNDING_WALLETS = "funding_wallets"
    DONE = "done"
    FAILED = "failed"


class RunOutcome(BaseModel):
    """编排成功结束时的结果。失败时直接抛出 DevnetError 子类。"""

    state: OrchestratorState
    message: str = Field(description="面向用户的结果描述")
    node: ContainerStatus | None = Field(default=None, description="最后一次节点探测结果")
    balances: list[WalletBalance] = Field(default_factory=list, description="钱包充值结果")
    transitions: list[OrchestratorState] = Field(default_factory=list, description="状态流转记录")
