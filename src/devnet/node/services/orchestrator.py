"""
节点生命周期编排。

状态机：idle → probing → stopping | starting → polling_health → (compiler_starting)
→ funding_wallets → done。starting、polling_health、compiler_starting 阶段的致命错误进入 failed，
其余阶段（探测、停止、充值）的错误保持当前状态直接上抛。

启动流程中只有两处补偿动作：节点端口冲突时停止节点组；编译器启动失败时停止节点组。
其余错误原样上抛，由调用方打印。
"""

from __future__ import annotations

import time
from typing import Callable, Sequence

from loguru import logger

from src.devnet.config import Config
from src.devnet.errors import (
    CompilerPortConflictError,
    CompilerStartError,
    DevnetError,
    LaunchError,
    NodeStartTimeoutError,
    NodeStopError,
    PortConflictError,
    ProbeError,
)
from src.devnet.wallets.schemas import WalletBalance
from src.devnet.wallets.services import fund_default_wallets
from ..schemas import ContainerStatus, OrchestratorState, RunOptions, RunOutcome
from .compose_launcher import ComposeLauncher, ComposeProcess
from .config_check import validate_config_files
from .container_probe import probe

PORT_CONFLICT_MARKERS = ("port is already allocated", "address already in use")
COMPILER_PORT_CONFLICT_MARKERS = ("port is already allocated",)

Prober = Callable[[str], ContainerStatus]
Validator = Callable[[], None]
Funder = Callable[[], list[WalletBalance]]

# 只有这些状态下的错误会让状态机进入 failed
FAILABLE_STATES = (
    OrchestratorState.STARTING,
    OrchestratorState.POLLING_HEALTH,
    OrchestratorState.COMPILER_STARTING,
)


def classify_port_conflict(stderr_text: str, markers: Sequence[str] = PORT_CONFLICT_MARKERS) -> bool:
    """stderr 中出现任一标记（区分大小写的子串匹配）即视为端口冲突。"""
    return any(marker in stderr_text for marker in markers)


class NodeOrchestrator:
    """协调容器探测与 compose 启停。每个实例只执行一次 run。"""

    def __init__(
        self,
        config: Config,
        *,
        prober: Prober | None = None,
        launcher: ComposeLauncher | None = None,
        validator: Validator | None = None,
        funder: Funder | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._probe = prober or probe
        self._launcher = launcher or ComposeLauncher.from_config(config)
        self._validate = validator or (lambda: validate_config_files(config))
        self._fund = funder or (lambda: fund_default_wallets(config))
        self._sleep = sleep
        self.state = OrchestratorState.IDLE
        self.transitions: list[OrchestratorState] = [OrchestratorState.IDLE]
        self._ran = False

    def _enter(self, state: OrchestratorState) -> None:
        logger.debug(f"编排状态: {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    def _done(
        self,
        message: str,
        node: ContainerStatus | None,
        balances: list[WalletBalance] | None = None,
    ) -> RunOutcome:
        self._enter(OrchestratorState.DONE)
        return RunOutcome(
            state=self.state,
            message=message,
            node=node,
            balances=balances or [],
            transitions=list(self.transitions),
        )

    def _probe_node(self) -> ContainerStatus:
        return self._probe(self.config.node_docker_image)

    @staticmethod
    def _log_output(stream: str, line: str) -> None:
        if line.strip():
            logger.info(line)

    def run(self, options: RunOptions) -> RunOutcome:
        """执行一次停止或启动流程，失败时抛出 DevnetError 子类。"""
        if self._ran:
            raise DevnetError("编排器已执行过一次，不能重复启动")
        self._ran = True
        try:
            if options.stop:
                return self._stop()
            return self._start(options)
        except DevnetError:
            if self.state in FAILABLE_STATES:
                self._enter(OrchestratorState.FAILED)
            raise

    def _stop(self) -> RunOutcome:
        self._enter(OrchestratorState.PROBING)
        node = self._probe_node()
        if not node.present:
            logger.info("===== Node is not running! =====")
            return self._done("节点未运行", node)

        self._enter(OrchestratorState.STOPPING)
        logger.info("===== Stopping node and compiler =====")
        result = self._launcher.stop_group(
            [self.config.node_compose_file, self.config.compiler_compose_file]
        )
        if result.failed:
            raise NodeStopError(
                f"停止节点与编译器失败（退出码 {result.returncode}）: {result.stderr_accumulated.strip()}",
                stderr=result.stderr_accumulated,
            )
        logger.info("===== Node was successfully stopped! =====")
        logger.info("===== Compiler was successfully stopped! =====")
        return self._done("节点与编译器已停止", node)

    def _start(self, options: RunOptions) -> RunOutcome:
        self._enter(OrchestratorState.PROBING)
        node = self._probe_node()
        self._validate()

        if node.healthy:
            logger.info("===== Node already started and healthy! =====")
            return self._done("节点已启动且健康", node)

        self._enter(OrchestratorState.STARTING)
        logger.info("===== Starting node =====")
        process = self._launcher.start_group([self.config.node_compose_file], on_line=self._log_output)
        node = self._poll_health(process)
        self._reap(process)
        logger.info("===== Node was successfully started! =====")

        if options.only:
            return self._done("节点已启动", node)

        self._start_compiler()

        self._enter(OrchestratorState.FUNDING_WALLETS)
        logger.info("===== Funding default wallets! =====")
        balances = self._fund()
        logger.info("===== Default wallets was successfully funded! =====")
        return self._done("节点与编译器已启动，钱包已充值", node, balances)

    def _poll_health(self, process: ComposeProcess) -> ContainerStatus:
        """每隔 health_poll_interval_s 探测一次，最多 max_health_polls 次。"""
        self._enter(OrchestratorState.POLLING_HEALTH)
        max_polls = self.config.max_health_polls
        for attempt in range(1, max_polls + 1):
            process.drain()
            if classify_port_conflict(process.stderr_text):
                self._teardown_node()
                raise PortConflictError("无法启动节点，端口已被占用！")

            try:
                status = self._probe_node()
            except ProbeError:
                self._teardown_node()
                raise
            if status.healthy:
                return status

            logger.debug(f"等待节点健康（{attempt}/{max_polls}）")
            if attempt < max_polls:
                self._sleep(self.config.health_poll_interval_s)

        self._teardown_node()
        raise NodeStartTimeoutError(f"节点在 {max_polls} 次健康检查后仍未就绪！")

    def _reap(self, process: ComposeProcess) -> None:
        """节点健康后等待 `compose up -d` 退出并读完剩余输出。容器已在后台运行，这里的失败只记录日志。"""
        try:
            result = process.result(timeout=self.config.compose_exit_timeout_s)
        except LaunchError as e:
            logger.warning(f"等待节点 compose up 退出失败: {e}")
            return
        if result.failed:
            logger.warning(f"节点 compose up 退出码 {result.returncode}: {result.stderr_accumulated.strip()}")

    def _start_compiler(self) -> None:
        self._enter(OrchestratorState.COMPILER_STARTING)
        try:
            process = self._launcher.start_group(
                [self.config.compiler_compose_file], on_line=self._log_output
            )
            result = process.result(timeout=self.config.compiler_start_timeout_s)
        except LaunchError as e:
            self._teardown_node()
            raise CompilerStartError(f"无法启动本地编译器: {e}") from e

        if result.failed:
            self._teardown_node()
            if classify_port_conflict(result.stderr_accumulated, COMPILER_PORT_CONFLICT_MARKERS):
                raise CompilerPortConflictError("无法启动本地编译器，端口已被占用！")
            raise CompilerStartError(
                f"无法启动本地编译器（退出码 {result.returncode}）: {result.stderr_accumulated.strip()}"
            )
        logger.info("===== Local Compiler was successfully started! =====")

    def _teardown_node(self) -> None:
        """尽力停止节点组；停止失败只记录日志，不掩盖原始错误。"""
        try:
            result = self._launcher.stop_group([self.config.node_compose_file])
        except DevnetError as e:
            logger.error(f"停止节点失败: {e}")
            return
        if result.failed:
            logger.warning(f"停止节点时 compose down 退出码 {result.returncode}: {result.stderr_accumulated.strip()}")
            return
        logger.info("===== Node was successfully stopped! =====")
