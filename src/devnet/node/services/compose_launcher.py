"""
compose 进程组启动/停止服务。

start_group 以非阻塞方式启动 `compose up`，子进程的 stdout/stderr 由后台线程逐行读入有界队列，
调用方在自己的轮询循环中通过 ComposeProcess.drain() 取出；stop_group 同步执行 `compose down`。
"""

from __future__ import annotations

import queue
import subprocess
import threading
import time
from pathlib import Path
from typing import IO, Callable, Sequence

from loguru import logger

from src.devnet.config import Config
from src.devnet.errors import LaunchError
from ..schemas import SpawnResult

# (stream 名称, 行内容)
LineCallback = Callable[[str, str], None]


class ComposeProcess:
    """一个已启动的 compose 子进程及其输出缓冲。"""

    def __init__(
        self,
        proc: subprocess.Popen,
        on_line: LineCallback | None = None,
        buffer_size: int = 1000,
    ) -> None:
        self._proc = proc
        self._on_line = on_line
        # 行为 None 表示该流已读到 EOF
        self._queue: queue.Queue[tuple[str, str | None]] = queue.Queue(maxsize=buffer_size)
        self._stdout_lines: list[str] = []
        self._stderr_lines: list[str] = []
        self._closed_streams = 0
        self._readers: list[threading.Thread] = []
        for name, pipe in (("stdout", proc.stdout), ("stderr", proc.stderr)):
            if pipe is None:
                continue
            reader = threading.Thread(target=self._pump, args=(name, pipe), daemon=True)
            self._readers.append(reader)
            reader.start()

    def _pump(self, name: str, pipe: IO[str]) -> None:
        try:
            for line in iter(pipe.readline, ""):
                self._queue.put((name, line.rstrip("\r\n")))
        finally:
            pipe.close()
            self._queue.put((name, None))

    def _consume(self, name: str, line: str | None) -> None:
        if line is None:
            self._closed_streams += 1
            return
        if name == "stderr":
            self._stderr_lines.append(line)
        else:
            self._stdout_lines.append(line)
        if self._on_line is not None:
            self._on_line(name, line)

    def drain(self) -> int:
        """非阻塞地取出当前缓冲中的全部行，返回本次取出的行数。"""
        count = 0
        while True:
            try:
                name, line = self._queue.get_nowait()
            except queue.Empty:
                return count
            self._consume(name, line)
            if line is not None:
                count += 1

    @property
    def stderr_text(self) -> str:
        """截至目前累积的 stderr 文本。"""
        return "\n".join(self._stderr_lines)

    @property
    def stdout_lines(self) -> list[str]:
        return list(self._stdout_lines)

    def poll(self) -> int | None:
        return self._proc.poll()

    def result(self, timeout: float | None = None) -> SpawnResult:
        """等待进程退出并读完全部输出。超时则结束子进程并抛出 LaunchError。"""
        deadline = None if timeout is None else time.monotonic() + timeout
        try:
            while self._closed_streams < len(self._readers):
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    raise subprocess.TimeoutExpired(self._proc.args, timeout or 0)
                try:
                    name, line = self._queue.get(timeout=remaining)
                except queue.Empty:
                    continue
                self._consume(name, line)
            remaining = None if deadline is None else max(deadline - time.monotonic(), 0)
            returncode = self._proc.wait(timeout=remaining)
        except subprocess.TimeoutExpired as e:
            self._proc.kill()
            raise LaunchError(f"compose 命令在 {timeout}s 内未结束: {self._proc.args}") from e

        return SpawnResult(
            exit_occurred=True,
            returncode=returncode,
            stdout_lines=list(self._stdout_lines),
            stderr_accumulated=self.stderr_text,
        )


class ComposeLauncher:
    """以 compose 文件为单位启动/停止容器组。"""

    def __init__(
        self,
        compose_command: Sequence[str] = ("docker", "compose"),
        cwd: Path | None = None,
        buffer_size: int = 1000,
    ) -> None:
        self.compose_command = list(compose_command)
        self.cwd = cwd
        self.buffer_size = buffer_size

    @classmethod
    def from_config(cls, config: Config, cwd: Path | None = None) -> "ComposeLauncher":
        return cls(config.compose_command, cwd=cwd, buffer_size=config.output_buffer_size)

    def _base_cmd(self, compose_files: Sequence[str]) -> list[str]:
        cmd = list(self.compose_command)
        for f in compose_files:
            cmd += ["-f", f]
        return cmd

    def start_group(
        self,
        compose_files: Sequence[str],
        detached: bool = True,
        on_line: LineCallback | None = None,
    ) -> ComposeProcess:
        """启动容器组，立即返回，不等待子进程结束。"""
        cmd = self._base_cmd(compose_files) + ["up"]
        if detached:
            cmd.append("-d")
        logger.info(f"执行: {' '.join(cmd)}")
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(self.cwd) if self.cwd else None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1,
            )
        except FileNotFoundError as e:
            raise LaunchError(f"找不到 compose 命令: {self.compose_command[0]}") from e
        return ComposeProcess(proc, on_line=on_line, buffer_size=self.buffer_size)

    def stop_group(
        self,
        compose_files: Sequence[str],
        remove_volumes: bool = True,
        remove_orphans: bool = True,
    ) -> SpawnResult:
        """停止并移除容器组，阻塞直到 compose down 结束。"""
        cmd = self._base_cmd(compose_files) + ["down"]
        if remove_volumes:
            cmd.append("-v")
        if remove_orphans:
            cmd.append("--remove-orphans")
        logger.info(f"执行: {' '.join(cmd)}")
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.cwd) if self.cwd else None,
                check=False,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as e:
            raise LaunchError(f"找不到 compose 命令: {self.compose_command[0]}") from e
        return SpawnResult(
            exit_occurred=True,
            returncode=result.returncode,
            stdout_lines=result.stdout.splitlines(),
            stderr_accumulated=result.stderr,
        )
