"""
节点与编译器 compose 配置文件的预检。

在任何容器操作之前执行：文件必须存在且包含约定的标记字符串。
"""

from __future__ import annotations

from pathlib import Path

from src.devnet.config import Config
from src.devnet.errors import ConfigValidationError


def validate_config_files(config: Config, base_dir: Path | None = None) -> None:
    """校验节点与编译器配置文件。缺失或内容不符时抛出 ConfigValidationError。"""
    base = base_dir or Path.cwd()
    node_file = config.node_compose_file
    compiler_file = config.compiler_compose_file
    node_path = (base / node_file).resolve()
    compiler_path = (base / compiler_file).resolve()

    if not node_path.exists() or not compiler_path.exists():
        raise ConfigValidationError(f"缺少 {node_file} 或 {compiler_file} 文件！")

    try:
        node_content = node_path.read_text(encoding="utf-8")
        compiler_content = compiler_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigValidationError(f"无法读取 {node_file} 或 {compiler_file} 文件: {e}") from e
    if (
        config.node_config_marker not in node_content
        or config.compiler_config_marker not in compiler_content
    ):
        raise ConfigValidationError(f"{node_file} 或 {compiler_file} 文件内容无效！")
