"""命令行入口：启动或停止本地开发链节点与编译器。

    devnet-node            启动节点、编译器并为开发钱包充值
    devnet-node --only     只启动节点
    devnet-node --stop     停止节点与编译器

所有编排错误在此处统一捕获并打印。默认仍以 0 退出（沿用旧行为），
配置 strict_exit_code=true 时返回 1。
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError
from pydantic_settings import SettingsError

from src.devnet.config import load_config
from src.devnet.errors import ConfigValidationError, DevnetError
from src.devnet.node.schemas import RunOptions
from src.devnet.node.services import NodeOrchestrator


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devnet-node",
        description="Start or stop the local devnet node and compiler.",
    )
    parser.add_argument("--stop", action="store_true", help="stop the node and compiler")
    parser.add_argument(
        "--only",
        action="store_true",
        help="start the node only, without compiler and wallet funding",
    )
    return parser


def _configure_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format="<level>{message}</level>")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv(Path.cwd() / ".env")

    try:
        config = load_config()
    except (ValidationError, SettingsError) as e:
        logger.error(f"配置无效: {e}")
        return 1
    _configure_logging(config.log_level)

    options = RunOptions(stop=args.stop, only=args.only)
    try:
        NodeOrchestrator(config).run(options)
    except DevnetError as e:
        logger.error(str(e))
        if isinstance(e, ConfigValidationError):
            logger.error("Process will be terminated!")
        return 1 if config.strict_exit_code else 0
    except Exception as e:
        logger.exception(f"编排过程中出现未预期的错误: {e}")
        return 1 if config.strict_exit_code else 0
    return 0


if __name__ == "__main__":
    sys.exit(main())
