"""
配置加载模块：支持 .env、环境变量、工作目录 config.json（或 DEVNET_CONFIG_FILE 指定）多来源合并。
公开接口：
- Config: 读取配置的设置类
- load_config: 构造一次调用所用的 Config 实例（不再提供进程级单例）
内部方法：
- Config.settings_customise_sources: 自定义配置来源顺序
- Config.parse_compose_command: 将字符串/JSON 解析为 List[str]
- Config.assign_wallet_labels: 为未命名的钱包补充 #序号 标签
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from typing import Annotated, Any, Dict, List, Tuple

from loguru import logger
from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict, PydanticBaseSettingsSource

from src.devnet.wallets.keys import development_wallets
from src.devnet.wallets.schemas import WalletRecord


# 本地开发链创世配置中预置余额的矿工账户，仅用于本地开发环境
DEFAULT_MINER = WalletRecord(
    label="Miner",
    public_key="ak_2mwRmUeYmfuW93ti9HMSUJzCk1EYcQEfikVSzgo6k2VghsWhgU",
    secret_key=(
        "bb9f0b01c8c9553cfbaf7ef81a50f977b1326801ebf7294d1c2cbccdedf27476"
        "e9bbf604e611b5460a3b3999e9771b6f60417d73ce7c5519e12f7e127a1225ca"
    ),
)


class Config(BaseSettings):
    # 节点与编译器地址
    node_url: str = "http://localhost:3001"
    node_internal_url: str = "http://localhost:3001/internal"
    compiler_url: str = "http://localhost:3080"
    http_timeout_s: float = 10.0

    # compose 文件与校验标记
    compose_command: Annotated[List[str], NoDecode] = ["docker", "compose"]
    node_compose_file: str = "docker-compose.yml"
    node_config_marker: str = "aeternity/aeternity"
    node_docker_image: str = "aeternity/aeternity"
    compiler_compose_file: str = "docker-compose.compiler.yml"
    compiler_config_marker: str = "aeternity/aesophia_http"
    output_buffer_size: int = 1000

    # 健康检查轮询
    health_poll_interval_s: float = 1.0
    max_health_polls: int = 60
    compiler_start_timeout_s: float = 300.0
    # 节点健康后等待 compose up -d 进程退出的上限
    compose_exit_timeout_s: float = 30.0

    # 钱包充值
    min_funding_height: int = 10
    height_poll_interval_s: float = 8.0
    height_poll_attempts: int = 300
    amount_to_fund: int = 50_000_000_000_000_000_000
    spend_fee: int = 20_000_000_000_000
    spend_ttl: int = 0
    miner: WalletRecord = DEFAULT_MINER
    # 默认为确定性派生的固定开发钱包列表，可由 config.json / DEVNET_WALLETS 覆盖
    wallets: List[WalletRecord] = Field(default_factory=development_wallets)

    # 出错时是否返回非零退出码（默认保持旧行为：打印错误后以 0 退出）
    strict_exit_code: bool = False
    # 与 API 入口共用 LOG_LEVEL，DEVNET_LOG_LEVEL 优先
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("DEVNET_LOG_LEVEL", "LOG_LEVEL", "log_level"),
    )

    model_config = SettingsConfigDict(
        env_prefix="DEVNET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("compose_command", mode="before")
    @classmethod
    def parse_compose_command(cls, value: Any) -> List[str]:
        """支持从环境变量以 JSON 或空白分隔的字符串解析 compose 命令。"""
        if value is None or value == "":
            return ["docker", "compose"]
        if isinstance(value, list):
            return [str(v) for v in value]
        if isinstance(value, str):
            text = value.strip()
            # 优先尝试 JSON
            try:
                loaded = json.loads(text)
                if isinstance(loaded, list):
                    return [str(v) for v in loaded]
            except ValueError:
                pass
            return [p for p in re.split(r"\s+", text) if p]
        return value

    @field_validator("wallets", mode="after")
    @classmethod
    def assign_wallet_labels(cls, value: List[WalletRecord]) -> List[WalletRecord]:
        return [
            w if w.label else w.model_copy(update={"label": f"#{index}"})
            for index, w in enumerate(value)
        ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """自定义配置来源顺序：入参 > 环境变量 > .env > config.json > secrets。"""

        class JsonFileSettingsSource(PydanticBaseSettingsSource):
            """从工作目录的 config.json（或 DEVNET_CONFIG_FILE 指定路径）加载配置的自定义 Source。"""

            def __init__(self, settings_cls):
                super().__init__(settings_cls)
                self._data: Dict[str, Any] | None = None

            def _load(self) -> None:
                if self._data is not None:
                    return
                cfg_path = os.environ.get("DEVNET_CONFIG_FILE")
                path = Path(cfg_path) if cfg_path else Path.cwd() / "config.json"
                if not path.exists():
                    self._data = {}
                    return
                try:
                    with path.open("r", encoding="utf-8") as f:
                        data = json.load(f)
                    self._data = data if isinstance(data, dict) else {}
                except (OSError, ValueError) as e:
                    logger.warning(f"读取配置文件 {path} 失败，将忽略：{e}")
                    self._data = {}

            def __call__(self) -> Dict[str, Any]:
                self._load()
                return dict(self._data or {})

            def get_field_value(self, field, field_name):  # type: ignore[override]
                """为满足抽象基类要求，按字段名返回字段值。"""
                self._load()
                data = self._data or {}
                if field_name in data:
                    return data[field_name], field_name, False
                return None, field_name, False

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonFileSettingsSource(settings_cls),
            file_secret_settings,
        )


def load_config(**overrides: Any) -> Config:
    """构造配置实例。每次调用都重新读取各配置来源。"""
    return Config(**overrides)
