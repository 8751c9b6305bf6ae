"""
FastAPI 应用入口点。
"""

from loguru import logger
from contextlib import asynccontextmanager

from fastapi import FastAPI
from src.devnet.node.router import router as node_router

from src.devnet.config import load_config


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = load_config()
    # 配置中含私钥，仅输出与节点相关的字段
    logger.info(
        "config: "
        + config.model_dump_json(indent=4, include={"node_url", "compiler_url", "compose_command", "node_compose_file", "compiler_compose_file"})
    )
    yield


app = FastAPI(title="Devnet Node Orchestrator", lifespan=lifespan)

app.include_router(node_router, prefix="/v1")
