"""
钱包充值服务。

节点健康后等待链高度达到阈值，然后由矿工账户依次为配置的开发钱包转账并输出余额。
注意：此流程会在日志中输出私钥，仅适用于本地开发链。
"""

from __future__ import annotations

from typing import Sequence

from loguru import logger

from src.devnet.chain.client import ChainClient, NodeHttpClient
from src.devnet.config import Config
from src.devnet.errors import FundingError
from .schemas import WalletBalance, WalletRecord


def report_wallet(wallet: WalletRecord, balance: int, label: str | None = None) -> None:
    logger.info(f"{label or wallet.label} ------------------------------------------------------------")
    logger.info(f"public key: {wallet.public_key}")
    logger.info(f"private key: {wallet.secret_key}")
    logger.info(f"Wallet's balance is {balance}")


def fund(
    client: ChainClient,
    wallets: Sequence[WalletRecord],
    miner: WalletRecord,
    *,
    amount: int,
    min_height: int = 10,
    height_interval_s: float = 8.0,
    height_attempts: int = 300,
) -> list[WalletBalance]:
    """按配置顺序为每个钱包转账 amount。

    :raises HeightTimeoutError: 链高度在轮询上限内未达到 min_height。
    :raises FundingError: 某个钱包转账或查询余额失败，其后的钱包不再处理。
    """
    client.await_height(min_height, interval=height_interval_s, attempts=height_attempts)

    report_wallet(miner, client.balance(miner.public_key), label="Miner")

    results: list[WalletBalance] = []
    for index, wallet in enumerate(wallets):
        label = wallet.label or f"#{index}"
        try:
            client.set_keypair(miner)
            client.spend(amount, wallet.public_key)
            balance = client.balance(wallet.public_key)
        except Exception as e:
            raise FundingError(label, e) from e
        report_wallet(wallet, balance, label=label)
        results.append(WalletBalance(wallet=wallet, balance=balance))
    return results


def fund_default_wallets(config: Config) -> list[WalletBalance]:
    """使用配置中的节点地址、矿工账户与钱包列表执行充值。"""
    if not config.wallets:
        logger.warning("未配置任何开发钱包，仅等待出块并输出矿工余额")
    with NodeHttpClient.from_config(config) as client:
        return fund(
            client,
            config.wallets,
            config.miner,
            amount=config.amount_to_fund,
            min_height=config.min_funding_height,
            height_interval_s=config.height_poll_interval_s,
            height_attempts=config.height_poll_attempts,
        )
