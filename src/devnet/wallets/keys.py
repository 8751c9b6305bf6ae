"""
开发钱包密钥。

默认开发钱包由固定种子确定性派生，每次启动得到相同且有序的钱包列表，
私钥格式与节点一致：32 字节种子 + 32 字节公钥的十六进制。仅用于本地开发链。
"""

from __future__ import annotations

import hashlib

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from src.devnet.chain.encoding import encode_base58check
from .schemas import WalletRecord

DEFAULT_WALLET_COUNT = 10
DEFAULT_WALLET_SEED_TAG = "devnet-default-wallet"


def wallet_from_seed(seed: bytes, label: str = "") -> WalletRecord:
    """由 32 字节 ed25519 种子构造钱包。"""
    if len(seed) != 32:
        raise ValueError("种子必须为 32 字节")
    public = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes(
        Encoding.Raw, PublicFormat.Raw
    )
    return WalletRecord(
        label=label,
        public_key=encode_base58check("ak", public),
        secret_key=(seed + public).hex(),
    )


def development_wallets(count: int = DEFAULT_WALLET_COUNT) -> list[WalletRecord]:
    """按序号派生 count 个开发钱包，标签为 #0、#1 ..."""
    return [
        wallet_from_seed(
            hashlib.sha256(f"{DEFAULT_WALLET_SEED_TAG}-{index}".encode("utf-8")).digest(),
            label=f"#{index}",
        )
        for index in range(count)
    ]
