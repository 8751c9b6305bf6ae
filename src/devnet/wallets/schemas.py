"""
文件功能：
    定义开发钱包相关的公开数据模型（Pydantic）。

公开接口：
    - WalletRecord: 钱包（标签、公钥、私钥）
    - WalletBalance: 充值完成后的钱包余额记录

内部方法：
    无
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class WalletRecord(BaseModel):
    """开发钱包。私钥不参与 repr，避免被日志意外带出。"""

    label: str = Field(default="", description="钱包标签，用于输出展示")
    public_key: str = Field(description="ak_ 开头的公钥")
    secret_key: str = Field(repr=False, description="十六进制编码的 ed25519 私钥（64 字节）")


class WalletBalance(BaseModel):
    """钱包充值结果。"""

    wallet: WalletRecord
    balance: int = Field(description="充值后查询到的余额（aettos）")
