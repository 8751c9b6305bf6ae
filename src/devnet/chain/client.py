"""
文件功能：
    本地链节点的 HTTP 客户端：查询高度与余额、构造并签名转账交易、等待链高度。

公开接口：
    - ChainClient: 钱包充值流程依赖的客户端协议
    - NodeHttpClient: 基于 httpx 的实现
    - TxReceipt: 转账提交结果

内部方法：
    - NodeHttpClient._request: 统一的 HTTP 调用与错误转换
    - NodeHttpClient._account: 查询账户，账户不存在时返回 None
"""

from __future__ import annotations

import time
from typing import Any, Callable, Protocol

import httpx
from loguru import logger
from pydantic import BaseModel

from src.devnet.config import Config
from src.devnet.errors import ChainClientError, HeightTimeoutError
from src.devnet.wallets.schemas import WalletRecord
from .encoding import encode_base64check, sign_transaction


class TxReceipt(BaseModel):
    tx_hash: str
    signed_tx: str


class ChainClient(Protocol):
    def balance(self, public_key: str) -> int: ...

    def spend(self, amount: int, recipient: str) -> TxReceipt: ...

    def await_height(self, height: int, *, interval: float, attempts: int) -> int: ...

    def set_keypair(self, keypair: WalletRecord) -> None: ...


class NodeHttpClient:
    """链节点公开接口（url）与内部接口（internal_url）的同步客户端。"""

    def __init__(
        self,
        url: str,
        internal_url: str,
        *,
        fee: int,
        ttl: int = 0,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.url = url.rstrip("/")
        self.internal_url = internal_url.rstrip("/")
        self.fee = fee
        self.ttl = ttl
        self._sleep = sleep
        self._http = httpx.Client(timeout=timeout, transport=transport)
        self._keypair: WalletRecord | None = None
        self._network_id: str | None = None

    @classmethod
    def from_config(cls, config: Config, **kwargs: Any) -> "NodeHttpClient":
        return cls(
            config.node_url,
            config.node_internal_url,
            fee=config.spend_fee,
            ttl=config.spend_ttl,
            timeout=config.http_timeout_s,
            **kwargs,
        )

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "NodeHttpClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ChainClientError(f"请求节点失败 {method} {url}: {e}") from e
        return resp

    def _json(self, resp: httpx.Response) -> dict[str, Any]:
        if resp.status_code >= 400:
            raise ChainClientError(
                f"节点返回错误 {resp.status_code} {resp.request.method} {resp.request.url}: {resp.text}"
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ChainClientError(f"节点返回了无法解析的响应: {resp.text}") from e
        if not isinstance(data, dict):
            raise ChainClientError(f"节点返回了非对象响应: {resp.text}")
        return data

    def _account(self, public_key: str) -> dict[str, Any] | None:
        resp = self._request("GET", f"{self.url}/v2/accounts/{public_key}")
        if resp.status_code == 404:
            return None
        return self._json(resp)

    def network_id(self) -> str:
        if self._network_id is None:
            data = self._json(self._request("GET", f"{self.url}/v2/status"))
            try:
                self._network_id = str(data["network_id"])
            except KeyError as e:
                raise ChainClientError(f"节点状态中缺少 network_id: {data}") from e
        return self._network_id

    def height(self) -> int:
        data = self._json(self._request("GET", f"{self.url}/v2/key-blocks/current/height"))
        try:
            return int(data["height"])
        except (KeyError, TypeError, ValueError) as e:
            raise ChainClientError(f"节点返回了无效的链高度: {data}") from e

    def balance(self, public_key: str) -> int:
        """查询余额，账户尚不存在时为 0。"""
        account = self._account(public_key)
        if account is None:
            return 0
        return int(account.get("balance", 0))

    def set_keypair(self, keypair: WalletRecord) -> None:
        self._keypair = keypair

    def spend(self, amount: int, recipient: str) -> TxReceipt:
        """由当前密钥对向 recipient 转账 amount。"""
        if self._keypair is None:
            raise ChainClientError("未设置签名密钥对")
        sender = self._keypair.public_key
        account = self._account(sender)
        if account is None:
            raise ChainClientError(f"发送方账户不存在: {sender}")
        nonce = int(account.get("nonce", 0)) + 1

        unsigned = self._json(
            self._request(
                "POST",
                f"{self.internal_url}/v2/debug/transactions/spend",
                json={
                    "sender_id": sender,
                    "recipient_id": recipient,
                    "amount": amount,
                    "fee": self.fee,
                    "ttl": self.ttl,
                    "nonce": nonce,
                    "payload": encode_base64check("ba", b""),
                },
            )
        )
        try:
            signed_tx = sign_transaction(unsigned["tx"], self._keypair.secret_key, self.network_id())
        except (KeyError, ValueError) as e:
            raise ChainClientError(f"交易签名失败: {e}") from e

        posted = self._json(self._request("POST", f"{self.url}/v2/transactions", json={"tx": signed_tx}))
        tx_hash = str(posted.get("tx_hash", ""))
        logger.debug(f"已提交转账 {sender} -> {recipient}: {tx_hash}")
        return TxReceipt(tx_hash=tx_hash, signed_tx=signed_tx)

    def await_height(self, height: int, *, interval: float, attempts: int) -> int:
        """每 interval 秒查询一次高度，最多 attempts 次，达到 height 后返回当前高度。"""
        current = -1
        for attempt in range(1, attempts + 1):
            current = self.height()
            if current >= height:
                return current
            logger.debug(f"等待链高度 {height}，当前 {current}（{attempt}/{attempts}）")
            if attempt < attempts:
                self._sleep(interval)
        raise HeightTimeoutError(f"链高度在 {attempts} 次轮询后仍未达到 {height}（当前 {current}）")
