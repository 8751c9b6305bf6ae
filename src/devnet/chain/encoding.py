"""
链上对象编码工具：base64check（tx_、ba_ 等前缀）、base58check（ak_ 账户地址）、RLP 编码与交易签名。
"""

from __future__ import annotations

import base64
import hashlib
from typing import Union

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

SIGNED_TX_TAG = 11
SIGNED_TX_VERSION = 1

RlpItem = Union[bytes, list]

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


def _checksum(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()[:4]


def encode_base64check(prefix: str, data: bytes) -> str:
    """编码为 `<prefix>_<base64(data + 4 字节双 sha256 校验和)>`。"""
    return f"{prefix}_" + base64.b64encode(data + _checksum(data)).decode("ascii")


def decode_base64check(value: str, prefix: str | None = None) -> bytes:
    """解码 base64check 字符串，前缀或校验和不符时抛出 ValueError。"""
    tag, sep, payload = value.partition("_")
    if not sep:
        raise ValueError(f"缺少前缀: {value}")
    if prefix is not None and tag != prefix:
        raise ValueError(f"前缀应为 {prefix}_，实际为 {tag}_")
    raw = base64.b64decode(payload)
    data, check = raw[:-4], raw[-4:]
    if len(raw) < 4 or _checksum(data) != check:
        raise ValueError("校验和不匹配")
    return data


def b58encode(data: bytes) -> str:
    number = int.from_bytes(data, "big")
    chars = []
    while number:
        number, rem = divmod(number, 58)
        chars.append(BASE58_ALPHABET[rem])
    # 前导 0 字节各编码为一个 "1"
    zeros = len(data) - len(data.lstrip(b"\x00"))
    return "1" * zeros + "".join(reversed(chars))


def b58decode(text: str) -> bytes:
    number = 0
    for ch in text:
        index = BASE58_ALPHABET.find(ch)
        if index < 0:
            raise ValueError(f"非法的 base58 字符: {ch!r}")
        number = number * 58 + index
    zeros = len(text) - len(text.lstrip("1"))
    body = number.to_bytes((number.bit_length() + 7) // 8, "big") if number else b""
    return b"\x00" * zeros + body


def encode_base58check(prefix: str, data: bytes) -> str:
    """编码为 `<prefix>_<base58(data + 4 字节双 sha256 校验和)>`，用于 ak_ 等账户地址。"""
    return f"{prefix}_" + b58encode(data + _checksum(data))


def decode_base58check(value: str, prefix: str | None = None) -> bytes:
    tag, sep, payload = value.partition("_")
    if not sep:
        raise ValueError(f"缺少前缀: {value}")
    if prefix is not None and tag != prefix:
        raise ValueError(f"前缀应为 {prefix}_，实际为 {tag}_")
    raw = b58decode(payload)
    data, check = raw[:-4], raw[-4:]
    if len(raw) < 4 or _checksum(data) != check:
        raise ValueError("校验和不匹配")
    return data


def int_to_bytes(value: int) -> bytes:
    """无符号整数的最短大端表示（0 编码为单个 0 字节）。"""
    return value.to_bytes(max(1, (value.bit_length() + 7) // 8), "big")


def _length_prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    length_bytes = int_to_bytes(length)
    return bytes([offset + 55 + len(length_bytes)]) + length_bytes


def rlp_encode(item: RlpItem) -> bytes:
    if isinstance(item, (bytes, bytearray)):
        if len(item) == 1 and item[0] < 0x80:
            return bytes(item)
        return _length_prefix(len(item), 0x80) + bytes(item)
    if isinstance(item, list):
        payload = b"".join(rlp_encode(i) for i in item)
        return _length_prefix(len(payload), 0xC0) + payload
    raise TypeError(f"不支持的 RLP 类型: {type(item).__name__}")


def sign_transaction(encoded_tx: str, secret_key_hex: str, network_id: str) -> str:
    """对 tx_ 编码的未签名交易签名，返回 tx_ 编码的已签名交易。

    签名内容为 network_id 拼接交易二进制，私钥取 64 字节私钥的前 32 字节种子。
    """
    tx_bytes = decode_base64check(encoded_tx, "tx")
    seed = bytes.fromhex(secret_key_hex)[:32]
    if len(seed) != 32:
        raise ValueError("私钥长度不足 32 字节")
    signing_key = Ed25519PrivateKey.from_private_bytes(seed)
    signature = signing_key.sign(network_id.encode("utf-8") + tx_bytes)
    signed = rlp_encode(
        [int_to_bytes(SIGNED_TX_TAG), int_to_bytes(SIGNED_TX_VERSION), [signature], tx_bytes]
    )
    return encode_base64check("tx", signed)
