"""
开发钱包派生测试。
"""

import hashlib

import pytest
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from src.devnet.chain.encoding import decode_base58check, encode_base64check, sign_transaction
from src.devnet.wallets.keys import development_wallets, wallet_from_seed


def test_development_wallets_are_fixed_and_ordered():
    wallets = development_wallets()
    assert len(wallets) == 10
    assert [w.label for w in wallets] == [f"#{i}" for i in range(10)]
    assert [w.public_key for w in wallets] == [w.public_key for w in development_wallets()]
    assert len({w.public_key for w in wallets}) == 10


def test_wallet_keys_are_consistent():
    seed = hashlib.sha256(b"seed").digest()
    wallet = wallet_from_seed(seed, label="alice")

    public = decode_base58check(wallet.public_key, "ak")
    expected = Ed25519PrivateKey.from_private_bytes(seed).public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    assert public == expected
    secret = bytes.fromhex(wallet.secret_key)
    assert len(public) == 32
    assert secret[:32] == seed
    assert secret[32:] == public
    # 私钥可直接用于交易签名
    signed = sign_transaction(encode_base64check("tx", b"tx"), wallet.secret_key, "ae_devnet")
    assert signed.startswith("tx_")


def test_wallet_from_seed_rejects_short_seed():
    with pytest.raises(ValueError):
        wallet_from_seed(b"short")
