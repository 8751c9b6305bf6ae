"""
配置加载测试：环境变量、config.json 与入参的优先级，以及 compose 命令与钱包标签的解析。
"""

import json

import pytest

from src.devnet.config import DEFAULT_MINER, load_config


def test_defaults(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    c = load_config()
    assert c.compose_command == ["docker", "compose"]
    assert c.max_health_polls == 60
    assert c.health_poll_interval_s == 1.0
    assert c.min_funding_height == 10
    assert c.height_poll_interval_s == 8.0
    assert c.height_poll_attempts == 300
    assert c.miner.public_key == DEFAULT_MINER.public_key
    assert len(c.wallets) == 10
    assert [w.label for w in c.wallets[:3]] == ["#0", "#1", "#2"]
    assert all(w.public_key.startswith("ak_") for w in c.wallets)
    assert c.strict_exit_code is False


def test_compose_command_from_env_string(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEVNET_COMPOSE_COMMAND", "docker-compose")
    assert load_config().compose_command == ["docker-compose"]


def test_compose_command_from_env_json(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEVNET_COMPOSE_COMMAND", '["podman", "compose"]')
    assert load_config().compose_command == ["podman", "compose"]


def test_config_json_wallets_and_labels(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.json").write_text(
        json.dumps(
            {
                "max_health_polls": 30,
                "wallets": [
                    {"public_key": "ak_a", "secret_key": "aa"},
                    {"label": "alice", "public_key": "ak_b", "secret_key": "bb"},
                ],
            }
        ),
        encoding="utf-8",
    )
    c = load_config()
    assert c.max_health_polls == 30
    assert [w.label for w in c.wallets] == ["#0", "alice"]
    # 私钥不应出现在 repr 中
    assert "aa" not in repr(c.wallets[0])


def test_env_overrides_config_json(monkeypatch, tmp_path):
    cfg = tmp_path / "custom.json"
    cfg.write_text(json.dumps({"max_health_polls": 30, "node_url": "http://json:3013"}), encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DEVNET_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("DEVNET_MAX_HEALTH_POLLS", "5")
    c = load_config()
    assert c.max_health_polls == 5
    assert c.node_url == "http://json:3013"
    assert load_config(max_health_polls=9).max_health_polls == 9


def test_broken_config_json_is_ignored(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.json").write_text("{not json", encoding="utf-8")
    assert load_config().max_health_polls == 60


def test_default_wallets_are_stable(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    first = [w.public_key for w in load_config().wallets]
    second = [w.public_key for w in load_config().wallets]
    assert first == second
    assert len(set(first)) == len(first)


@pytest.mark.parametrize("name", ["LOG_LEVEL", "DEVNET_LOG_LEVEL"])
def test_log_level_env_names(monkeypatch, tmp_path, name):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("DEVNET_LOG_LEVEL", raising=False)
    monkeypatch.setenv(name, "DEBUG")
    assert load_config().log_level == "DEBUG"


def test_devnet_log_level_takes_precedence(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("DEVNET_LOG_LEVEL", "DEBUG")
    assert load_config().log_level == "DEBUG"
    assert load_config(log_level="ERROR").log_level == "ERROR"
