"""
配置文件预检测试。
"""

import pytest

from src.devnet.config import load_config
from src.devnet.errors import ConfigValidationError
from src.devnet.node.services.config_check import validate_config_files


def _write(tmp_path, node="image: aeternity/aeternity:v6", compiler="image: aeternity/aesophia_http:v7"):
    if node is not None:
        (tmp_path / "docker-compose.yml").write_text(node, encoding="utf-8")
    if compiler is not None:
        (tmp_path / "docker-compose.compiler.yml").write_text(compiler, encoding="utf-8")


def test_valid_files(tmp_path):
    _write(tmp_path)
    validate_config_files(load_config(), base_dir=tmp_path)


@pytest.mark.parametrize("missing", ["node", "compiler"])
def test_missing_file(tmp_path, missing):
    _write(tmp_path, **{missing: None})
    with pytest.raises(ConfigValidationError) as ei:
        validate_config_files(load_config(), base_dir=tmp_path)
    assert "缺少" in str(ei.value)


def test_marker_missing(tmp_path):
    _write(tmp_path, compiler="image: nginx")
    with pytest.raises(ConfigValidationError) as ei:
        validate_config_files(load_config(), base_dir=tmp_path)
    assert "无效" in str(ei.value)


def test_custom_file_names(tmp_path):
    (tmp_path / "node.yml").write_text("custom-node", encoding="utf-8")
    (tmp_path / "compiler.yml").write_text("custom-compiler", encoding="utf-8")
    config = load_config(
        node_compose_file="node.yml",
        node_config_marker="custom-node",
        compiler_compose_file="compiler.yml",
        compiler_config_marker="custom-compiler",
    )
    validate_config_files(config, base_dir=tmp_path)


def test_non_utf8_file_is_invalid(tmp_path):
    _write(tmp_path)
    (tmp_path / "docker-compose.yml").write_bytes(b"image: aeternity/aeternity\xff\xfe")
    with pytest.raises(ConfigValidationError) as ei:
        validate_config_files(load_config(), base_dir=tmp_path)
    assert "无法读取" in str(ei.value)


def test_directory_instead_of_file_is_invalid(tmp_path):
    _write(tmp_path, node=None)
    (tmp_path / "docker-compose.yml").mkdir()
    with pytest.raises(ConfigValidationError):
        validate_config_files(load_config(), base_dir=tmp_path)
