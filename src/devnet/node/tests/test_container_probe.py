"""
容器探测测试：用假的 Docker 客户端代替 docker.from_env()，仅测试公开接口。
"""

import pytest
import requests
from docker.errors import DockerException

from src.devnet.errors import ProbeError
from src.devnet.node.services import container_probe
from src.devnet.node.services.container_probe import container_info, is_healthy_status, list_containers, probe


class FakeApi:
    def __init__(self, rows, error=None):
        self.rows = rows
        self.error = error

    def containers(self):
        if self.error is not None:
            raise self.error
        return self.rows


class FakeDockerClient:
    def __init__(self, *rows, error=None):
        self.api = FakeApi(list(rows), error)
        self.closed = False

    def close(self):
        self.closed = True


def _row(image, status, name):
    return {"Image": image, "Status": status, "Names": [f"/{name}"], "State": "running"}


def test_probe_absent_image():
    client = FakeDockerClient(_row("postgres:15", "Up 3 minutes (healthy)", "db"))
    s = probe("aeternity/aeternity", client_factory=lambda: client)
    assert s.present is False
    assert s.healthy is False
    assert client.closed is True


def test_probe_empty_runtime():
    s = probe("aeternity/aeternity", client_factory=FakeDockerClient)
    assert s.present is False
    assert s.healthy is False


def test_probe_running_but_still_starting_is_not_healthy():
    client = FakeDockerClient(_row("aeternity/aeternity:v6.8.1", "Up 5 seconds (health: starting)", "node"))
    s = probe("aeternity/aeternity", client_factory=lambda: client)
    assert s.present is True
    assert s.healthy is False


def test_probe_healthy_prefix_match():
    client = FakeDockerClient(
        _row("aeternity/aesophia_http:v7", "Up 1 minute", "compiler"),
        _row("aeternity/aeternity:v6.8.1", "Up 2 minutes (healthy)", "node"),
    )
    s = probe("aeternity/aeternity", client_factory=lambda: client)
    assert s.image_name == "aeternity/aeternity"
    assert s.present is True
    assert s.healthy is True


def test_container_info_from_api_row():
    info = container_info(_row("aeternity/aeternity:v6", "Up 2 minutes (healthy)", "node"))
    assert info.image == "aeternity/aeternity:v6"
    assert info.status == "Up 2 minutes (healthy)"
    assert info.names == "node"


def test_is_healthy_status_requires_marker():
    assert is_healthy_status("Up 2 minutes (healthy)")
    assert not is_healthy_status("Up 2 minutes")
    assert not is_healthy_status("running")


def test_runtime_unavailable_from_env(monkeypatch):
    def broken_from_env():
        raise DockerException("Error while fetching server API version")

    monkeypatch.setattr(container_probe.docker, "from_env", broken_from_env)
    with pytest.raises(ProbeError) as ei:
        probe("aeternity/aeternity")
    assert "Error while fetching server API version" in str(ei.value)


@pytest.mark.parametrize(
    "error",
    [
        DockerException("Cannot connect to the Docker daemon"),
        requests.exceptions.ConnectionError("Cannot connect to the Docker daemon"),
    ],
)
def test_runtime_error_while_listing(error):
    client = FakeDockerClient(error=error)
    with pytest.raises(ProbeError) as ei:
        list_containers(client_factory=lambda: client)
    assert "Cannot connect to the Docker daemon" in str(ei.value)
    assert client.closed is True
