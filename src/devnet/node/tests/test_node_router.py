"""
测试 node/router.py 模块。
"""

from fastapi import FastAPI
from fastapi.testclient import TestClient
from unittest.mock import patch
from src.devnet.errors import ConfigValidationError, NodeStartTimeoutError, PortConflictError, ProbeError
from src.devnet.node.router import router
from src.devnet.node.schemas import ContainerStatus, OrchestratorState, RunOptions, RunOutcome


# 创建一个 FastAPI 应用并包含我们的路由
app = FastAPI()
app.include_router(router)

# 创建测试客户端
client = TestClient(app)


def test_status_endpoint():
    """测试节点状态端点"""
    status = ContainerStatus(image_name="aeternity/aeternity", present=True, healthy=True)
    with patch("src.devnet.node.services.status", return_value=status) as mock_service:
        response = client.get("/node/status")

    assert response.status_code == 200
    assert response.json() == {"image_name": "aeternity/aeternity", "present": True, "healthy": True}
    mock_service.assert_called_once()


def test_status_endpoint_probe_error():
    """docker 不可用时返回 500"""
    with patch("src.devnet.node.services.status", side_effect=ProbeError("找不到 docker 命令")):
        response = client.get("/node/status")

    assert response.status_code == 500
    assert "找不到 docker 命令" in response.json()["detail"]


def test_start_endpoint_passes_only_flag():
    """测试启动端点"""
    outcome = RunOutcome(state=OrchestratorState.DONE, message="节点已启动")
    with patch("src.devnet.node.services.run", return_value=outcome) as mock_service:
        response = client.post("/node/start", params={"only": "true"})

    assert response.status_code == 200
    assert response.json()["state"] == "done"
    options = mock_service.call_args.args[0]
    assert options == RunOptions(only=True)


def test_stop_endpoint():
    """测试停止端点"""
    outcome = RunOutcome(state=OrchestratorState.DONE, message="节点未运行")
    with patch("src.devnet.node.services.run", return_value=outcome) as mock_service:
        response = client.post("/node/stop")

    assert response.status_code == 200
    assert response.json()["message"] == "节点未运行"
    assert mock_service.call_args.args[0] == RunOptions(stop=True)


def test_start_endpoint_error_mapping():
    """编排错误映射到对应的 HTTP 状态码"""
    cases = [
        (ConfigValidationError("缺少文件"), 400),
        (PortConflictError("端口已被占用"), 409),
        (NodeStartTimeoutError("超时"), 504),
        (ProbeError("docker 不可用"), 500),
    ]
    for error, code in cases:
        with patch("src.devnet.node.services.run", side_effect=error):
            response = client.post("/node/start")
        assert response.status_code == code
