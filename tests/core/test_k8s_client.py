# tests/core/test_k8s_client.py

from unittest.mock import AsyncMock, MagicMock

import pytest
from kubernetes_asyncio.config import ConfigException

from ccmon.core.k8s_client import get_api_client, load_k8s_configuration

KUBECONFIG = """\
apiVersion: v1
kind: Config
clusters:
  - name: bench
    cluster:
      server: https://127.0.0.1:6443
contexts:
  - name: bench
    context:
      cluster: bench
      user: bench
current-context: bench
users:
  - name: bench
    user:
      token: secret-token
"""


@pytest.mark.asyncio
async def test_explicit_kubeconfig_is_loaded(tmp_path):
    path = tmp_path / "kubeconfig"
    path.write_text(KUBECONFIG, encoding="utf-8")

    configuration = await load_k8s_configuration(str(path))

    assert configuration is not None
    assert configuration.host == "https://127.0.0.1:6443"


@pytest.mark.asyncio
async def test_falls_back_to_in_cluster_config(mocker, tmp_path):
    in_cluster = mocker.patch("ccmon.core.k8s_client.config.load_incluster_config")

    configuration = await load_k8s_configuration(str(tmp_path / "missing"))

    assert configuration is not None
    in_cluster.assert_called_once()


@pytest.mark.asyncio
async def test_no_configuration_source(mocker):
    mocker.patch(
        "ccmon.core.k8s_client.config.load_incluster_config",
        side_effect=ConfigException("not in a pod"),
    )
    mocker.patch(
        "ccmon.core.k8s_client.config.load_kube_config",
        new=AsyncMock(side_effect=ConfigException("no kubeconfig")),
    )

    assert await load_k8s_configuration() is None
    assert await get_api_client() is None


@pytest.mark.asyncio
async def test_api_client_uses_loaded_configuration(mocker):
    configuration = MagicMock()
    mocker.patch("ccmon.core.k8s_client.load_k8s_configuration", new=AsyncMock(return_value=configuration))
    api_client_class = mocker.patch("ccmon.core.k8s_client.client.ApiClient")

    assert await get_api_client("/tmp/kubeconfig") is api_client_class.return_value
    api_client_class.assert_called_once_with(configuration=configuration)
