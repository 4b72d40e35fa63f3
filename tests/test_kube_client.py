"""Tests for creating the kubernetes API client."""

from typing import Any
from unittest.mock import MagicMock, patch

from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
import pytest

from kube_state.exceptions import KubeClientException
from kube_state.kube_client import create_api_client


def _load_kube_config(client_configuration: Any, **kwargs: Any) -> None:
    client_configuration.host = "https://kubeconfig:6443"


async def test_create_api_client() -> None:
    """Test the client uses the kubeconfig and an apiserver override."""
    with patch(
        "kube_state.kube_client.config.load_kube_config", side_effect=_load_kube_config
    ) as load_kube_config, patch("kube_state.kube_client.client.VersionApi") as version_api:
        version_api.return_value.get_code.return_value = MagicMock(git_version="v1.29.0")
        api_client = await create_api_client(
            in_cluster=False, apiserver="https://override:6443", kubeconfig="kubeconfig"
        )
    assert api_client.configuration.host == "https://override:6443"
    assert load_kube_config.call_args.kwargs["config_file"] == "kubeconfig"
    api_client.close()


async def test_invalid_configuration() -> None:
    """Test a missing in-cluster configuration."""
    with patch(
        "kube_state.kube_client.config.load_incluster_config",
        side_effect=ConfigException("Service host/port is not set."),
    ):
        with pytest.raises(KubeClientException, match="Unable to load kubernetes configuration"):
            await create_api_client(in_cluster=True)


async def test_unreachable_server() -> None:
    """Test a server that cannot be reached fails early."""
    with patch(
        "kube_state.kube_client.config.load_kube_config", side_effect=_load_kube_config
    ), patch("kube_state.kube_client.client.VersionApi") as version_api:
        version_api.return_value.get_code.side_effect = ApiException(
            status=401, reason="Unauthorized"
        )
        with pytest.raises(KubeClientException, match="Error communicating with apiserver"):
            await create_api_client(in_cluster=False)
