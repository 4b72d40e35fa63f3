"""Creation of the kubernetes API client."""

import asyncio
import logging

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException as KubeConfigException
from urllib3.exceptions import HTTPError

from .exceptions import KubeClientException

__all__ = ["create_api_client"]

_LOGGER = logging.getLogger(__name__)


def _load_configuration(
    in_cluster: bool, apiserver: str | None, kubeconfig: str | None
) -> client.Configuration:
    configuration = client.Configuration()
    try:
        if in_cluster:
            config.load_incluster_config(client_configuration=configuration)
        else:
            config.load_kube_config(
                config_file=kubeconfig, client_configuration=configuration
            )
    except (KubeConfigException, OSError) as err:
        raise KubeClientException(
            f"Unable to load kubernetes configuration: {err}"
        ) from err
    # Allow overriding the apiserver, e.g. if kube-proxy isn't set up.
    if apiserver:
        configuration.host = apiserver
    _LOGGER.info("Service host: %s", configuration.host)
    return configuration


async def create_api_client(
    in_cluster: bool = True,
    apiserver: str | None = None,
    kubeconfig: str | None = None,
) -> client.ApiClient:
    """Create an API client and verify the server can be reached.

    Reflectors do not report much when the server is unreachable, so the
    server version is read once up front to fail early on misconfiguration.
    """
    configuration = _load_configuration(in_cluster, apiserver, kubeconfig)
    api_client = client.ApiClient(configuration)
    _LOGGER.info("Testing communication with server")
    try:
        version = await asyncio.to_thread(client.VersionApi(api_client).get_code)
    except (ApiException, HTTPError) as err:
        api_client.close()
        raise KubeClientException(
            f"Error communicating with apiserver {configuration.host}: {err}"
        ) from err
    _LOGGER.info(
        "Communication with server successful, version %s", version.git_version
    )
    return api_client
