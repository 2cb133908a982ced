import logging
import typing

from kubernetes_asyncio import client, config

logger = logging.getLogger(__name__)


async def load_k8s_configuration(kubeconfig: typing.Optional[str] = None) -> typing.Optional[client.Configuration]:
    """
    Builds a client configuration for one run.

    An explicit ``kubeconfig`` path is tried first, then the in-cluster
    service account, then the default kubeconfig location. Nothing is
    written to the library's global default configuration.

    Returns:
        The loaded configuration, or None when no source worked.
    """
    configuration = client.Configuration()

    if kubeconfig:
        try:
            logger.debug("Attempting to load kubeconfig from %s...", kubeconfig)
            await config.load_kube_config(config_file=kubeconfig, client_configuration=configuration)
            logger.info("Loaded Kubernetes configuration from %s.", kubeconfig)
            return configuration
        except (config.ConfigException, OSError) as e:
            logger.debug("Could not load kubeconfig %s: %s", kubeconfig, e)

    try:
        logger.debug("Attempting to load in-cluster Kubernetes config...")
        config.load_incluster_config(client_configuration=configuration)
        logger.info("Loaded in-cluster Kubernetes configuration.")
        return configuration
    except config.ConfigException:
        logger.debug("In-cluster config not found.")

    try:
        logger.debug("Attempting to load default kubeconfig...")
        await config.load_kube_config(client_configuration=configuration)
        logger.info("Loaded Kubernetes configuration from the default kubeconfig.")
        return configuration
    except config.ConfigException:
        logger.warning("Could not find kubeconfig file.")
    except Exception as e:
        logger.warning(f"Unexpected error loading kubeconfig: {e}")

    logger.warning("Failed to load any Kubernetes configuration.")
    return None


async def get_api_client(kubeconfig: typing.Optional[str] = None) -> typing.Optional[client.ApiClient]:
    """
    Returns an ApiClient shared by the CoreV1 and AppsV1 APIs of a run.
    The caller owns it and must close it.
    """
    configuration = await load_k8s_configuration(kubeconfig)
    if configuration is None:
        return None
    return client.ApiClient(configuration=configuration)
