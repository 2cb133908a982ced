# src/ccmon/core/workloads.py
"""
Creates, scales and deletes the placeholder deployments a scenario drives.
"""

import logging
from typing import Iterable, Optional

from kubernetes_asyncio import client
from kubernetes_asyncio.client.rest import ApiException

from ..models.scenario import Workload
from .config import config
from .exceptions import WorkloadError

logger = logging.getLogger(__name__)

OWNER_LABEL = "ccmon"
OWNER_VALUE = "owned"
CONFLICT = 409


def build_deployment(workload: Workload, namespace: str, image: str) -> client.V1Deployment:
    """Deployment manifest for ``workload`` with zero replicas and a pause container."""
    name = workload.k8s_name
    labels = {OWNER_LABEL: OWNER_VALUE, "app": name}
    return client.V1Deployment(
        metadata=client.V1ObjectMeta(
            namespace=namespace,
            name=name,
            labels={OWNER_LABEL: OWNER_VALUE},
        ),
        spec=client.V1DeploymentSpec(
            replicas=0,
            selector=client.V1LabelSelector(match_labels={"app": name}),
            template=client.V1PodTemplateSpec(
                metadata=client.V1ObjectMeta(namespace=namespace, name=name, labels=labels),
                spec=client.V1PodSpec(
                    containers=[
                        client.V1Container(
                            name="container",
                            image=image,
                            resources=client.V1ResourceRequirements(
                                requests={"cpu": workload.cpu, "memory": workload.memory}
                            ),
                        )
                    ]
                ),
            ),
        ),
    )


class WorkloadManager:
    """
    Wraps the AppsV1 API calls made against scenario workloads.
    """

    def __init__(
        self,
        apps_api: client.AppsV1Api,
        namespace: Optional[str] = None,
        image: Optional[str] = None,
        max_attempts: Optional[int] = None,
    ):
        self._api = apps_api
        self.namespace = config.NAMESPACE if namespace is None else namespace
        self.image = config.WORKLOAD_IMAGE if image is None else image
        self.max_attempts = config.SCALE_MAX_ATTEMPTS if max_attempts is None else max_attempts
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

    async def create(self, workload: Workload) -> None:
        """
        Creates the deployment for ``workload``.

        Raises:
            WorkloadError: If the API rejects the deployment.
        """
        body = build_deployment(workload, self.namespace, self.image)
        try:
            await self._api.create_namespaced_deployment(namespace=self.namespace, body=body)
        except ApiException as e:
            raise WorkloadError(f"creating deployment {workload.name}, {e.reason or e}") from e
        logger.info("Created deployment %s (%s)", workload.name, workload.k8s_name)

    async def delete(self, workload: Workload) -> bool:
        """Deletes the deployment for ``workload``. Failures are logged, never raised."""
        try:
            await self._api.delete_namespaced_deployment(
                name=workload.k8s_name,
                namespace=self.namespace,
                grace_period_seconds=0,
            )
        except Exception as e:
            logger.error("deleting deployment %s (%s), %s", workload.name, workload.k8s_name, e)
            return False
        logger.info("Deleted deployment %s (%s)", workload.name, workload.k8s_name)
        return True

    async def delete_all(self, workloads: Iterable[Workload]) -> int:
        deleted = 0
        for workload in workloads:
            if await self.delete(workload):
                deleted += 1
        return deleted

    async def scale(self, workload: Workload, replicas: int) -> bool:
        """
        Sets the replica count through the scale subresource.

        The read-modify-write is retried immediately when the write fails, up to
        ``max_attempts`` attempts in total. A failed read abandons the update.
        Returns True when the new replica count was written.
        """
        name = workload.k8s_name
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                scale = await self._api.read_namespaced_deployment_scale(name=name, namespace=self.namespace)
            except Exception as e:
                logger.error("unable to get scale for %s, %s", workload.name, e)
                return False

            scale.spec.replicas = replicas
            try:
                await self._api.replace_namespaced_deployment_scale(name=name, namespace=self.namespace, body=scale)
                return True
            except ApiException as e:
                last_error = e
                if e.status == CONFLICT:
                    logger.debug("conflict scaling %s (attempt %d/%d)", workload.name, attempt, self.max_attempts)
                else:
                    logger.debug("error scaling %s (attempt %d/%d): %s", workload.name, attempt, self.max_attempts, e)

        logger.error("unable to scale %s after %d attempts, %s", workload.name, self.max_attempts, last_error)
        return False
