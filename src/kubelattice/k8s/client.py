"""Kubernetes client implementation."""

import asyncio
import logging
from typing import Any

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from kubelattice.core.interfaces import ClusterClient

logger = logging.getLogger(__name__)


class K8sClient(ClusterClient):
    """Read-only cluster access backed by the official kubernetes client."""

    def __init__(self, kubeconfig_path: str | None = None):
        """Initialize Kubernetes client."""
        self.kubeconfig_path = kubeconfig_path
        self._api_client: client.ApiClient | None = None
        self._core_v1: client.CoreV1Api | None = None
        self._discovery_v1: client.DiscoveryV1Api | None = None
        self._custom_objects: client.CustomObjectsApi | None = None

    async def _ensure_connected(self) -> None:
        """Ensure client is connected."""
        if self._api_client is None:
            try:
                if self.kubeconfig_path:
                    config.load_kube_config(config_file=self.kubeconfig_path)
                else:
                    # Try in-cluster config first, then default kubeconfig
                    try:
                        config.load_incluster_config()
                    except config.ConfigException:
                        config.load_kube_config()

                self._api_client = client.ApiClient()
                self._core_v1 = client.CoreV1Api(self._api_client)
                self._discovery_v1 = client.DiscoveryV1Api(self._api_client)
                self._custom_objects = client.CustomObjectsApi(self._api_client)

            except Exception as e:
                raise ConnectionError(f"Failed to connect to Kubernetes cluster: {e}") from e

    def is_connected(self) -> bool:
        """Check if client is connected to cluster."""
        return self._api_client is not None

    async def get_resource(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str | None = None,
    ) -> dict[str, Any] | None:
        """Get a single resource, None when it does not exist."""
        await self._ensure_connected()
        group, version = self._split_api_version(api_version)

        def read() -> Any:
            if group == "" and version == "v1":
                return self._read_core(kind, name, namespace)
            assert self._custom_objects is not None
            plural = self._get_plural_name(kind)
            if namespace:
                return self._custom_objects.get_namespaced_custom_object(group, version, namespace, plural, name)
            return self._custom_objects.get_cluster_custom_object(group, version, plural, name)

        try:
            obj = await asyncio.get_running_loop().run_in_executor(None, read)
        except ApiException as e:
            if e.status == 404:
                logger.debug("%s %s/%s not found", kind, namespace, name)
                return None
            raise RuntimeError(f"Failed to get {kind} {namespace}/{name}: {e}") from e

        return self._to_manifest(obj)

    async def get_resources(
        self,
        api_version: str,
        kind: str,
        namespace: str | None = None,
        label_selector: str | None = None,
    ) -> list[dict[str, Any]]:
        """Get Kubernetes resources of a specific type."""
        await self._ensure_connected()
        group, version = self._split_api_version(api_version)

        def list_items() -> list[Any]:
            # Handle core and discovery resources differently
            if group == "" and version == "v1":
                return self._list_core(kind, namespace, label_selector)
            if group == "discovery.k8s.io":
                return self._list_endpoint_slices(namespace, label_selector)

            assert self._custom_objects is not None
            plural = self._get_plural_name(kind)
            if namespace:
                response = self._custom_objects.list_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=plural,
                    label_selector=label_selector or "",
                )
            else:
                response = self._custom_objects.list_cluster_custom_object(
                    group=group,
                    version=version,
                    plural=plural,
                    label_selector=label_selector or "",
                )
            items = response.get("items", [])
            return items if isinstance(items, list) else []

        try:
            items = await asyncio.get_running_loop().run_in_executor(None, list_items)
        except ApiException as e:
            if e.status == 404:
                # Resource type doesn't exist
                logger.debug("%s/%s is not served by the cluster", api_version, kind)
                return []
            raise RuntimeError(f"Failed to get {kind} resources: {e}") from e

        return [self._to_manifest(item) for item in items]

    def _read_core(self, kind: str, name: str, namespace: str | None) -> Any:
        assert self._core_v1 is not None
        kind_lower = kind.lower()
        if kind_lower == "namespace":
            return self._core_v1.read_namespace(name)
        if kind_lower == "service":
            return self._core_v1.read_namespaced_service(name, namespace or "default")
        raise ValueError(f"Unsupported core resource: {kind}")

    def _list_core(self, kind: str, namespace: str | None, label_selector: str | None) -> list[Any]:
        assert self._core_v1 is not None
        kind_lower = kind.lower()
        selector = label_selector or ""
        if kind_lower == "namespace":
            response = self._core_v1.list_namespace(label_selector=selector)
        elif kind_lower == "service":
            if namespace:
                response = self._core_v1.list_namespaced_service(namespace=namespace, label_selector=selector)
            else:
                response = self._core_v1.list_service_for_all_namespaces(label_selector=selector)
        else:
            raise ValueError(f"Unsupported core resource: {kind}")
        return list(response.items)

    def _list_endpoint_slices(self, namespace: str | None, label_selector: str | None) -> list[Any]:
        assert self._discovery_v1 is not None
        selector = label_selector or ""
        if namespace:
            response = self._discovery_v1.list_namespaced_endpoint_slice(namespace=namespace, label_selector=selector)
        else:
            response = self._discovery_v1.list_endpoint_slice_for_all_namespaces(label_selector=selector)
        return list(response.items)

    def _to_manifest(self, obj: Any) -> dict[str, Any]:
        """Typed client objects to camelCase manifest dicts; custom objects are already dicts."""
        if isinstance(obj, dict):
            return obj
        assert self._api_client is not None
        return self._api_client.sanitize_for_serialization(obj)

    @staticmethod
    def _split_api_version(api_version: str) -> tuple[str, str]:
        if "/" in api_version:
            group, version = api_version.split("/", 1)
            return group, version
        return "", api_version

    def _get_plural_name(self, kind: str) -> str:
        """Get plural name for a Kubernetes kind."""
        plural_map = {
            "Gateway": "gateways",
            "GatewayClass": "gatewayclasses",
            "HTTPRoute": "httproutes",
            "GRPCRoute": "grpcroutes",
            "TLSRoute": "tlsroutes",
            "ServiceExport": "serviceexports",
            "ServiceImport": "serviceimports",
            "TargetGroupPolicy": "targetgrouppolicies",
            "VpcAssociationPolicy": "vpcassociationpolicies",
            "AccessLogPolicy": "accesslogpolicies",
            "IAMAuthPolicy": "iamauthpolicies",
        }

        return plural_map.get(kind, kind.lower() + "s")

    async def close(self) -> None:
        """Close the client connection."""
        if self._api_client is not None:
            self._api_client.close()
        self._api_client = None
        self._core_v1 = None
        self._discovery_v1 = None
        self._custom_objects = None
