"""Typed, read-only lookups over a ClusterClient."""

import logging

from kubelattice.core.interfaces import ClusterClient
from kubelattice.core.models import (
    GATEWAY_API_GROUP,
    MCS_GROUP,
    EndpointSlice,
    Gateway,
    GatewayClass,
    Policy,
    PolicyKind,
    Route,
    RouteKind,
    Service,
    ServiceExport,
    ServiceImport,
)
from kubelattice.k8s.converter import ManifestConverter

logger = logging.getLogger(__name__)

GATEWAY_API_VERSION = f"{GATEWAY_API_GROUP}/v1"
MCS_API_VERSION = f"{MCS_GROUP}/v1alpha1"
DISCOVERY_API_VERSION = "discovery.k8s.io/v1"
SERVICE_NAME_LABEL = "kubernetes.io/service-name"


class ClusterReader:
    """Fetches Kubernetes objects and returns them as kubelattice models."""

    def __init__(self, client: ClusterClient, converter: ManifestConverter | None = None):
        self.client = client
        self.converter = converter or ManifestConverter()

    async def get_route(self, kind: RouteKind, name: str, namespace: str) -> Route | None:
        obj = await self.client.get_resource(kind.api_version, kind.value, name, namespace)
        if obj is None:
            return None
        obj.setdefault("kind", kind.value)
        return self.converter.convert_route(obj)

    async def get_gateway(self, name: str, namespace: str) -> Gateway | None:
        obj = await self.client.get_resource(GATEWAY_API_VERSION, "Gateway", name, namespace)
        return self.converter.convert_gateway(obj) if obj is not None else None

    async def get_gateway_class(self, name: str) -> GatewayClass | None:
        obj = await self.client.get_resource(GATEWAY_API_VERSION, "GatewayClass", name)
        return self.converter.convert_gateway_class(obj) if obj is not None else None

    async def get_service(self, name: str, namespace: str) -> Service | None:
        obj = await self.client.get_resource("v1", "Service", name, namespace)
        return self.converter.convert_service(obj) if obj is not None else None

    async def get_service_export(self, name: str, namespace: str) -> ServiceExport | None:
        obj = await self.client.get_resource(MCS_API_VERSION, "ServiceExport", name, namespace)
        return self.converter.convert_service_export(obj) if obj is not None else None

    async def get_service_import(self, name: str, namespace: str) -> ServiceImport | None:
        obj = await self.client.get_resource(MCS_API_VERSION, "ServiceImport", name, namespace)
        return self.converter.convert_service_import(obj) if obj is not None else None

    async def get_namespace_labels(self, name: str) -> dict[str, str] | None:
        obj = await self.client.get_resource("v1", "Namespace", name)
        if obj is None:
            return None
        return dict((obj.get("metadata") or {}).get("labels") or {})

    async def list_endpoint_slices(self, service_name: str, namespace: str) -> list[EndpointSlice]:
        """EndpointSlices owned by a Service, found through the service-name label."""
        items = await self.client.get_resources(
            DISCOVERY_API_VERSION,
            "EndpointSlice",
            namespace=namespace,
            label_selector=f"{SERVICE_NAME_LABEL}={service_name}",
        )
        return [self.converter.convert_endpoint_slice(item) for item in items]

    async def list_policies(self, kind: PolicyKind, namespace: str) -> list[Policy]:
        items = await self.client.get_resources(kind.api_version, kind.value, namespace=namespace)
        policies = []
        for item in items:
            item.setdefault("kind", kind.value)
            policies.append(self.converter.convert_policy(item))
        return policies
