"""Shared fixtures: an in-memory cluster and manifest factories."""

import copy
from typing import Any, Dict, List, Optional

import pytest

from kubelattice.core.interfaces import ClusterClient
from kubelattice.k8s.reader import ClusterReader
from kubelattice.utils.config import DEFAULT_CONTROLLER_NAME, ControllerConfig

GATEWAY_API = "gateway.networking.k8s.io/v1"
POLICY_API = "application-networking.k8s.aws/v1alpha1"
MCS_API = "multicluster.x-k8s.io/v1alpha1"


class FakeClusterClient(ClusterClient):
    """ClusterClient over a dict of manifests keyed by kind, namespace and name."""

    def __init__(self, *objects: Dict[str, Any]):
        self.objects: Dict[tuple, Dict[str, Any]] = {}
        self.calls: List[tuple] = []
        for obj in objects:
            self.add(obj)

    def add(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        metadata = obj.get("metadata", {})
        self.objects[(obj["kind"], metadata.get("namespace"), metadata["name"])] = obj
        return obj

    async def get_resource(
        self, api_version: str, kind: str, name: str, namespace: Optional[str] = None
    ) -> Optional[Dict[str, Any]]:
        self.calls.append(("get", api_version, kind, namespace, name))
        obj = self.objects.get((kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    async def get_resources(
        self,
        api_version: str,
        kind: str,
        namespace: Optional[str] = None,
        label_selector: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        self.calls.append(("list", api_version, kind, namespace, label_selector))
        selector = {}
        if label_selector:
            for term in label_selector.split(","):
                key, _, value = term.partition("=")
                selector[key] = value
        result = []
        for (obj_kind, obj_namespace, _), obj in self.objects.items():
            if obj_kind != kind:
                continue
            if namespace is not None and obj_namespace != namespace:
                continue
            labels = obj.get("metadata", {}).get("labels") or {}
            if any(labels.get(key) != value for key, value in selector.items()):
                continue
            result.append(copy.deepcopy(obj))
        return result

    def is_connected(self) -> bool:
        return True


def metadata(name: str, namespace: Optional[str] = "default", annotations=None, labels=None, deleted=False):
    meta: Dict[str, Any] = {"name": name, "uid": f"uid-{name}", "generation": 1}
    if namespace is not None:
        meta["namespace"] = namespace
    if annotations:
        meta["annotations"] = dict(annotations)
    if labels:
        meta["labels"] = dict(labels)
    if deleted:
        meta["deletionTimestamp"] = "2024-01-01T00:00:00Z"
    return meta


def make_namespace(name: str, labels=None) -> Dict[str, Any]:
    return {"apiVersion": "v1", "kind": "Namespace", "metadata": metadata(name, None, labels=labels)}


def make_gateway_class(name: str = "amazon-vpc-lattice", controller_name: str = DEFAULT_CONTROLLER_NAME):
    return {
        "apiVersion": GATEWAY_API,
        "kind": "GatewayClass",
        "metadata": metadata(name, None),
        "spec": {"controllerName": controller_name},
    }


def http_listener(name: str = "http", port: int = 80, **extra) -> Dict[str, Any]:
    return {"name": name, "port": port, "protocol": "HTTP", **extra}


def https_listener(name: str = "https", port: int = 443, certificate_arn: Optional[str] = None, **extra):
    tls: Dict[str, Any] = {"mode": "Terminate"}
    if certificate_arn:
        tls["options"] = {"application-networking.k8s.aws/certificate-arn": certificate_arn}
    return {"name": name, "port": port, "protocol": "HTTPS", "tls": tls, **extra}


def tls_passthrough_listener(name: str = "tls", port: int = 443, **extra) -> Dict[str, Any]:
    return {"name": name, "port": port, "protocol": "TLS", "tls": {"mode": "Passthrough"}, **extra}


def make_gateway(
    name: str = "gw1",
    namespace: str = "ns1",
    listeners=None,
    annotations=None,
    gateway_class: str = "amazon-vpc-lattice",
    deleted: bool = False,
) -> Dict[str, Any]:
    return {
        "apiVersion": GATEWAY_API,
        "kind": "Gateway",
        "metadata": metadata(name, namespace, annotations, deleted=deleted),
        "spec": {
            "gatewayClassName": gateway_class,
            "listeners": listeners if listeners is not None else [http_listener()],
        },
    }


def backend(name: str, port: Optional[int] = 80, weight: Optional[int] = None, **extra) -> Dict[str, Any]:
    ref: Dict[str, Any] = {"name": name, "kind": "Service", **extra}
    if port is not None:
        ref["port"] = port
    if weight is not None:
        ref["weight"] = weight
    return ref


def make_route(
    name: str = "svc1",
    namespace: str = "ns1",
    kind: str = "HTTPRoute",
    rules=None,
    parent_refs=None,
    accepted: bool = True,
    hostnames=None,
    annotations=None,
    deleted: bool = False,
) -> Dict[str, Any]:
    parent_refs = parent_refs if parent_refs is not None else [{"name": "gw1"}]
    status_parents = [
        {
            "parentRef": ref,
            "controllerName": DEFAULT_CONTROLLER_NAME,
            "conditions": [{"type": "Accepted", "status": "True" if accepted else "False"}],
        }
        for ref in parent_refs
    ]
    spec: Dict[str, Any] = {
        "parentRefs": parent_refs,
        "rules": rules if rules is not None else [{"backendRefs": [backend("tg1", weight=10)]}],
    }
    if hostnames:
        spec["hostnames"] = hostnames
    return {
        "apiVersion": "gateway.networking.k8s.io/v1alpha2" if kind == "TLSRoute" else GATEWAY_API,
        "kind": kind,
        "metadata": metadata(name, namespace, annotations, deleted=deleted),
        "spec": spec,
        "status": {"parents": status_parents},
    }


def make_service(
    name: str = "tg1", namespace: str = "ns1", ports=None, ip_families=None, annotations=None
) -> Dict[str, Any]:
    spec: Dict[str, Any] = {"ports": ports if ports is not None else [{"port": 80, "targetPort": 8080}]}
    if ip_families is not None:
        spec["ipFamilies"] = ip_families
    return {"apiVersion": "v1", "kind": "Service", "metadata": metadata(name, namespace, annotations), "spec": spec}


def make_endpoint_slice(
    service_name: str = "tg1",
    namespace: str = "ns1",
    addresses=("10.0.0.1",),
    port: int = 8080,
    port_name: str = "",
    ready: bool = True,
    terminating: bool = False,
    slice_name: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "apiVersion": "discovery.k8s.io/v1",
        "kind": "EndpointSlice",
        "metadata": metadata(
            slice_name or f"{service_name}-abc", namespace, labels={"kubernetes.io/service-name": service_name}
        ),
        "addressType": "IPv4",
        "ports": [{"name": port_name, "port": port, "protocol": "TCP"}],
        "endpoints": [
            {
                "addresses": [address],
                "conditions": {"ready": ready, "serving": ready, "terminating": terminating},
                "targetRef": {"kind": "Pod", "name": f"pod-{i}", "namespace": namespace},
            }
            for i, address in enumerate(addresses)
        ],
    }


def make_service_export(name: str = "tg1", namespace: str = "ns1", annotations=None, deleted: bool = False):
    return {
        "apiVersion": MCS_API,
        "kind": "ServiceExport",
        "metadata": metadata(name, namespace, annotations, deleted=deleted),
    }


def make_service_import(name: str = "tg1", namespace: str = "ns1", annotations=None):
    return {"apiVersion": MCS_API, "kind": "ServiceImport", "metadata": metadata(name, namespace, annotations)}


def make_policy(
    kind: str,
    name: str,
    namespace: str = "ns1",
    target_ref=None,
    spec=None,
    annotations=None,
    deleted: bool = False,
) -> Dict[str, Any]:
    body: Dict[str, Any] = dict(spec or {})
    if target_ref is not None:
        body["targetRef"] = target_ref
    return {
        "apiVersion": POLICY_API,
        "kind": kind,
        "metadata": metadata(name, namespace, annotations, deleted=deleted),
        "spec": body,
    }


@pytest.fixture
def config() -> ControllerConfig:
    return ControllerConfig(vpc_id="vpc-123", account_id="111122223333", region="us-west-2", cluster_name="test-cluster")


@pytest.fixture
def client() -> FakeClusterClient:
    """A cluster with the controller's GatewayClass and a default gateway gw1/ns1 with an HTTP listener."""
    return FakeClusterClient(make_gateway_class(), make_gateway())


@pytest.fixture
def reader(client: FakeClusterClient) -> ClusterReader:
    return ClusterReader(client)
