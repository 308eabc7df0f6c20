"""Deterministic lattice resource naming."""

import hashlib
import re

MAX_SERVICE_NAME_LENGTH = 40
MAX_TARGET_GROUP_NAME_LENGTH = 128
MAX_NAMESPACE_LENGTH = 55
MAX_NAME_LENGTH = 55
TARGET_GROUP_HASH_LENGTH = 10

_SERVICE_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9-]*[a-z0-9]$")


def truncate(name: str, length: int) -> str:
    """Cut a name to length and strip dangling dashes."""
    return name[:length].strip("-")


def lattice_service_name(route_name: str, route_namespace: str) -> str:
    return f"{route_name[:20]}-{route_namespace[:18]}"


def validate_service_name_override(name: str) -> str | None:
    """Return a description of what is wrong with a service name, or None when it is valid."""
    if not 3 <= len(name) <= MAX_SERVICE_NAME_LENGTH:
        return f"must be between 3 and {MAX_SERVICE_NAME_LENGTH} characters"
    if not _SERVICE_NAME_PATTERN.match(name):
        return "must contain only lowercase letters, digits and '-', and start and end with a letter or digit"
    if "--" in name:
        return "must not contain consecutive hyphens"
    if name.startswith("svc-"):
        return "must not start with 'svc-'"
    return None


def target_group_name(
    service_name: str,
    service_namespace: str,
    route_name: str = "",
    route_namespace: str = "",
    is_service_import: bool = False,
    port: int | None = None,
    protocol: str = "",
    protocol_version: str | None = None,
) -> str:
    """
    Name a target group from its Kubernetes identity.

    The readable prefix carries the service namespace and name; the suffix is a
    hash of the full identity. References to the same service from different
    routes, as a ServiceImport, on another port or with another protocol never
    share a name.
    """
    prefix = f"k8s-{truncate(service_namespace, MAX_NAMESPACE_LENGTH)}-{truncate(service_name, MAX_NAME_LENGTH)}"
    identity = [service_name, service_namespace, route_name, route_namespace, str(is_service_import).lower()]
    if port is not None:
        identity.append(str(port))
    if protocol:
        identity.append(protocol)
    if protocol_version:
        identity.append(protocol_version)
    digest = hashlib.sha256("/".join(identity).encode("utf-8")).hexdigest()[:TARGET_GROUP_HASH_LENGTH]
    return f"{prefix}-{digest}"[:MAX_TARGET_GROUP_NAME_LENGTH]
