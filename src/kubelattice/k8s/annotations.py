"""Annotation keys read by the builders, and their parsers."""

import logging
from dataclasses import dataclass

from kubelattice.core.models.errors import LATTICE_INVALID_ANNOTATION, ValidationError

logger = logging.getLogger(__name__)

ANNOTATION_PREFIX = "application-networking.k8s.aws/"

STANDALONE = ANNOTATION_PREFIX + "standalone"
ALLOW_TAKEOVER_FROM = ANNOTATION_PREFIX + "allow-takeover-from"
SERVICE_NAME_OVERRIDE = ANNOTATION_PREFIX + "service-name-override"
LATTICE_SERVICE_NAME = ANNOTATION_PREFIX + "lattice-service-name"
CERTIFICATE_ARN = ANNOTATION_PREFIX + "certificate-arn"
VPC_ASSOCIATION = ANNOTATION_PREFIX + "lattice-vpc-association"
TAGS = ANNOTATION_PREFIX + "tags"
SERVICE_IMPORT_VPC = ANNOTATION_PREFIX + "aws-vpc"
SERVICE_IMPORT_CLUSTER = ANNOTATION_PREFIX + "aws-eks-cluster-name"
EXPORT_PORTS = "multicluster.x-k8s.io/port"


def parse_bool(value: str | None) -> bool:
    """True only for "true", ignoring case and surrounding whitespace."""
    return value is not None and value.strip().lower() == "true"


def standalone_value(annotations: dict[str, str]) -> bool | None:
    """
    Read the standalone annotation.

    Returns None when the annotation is absent, so callers can fall through
    to the next level. Values other than true/false count as false.
    """
    if STANDALONE not in annotations:
        return None
    value = annotations[STANDALONE]
    trimmed = value.strip().lower()
    if trimmed not in ("true", "false"):
        logger.warning("Invalid standalone annotation value '%s', expected 'true' or 'false'; treating as false", value)
    return trimmed == "true"


def parse_tags(value: str) -> dict[str, str]:
    """Parse "k1=v1,k2=v2"; malformed pairs and empty keys or values are dropped."""
    tags: dict[str, str] = {}
    for pair in value.split(","):
        key, sep, tag_value = pair.strip().partition("=")
        if not sep:
            continue
        key, tag_value = key.strip(), tag_value.strip()
        if key and tag_value:
            tags[key] = tag_value
    return tags


def additional_tags(annotations: dict[str, str]) -> dict[str, str]:
    """User tags from the tags annotation, without keys in the controller's own prefix."""
    value = annotations.get(TAGS, "")
    if not value:
        return {}
    return {k: v for k, v in parse_tags(value).items() if not k.startswith(ANNOTATION_PREFIX)}


def calculate_tag_difference(current: dict[str, str], desired: dict[str, str]) -> tuple[dict[str, str], list[str]]:
    """Tags to add or update, and tag keys to remove, to turn current into desired."""
    to_remove = sorted(key for key in current if key not in desired)
    to_add = {key: value for key, value in desired.items() if current.get(key) != value}
    return to_add, to_remove


@dataclass(frozen=True)
class TakeoverSource:
    """Previous owner of a lattice service, from allow-takeover-from."""

    account_id: str
    cluster_name: str
    vpc_id: str

    def __str__(self) -> str:
        return f"{self.account_id}/{self.cluster_name}/{self.vpc_id}"


def parse_takeover_from(value: str) -> TakeoverSource:
    parts = [part.strip() for part in value.split("/")]
    if len(parts) != 3 or not all(parts):
        raise ValidationError(
            LATTICE_INVALID_ANNOTATION,
            f"allow-takeover-from must be 'account/cluster/vpc', got '{value}'",
            field=ALLOW_TAKEOVER_FROM,
        )
    return TakeoverSource(*parts)


def parse_export_ports(annotations: dict[str, str]) -> list[int]:
    """Ports listed on a ServiceExport, in declaration order."""
    value = annotations.get(EXPORT_PORTS, "").strip()
    if not value:
        return []
    ports: list[int] = []
    for item in value.split(","):
        item = item.strip()
        if not item:
            continue
        try:
            ports.append(int(item))
        except ValueError:
            raise ValidationError(
                LATTICE_INVALID_ANNOTATION, f"invalid export port '{item}'", field=EXPORT_PORTS
            ) from None
    return ports
