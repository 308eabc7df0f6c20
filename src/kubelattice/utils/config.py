"""Controller configuration."""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)

DEFAULT_CONTROLLER_NAME = "application-networking.k8s.aws/gateway-api-controller"

ENV_VARS = {
    "vpc_id": "CLUSTER_VPC_ID",
    "account_id": "AWS_ACCOUNT_ID",
    "region": "REGION",
    "cluster_name": "CLUSTER_NAME",
    "default_service_network": "DEFAULT_SERVICE_NETWORK",
    "enable_service_network_override": "ENABLE_SERVICE_NETWORK_OVERRIDE",
    "controller_name": "GATEWAY_CONTROLLER_NAME",
    "log_level": "LOG_LEVEL",
}


class ControllerConfig(BaseModel):
    """Settings passed explicitly to every builder invocation."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    vpc_id: str = ""
    account_id: str = ""
    region: str = ""
    cluster_name: str = ""
    default_service_network: str = ""
    enable_service_network_override: bool = False
    controller_name: str = DEFAULT_CONTROLLER_NAME
    log_level: str = "INFO"

    def service_network_override(self) -> str | None:
        """Service network every non-standalone service is forced into, if any."""
        if self.enable_service_network_override and self.default_service_network:
            return self.default_service_network
        return None


def _load_yaml(path: Path) -> dict:
    """Load a YAML file, expanding ${ENV_VAR} references."""
    raw = path.read_text()
    expanded = os.path.expandvars(raw)
    return yaml.safe_load(expanded) or {}


def load_config(path: str | Path | None = None, environ: dict[str, str] | None = None) -> ControllerConfig:
    """
    Build a ControllerConfig.

    Values come from the optional YAML file first (keys are the field names),
    then from environment variables, which win when set and non-empty.
    Raises pydantic.ValidationError when a value has the wrong type.
    """
    environ = os.environ if environ is None else environ
    data: dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        data = _load_yaml(path)
        unknown = set(data) - set(ControllerConfig.model_fields)
        if unknown:
            logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(sorted(unknown)))

    for field_name, env_var in ENV_VARS.items():
        value = environ.get(env_var)
        if value not in (None, ""):
            data[field_name] = value

    config = ControllerConfig.model_validate(data)
    logger.debug("Loaded controller config: %s", config)
    return config
