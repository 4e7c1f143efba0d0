"""
Configuration for the RAPIDS notebook stacks.

Values are read from CDK context (cdk.json or ``cdk synth -c key=value``)
and merged over the defaults below. Ports and health check settings are
fixed and not exposed as context.
"""

import json
import logging
from typing import Any, Dict

from aws_cdk import aws_logs as logs
from constructs import Node

logger = logging.getLogger(__name__)

NOTEBOOK_PORT = 8888
DASHBOARD_PORT = 8787
SCHEDULER_PORT = 8786
SERVICE_PORTS = (NOTEBOOK_PORT, DASHBOARD_PORT, SCHEDULER_PORT)

HTTPS_PORT = 443

HEALTH_CHECK_INTERVAL_SECONDS = 30
HEALTH_CHECK_TIMEOUT_SECONDS = 10
HEALTH_CHECK_HEALTHY_THRESHOLD = 3
HEALTH_CHECK_HEALTHY_CODES = "200-399"

AUTHENTICATE_ACTION_ORDER = 1
FORWARD_ACTION_ORDER = 2

DEFAULT_CONFIGURATION: Dict[str, Any] = {
    "max_azs": 2,
    "instance_type": "p3.2xlarge",
    "desired_capacity": 1,
    "key_name": "awskey",
    "ssh_ingress_cidr": "0.0.0.0/0",
    "notebook_ingress_cidr": None,
    "container_image": "rapidsai/rapidsai:cuda10.0-runtime-ubuntu16.04",
    "container_command": ["bash", "utils/start-jupyter.sh"],
    "memory_limit_mib": 10240,
    "gpu_count": 1,
    "log_stream_prefix": "rapids",
    "log_retention_days": 7,
    "parameter_prefix": "/rapids",
    "enable_cdk_nag": True,
}

_INTEGER_KEYS = (
    "max_azs",
    "desired_capacity",
    "memory_limit_mib",
    "gpu_count",
    "log_retention_days",
)


def _coerce(key: str, value: Any) -> Any:
    """Convert string values passed with ``-c`` to the type of the default."""
    if not isinstance(value, str):
        return value
    if key in _INTEGER_KEYS:
        try:
            return int(value)
        except ValueError as e:
            raise ValueError(f"Context value '{key}' must be an integer, got '{value}'") from e
    if key == "container_command":
        stripped = value.strip()
        if stripped.startswith("["):
            return json.loads(stripped)
        return stripped.split()
    if key == "enable_cdk_nag":
        return value.lower() not in ("false", "0", "no", "off")
    return value


def get_configuration(node: Node) -> Dict[str, Any]:
    """
    Resolve the stack configuration from CDK context.

    Args:
        node: Construct node used to read context values

    Returns:
        Dictionary with one entry per key of DEFAULT_CONFIGURATION
    """
    config = {}
    for key, default in DEFAULT_CONFIGURATION.items():
        value = node.try_get_context(key)
        config[key] = default if value is None else _coerce(key, value)

    logger.debug("Resolved configuration: %s", config)
    return config


RETENTION_DAYS: Dict[int, logs.RetentionDays] = {
    1: logs.RetentionDays.ONE_DAY,
    3: logs.RetentionDays.THREE_DAYS,
    5: logs.RetentionDays.FIVE_DAYS,
    7: logs.RetentionDays.ONE_WEEK,
    14: logs.RetentionDays.TWO_WEEKS,
    30: logs.RetentionDays.ONE_MONTH,
    60: logs.RetentionDays.TWO_MONTHS,
    90: logs.RetentionDays.THREE_MONTHS,
    120: logs.RetentionDays.FOUR_MONTHS,
    150: logs.RetentionDays.FIVE_MONTHS,
    180: logs.RetentionDays.SIX_MONTHS,
    365: logs.RetentionDays.ONE_YEAR,
    400: logs.RetentionDays.THIRTEEN_MONTHS,
    545: logs.RetentionDays.EIGHTEEN_MONTHS,
    731: logs.RetentionDays.TWO_YEARS,
    1096: logs.RetentionDays.THREE_YEARS,
    1827: logs.RetentionDays.FIVE_YEARS,
    2192: logs.RetentionDays.SIX_YEARS,
    2557: logs.RetentionDays.SEVEN_YEARS,
    2922: logs.RetentionDays.EIGHT_YEARS,
    3288: logs.RetentionDays.NINE_YEARS,
    3653: logs.RetentionDays.TEN_YEARS,
    # Never expire
    9999: logs.RetentionDays.INFINITE,
}


def validate_configuration(config: Dict[str, Any]) -> None:
    """Raise ValueError when a configuration value cannot be synthesized."""
    for key in ("max_azs", "desired_capacity", "gpu_count", "memory_limit_mib"):
        if config[key] < 1:
            raise ValueError(f"Configuration value '{key}' must be at least 1, got {config[key]}")

    command = config["container_command"]
    if not command:
        raise ValueError("Configuration value 'container_command' must not be empty")
    if not isinstance(command, (list, tuple)) or not all(isinstance(arg, str) for arg in command):
        raise ValueError(f"Configuration value 'container_command' must be a list of strings, got {command!r}")

    if config["log_retention_days"] not in RETENTION_DAYS:
        raise ValueError(
            f"Configuration value 'log_retention_days' must be one of "
            f"{sorted(RETENTION_DAYS)}, got {config['log_retention_days']}"
        )
