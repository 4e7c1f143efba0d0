"""
Site parameters for the secure RAPIDS notebook stack.

The public hostname, hosted zone, TLS certificate and Cognito user pool
settings are kept in SSM Parameter Store rather than in source control and
are read during synthesis.
"""

import logging
from typing import Dict, NamedTuple

from aws_cdk import aws_ssm as ssm
from constructs import Construct

logger = logging.getLogger(__name__)

PARAMETER_SUFFIXES = {
    "hostname": "hostname",
    "hosted_zone_id": "hosted-zone-id",
    "certificate_arn": "certificate-arn",
    "user_pool_arn": "user-pool-arn",
    "user_pool_client_id": "user-pool-client-id",
    "user_pool_domain": "user-pool-domain",
}


class SiteParameters(NamedTuple):
    """Externally managed values the edge layer is built from."""

    hostname: str
    hosted_zone_id: str
    certificate_arn: str
    user_pool_arn: str
    user_pool_client_id: str
    user_pool_domain: str

    @staticmethod
    def parameter_names(prefix: str) -> Dict[str, str]:
        """Map each field to its SSM parameter name under ``prefix``."""
        prefix = prefix.rstrip("/")
        return {field: f"{prefix}/{suffix}" for field, suffix in PARAMETER_SUFFIXES.items()}

    @classmethod
    def from_parameter_store(cls, scope: Construct, prefix: str) -> "SiteParameters":
        """
        Look up every site parameter in SSM Parameter Store.

        The stack containing ``scope`` must have a concrete account and
        region. Until the CDK CLI has resolved the lookups the values are
        placeholders, so callers must not parse them.

        Args:
            scope: Construct within the stack performing the lookups
            prefix: Common prefix of the parameter names, e.g. ``/rapids``

        Returns:
            SiteParameters holding the looked up values
        """
        names = cls.parameter_names(prefix)
        logger.info("Reading site parameters under %s", prefix)
        return cls(
            **{
                field: ssm.StringParameter.value_from_lookup(scope, name)
                for field, name in names.items()
            }
        )
