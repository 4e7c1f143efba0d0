"""
Secure RAPIDS Notebook Stack

Extends the RAPIDS notebook stack with an authenticated HTTPS entry point:

- Internet-facing Application Load Balancer with HTTP to HTTPS redirect
- TLS listener using an existing ACM certificate
- Listener rule that authenticates against a Cognito user pool before
  forwarding to the notebook
- Route 53 alias record for the public hostname

Hostname, hosted zone, certificate and user pool settings are read from
SSM Parameter Store unless passed in explicitly.
"""

import logging
from typing import Optional

from aws_cdk import (
    CfnOutput,
    Duration,
    Tags,
    aws_ec2 as ec2,
    aws_elasticloadbalancingv2 as elbv2,
    aws_route53 as route53,
    aws_route53_targets as route53_targets,
)
from constructs import Construct

from .config import (
    AUTHENTICATE_ACTION_ORDER,
    FORWARD_ACTION_ORDER,
    HEALTH_CHECK_HEALTHY_CODES,
    HEALTH_CHECK_HEALTHY_THRESHOLD,
    HEALTH_CHECK_INTERVAL_SECONDS,
    HEALTH_CHECK_TIMEOUT_SECONDS,
    HTTPS_PORT,
    NOTEBOOK_PORT,
)
from .rapids_notebook_stack import RapidsNotebookStack
from .site_parameters import SiteParameters

logger = logging.getLogger(__name__)


class SecureRapidsNotebookStack(RapidsNotebookStack):
    """RAPIDS notebook reachable only through Cognito-authenticated HTTPS."""

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        site_parameters: Optional[SiteParameters] = None,
        **kwargs
    ) -> None:
        """
        Initialize the Secure RAPIDS Notebook Stack

        Args:
            scope: The scope in which to define this construct
            construct_id: The scoped construct ID
            site_parameters: Edge layer settings; looked up in SSM Parameter
                Store under the ``parameter_prefix`` context value if omitted
            **kwargs: Additional stack arguments
        """
        super().__init__(scope, construct_id, **kwargs)

        self.site_parameters = site_parameters or SiteParameters.from_parameter_store(
            self, self.config["parameter_prefix"]
        )

        self.load_balancer = self._create_load_balancer()
        self.target_group = self._create_target_group()
        self.https_listener = self._create_https_listener()
        self.listener_rule = self._create_authenticated_rule()
        self.alias_record = self._create_alias_record()

        self._create_edge_outputs()
        Tags.of(self).add("Component", "AuthenticatedNotebook")

    def _configure_notebook_access(self) -> None:
        """Keep notebook ports closed; only the load balancer may reach them."""
        if self.config["notebook_ingress_cidr"]:
            logger.warning(
                "Ignoring notebook_ingress_cidr for %s: traffic is only accepted from the load balancer",
                self.stack_name,
            )

    def _create_load_balancer(self) -> elbv2.ApplicationLoadBalancer:
        """Create the internet-facing load balancer in front of the fleet."""
        alb = elbv2.ApplicationLoadBalancer(
            self,
            "RapidsLoadBalancer",
            vpc=self.vpc,
            internet_facing=True,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
        )

        self.security_group.connections.allow_from(
            alb,
            ec2.Port.tcp(NOTEBOOK_PORT),
            "Allow notebook traffic from the load balancer",
        )

        # Token exchange with the Cognito domain
        alb.connections.allow_to_any_ipv4(
            ec2.Port.tcp(HTTPS_PORT),
            "Allow to the identity provider endpoint",
        )

        alb.add_redirect()

        return alb

    def _create_target_group(self) -> elbv2.ApplicationTargetGroup:
        """Create the notebook target group and register the service in it."""
        target_group = elbv2.ApplicationTargetGroup(
            self,
            "NotebookTargetGroup",
            vpc=self.vpc,
            port=NOTEBOOK_PORT,
            protocol=elbv2.ApplicationProtocol.HTTP,
            target_type=elbv2.TargetType.INSTANCE,
            health_check=elbv2.HealthCheck(
                enabled=True,
                path="/",
                protocol=elbv2.Protocol.HTTP,
                healthy_http_codes=HEALTH_CHECK_HEALTHY_CODES,
                interval=Duration.seconds(HEALTH_CHECK_INTERVAL_SECONDS),
                timeout=Duration.seconds(HEALTH_CHECK_TIMEOUT_SECONDS),
                healthy_threshold_count=HEALTH_CHECK_HEALTHY_THRESHOLD,
            ),
        )

        self.service.attach_to_application_target_group(target_group)

        return target_group

    def _create_https_listener(self) -> elbv2.ApplicationListener:
        """Create the TLS listener; unmatched requests are rejected."""
        return self.load_balancer.add_listener(
            "HttpsListener",
            port=HTTPS_PORT,
            protocol=elbv2.ApplicationProtocol.HTTPS,
            certificates=[
                elbv2.ListenerCertificate.from_arn(self.site_parameters.certificate_arn)
            ],
            open=True,
            default_action=elbv2.ListenerAction.fixed_response(
                403,
                content_type="text/plain",
                message_body="Forbidden",
            ),
        )

    def _create_authenticated_rule(self) -> elbv2.CfnListenerRule:
        """
        Create the rule that authenticates every request before forwarding.

        The authenticate action must come before the forward action; the
        orders are set explicitly rather than left to the listener to assign.
        """
        params = self.site_parameters

        rule = elbv2.CfnListenerRule(
            self,
            "AuthenticatedNotebookRule",
            listener_arn=self.https_listener.listener_arn,
            priority=1,
            conditions=[
                elbv2.CfnListenerRule.RuleConditionProperty(
                    field="path-pattern",
                    path_pattern_config=elbv2.CfnListenerRule.PathPatternConfigProperty(
                        values=["/*"],
                    ),
                ),
            ],
            actions=[
                elbv2.CfnListenerRule.ActionProperty(
                    type="authenticate-cognito",
                    order=AUTHENTICATE_ACTION_ORDER,
                    authenticate_cognito_config=elbv2.CfnListenerRule.AuthenticateCognitoConfigProperty(
                        user_pool_arn=params.user_pool_arn,
                        user_pool_client_id=params.user_pool_client_id,
                        user_pool_domain=params.user_pool_domain,
                    ),
                ),
                elbv2.CfnListenerRule.ActionProperty(
                    type="forward",
                    order=FORWARD_ACTION_ORDER,
                    target_group_arn=self.target_group.target_group_arn,
                ),
            ],
        )

        # ECS rejects a target group that is not yet behind a load balancer
        self.service.node.add_dependency(rule)

        return rule

    def _create_alias_record(self) -> route53.ARecord:
        """Point the public hostname at the load balancer."""
        params = self.site_parameters

        hosted_zone = route53.HostedZone.from_hosted_zone_attributes(
            self,
            "HostedZone",
            hosted_zone_id=params.hosted_zone_id,
            zone_name=params.hostname,
        )

        return route53.ARecord(
            self,
            "NotebookAliasRecord",
            zone=hosted_zone,
            record_name=params.hostname,
            target=route53.RecordTarget.from_alias(
                route53_targets.LoadBalancerTarget(self.load_balancer)
            ),
        )

    def _create_edge_outputs(self) -> None:
        """Create outputs for the public endpoint."""
        CfnOutput(
            self,
            "ServiceUrl",
            value=f"https://{self.site_parameters.hostname}",
            description="Public HTTPS URL of the RAPIDS notebook",
        )

        CfnOutput(
            self,
            "LoadBalancerDNS",
            value=self.load_balancer.load_balancer_dns_name,
            description="DNS name of the Application Load Balancer",
        )
