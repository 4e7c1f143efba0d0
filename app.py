#!/usr/bin/env python3
"""
CDK Python application for a RAPIDS GPU notebook on Amazon ECS.

This application deploys the RAPIDS data science container on GPU instances
in two variants:
- EcsNvidiaRapidsDemoStack: the notebook on a public instance, SSH access only
- EcsNvidiaRapidsSecureStack: the same cluster behind an HTTPS load balancer
  with Cognito authentication and a Route 53 alias record

The secure variant reads its hostname, certificate and user pool settings
from SSM Parameter Store, so it is only synthesized for a concrete account.
"""

import logging
import os
from typing import Any, Dict, List, Optional

from aws_cdk import App, Aspects, Environment, Stack, Tags
from cdk_nag import AwsSolutionsChecks, NagPackSuppression, NagSuppressions

from stacks import RapidsNotebookStack, SecureRapidsNotebookStack
from stacks.config import get_configuration

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

NAG_SUPPRESSIONS = [
    NagPackSuppression(
        id="AwsSolutions-VPC7",
        reason="Demo VPC without flow logs; no production traffic crosses it.",
    ),
    NagPackSuppression(
        id="AwsSolutions-EC23",
        reason="SSH and the HTTPS listener are intentionally reachable from the internet.",
    ),
    NagPackSuppression(
        id="AwsSolutions-IAM4",
        reason="ECS instance and task execution roles use the AWS managed policies.",
    ),
    NagPackSuppression(
        id="AwsSolutions-IAM5",
        reason="Wildcard permissions are generated by CDK for the ECS agent and log delivery.",
    ),
    NagPackSuppression(
        id="AwsSolutions-AS3",
        reason="The fleet has a fixed size; scaling notifications are not needed.",
    ),
    NagPackSuppression(
        id="AwsSolutions-EC26",
        reason="Instance root volumes hold no data beyond the container image.",
    ),
    NagPackSuppression(
        id="AwsSolutions-ECS4",
        reason="Container Insights is not required for a single notebook task.",
    ),
    NagPackSuppression(
        id="AwsSolutions-ELB2",
        reason="Load balancer access logs are not collected for the notebook endpoint.",
    ),
]


def _add_nag_suppressions(stacks: List[Stack]) -> None:
    for stack in stacks:
        NagSuppressions.add_stack_suppressions(stack, NAG_SUPPRESSIONS)


def create_app(context: Optional[Dict[str, Any]] = None) -> App:
    """
    Build the CDK application without synthesizing it

    Resolves the target environment, creates the notebook stacks and applies
    cdk-nag AwsSolutions checks unless ``enable_cdk_nag`` is false.

    Args:
        context: Extra context values, merged over cdk.json and ``-c`` values

    Returns:
        The configured App
    """
    app = App(context=context)

    account = app.node.try_get_context("account") or os.environ.get("CDK_DEFAULT_ACCOUNT")
    region = app.node.try_get_context("region") or os.environ.get("CDK_DEFAULT_REGION") or "us-east-1"

    env = Environment(account=account, region=region) if account else None
    logger.info("Synthesizing for account=%s region=%s", account or "<unresolved>", region)

    stacks: List[Stack] = [
        RapidsNotebookStack(
            app,
            "EcsNvidiaRapidsDemoStack",
            env=env,
            description="RAPIDS GPU notebook on Amazon ECS",
        )
    ]

    if env is not None:
        stacks.append(
            SecureRapidsNotebookStack(
                app,
                "EcsNvidiaRapidsSecureStack",
                env=env,
                description="RAPIDS GPU notebook on Amazon ECS behind Cognito-authenticated HTTPS",
            )
        )
    else:
        logger.warning(
            "No AWS account configured; skipping EcsNvidiaRapidsSecureStack "
            "(set CDK_DEFAULT_ACCOUNT or -c account=...)"
        )

    Tags.of(app).add("Project", "RapidsNotebook")
    Tags.of(app).add("ManagedBy", "CDK")

    if get_configuration(app.node)["enable_cdk_nag"]:
        Aspects.of(app).add(AwsSolutionsChecks(verbose=True))
        _add_nag_suppressions(stacks)
    else:
        logger.info("cdk-nag checks disabled")

    logger.info("Stacks: %s", ", ".join(stack.stack_name for stack in stacks))
    return app


def main() -> None:
    """Main application entry point"""
    create_app().synth()


if __name__ == "__main__":
    main()
