"""
RAPIDS Notebook Stack

Runs the RAPIDS data science container (Jupyter plus Dask scheduler and
dashboard) on a GPU-backed ECS cluster:

- VPC spread across availability zones, fleet placed in public subnets
- Auto Scaling Group of GPU instances on the ECS-optimized GPU AMI
- ECS cluster bound to the fleet through a capacity provider
- EC2 task definition with GPU reservation and CloudWatch logging
- ECS service keeping one copy of the container running
"""

import logging
from typing import Any, Dict

from aws_cdk import (
    Stack,
    CfnOutput,
    RemovalPolicy,
    Tags,
    aws_autoscaling as autoscaling,
    aws_ec2 as ec2,
    aws_ecs as ecs,
    aws_logs as logs,
)
from constructs import Construct

from .config import (
    RETENTION_DAYS,
    SERVICE_PORTS,
    get_configuration,
    validate_configuration,
)

logger = logging.getLogger(__name__)


class RapidsNotebookStack(Stack):
    """
    GPU container cluster running a single RAPIDS notebook service.

    The notebook is reached directly on the instance's public IP. Only SSH
    is open by default; set the ``notebook_ingress_cidr`` context value to
    also open the notebook and Dask ports to a CIDR range.
    """

    def __init__(self, scope: Construct, construct_id: str, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        self.config: Dict[str, Any] = get_configuration(self.node)
        validate_configuration(self.config)

        self.vpc = self._create_vpc()
        self.security_group = self._create_security_group()
        self._configure_notebook_access()

        self.auto_scaling_group = self._create_auto_scaling_group()
        self.cluster = self._create_cluster()

        self.log_group = self._create_log_group()
        self.task_definition = self._create_task_definition()
        self.service = self._create_service()

        self._create_outputs()
        self._add_tags()

    def _create_vpc(self) -> ec2.Vpc:
        """Create a VPC with public and private subnets."""
        return ec2.Vpc(
            self,
            "EcsVpc",
            max_azs=self.config["max_azs"],
            nat_gateways=1,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name="Public",
                    subnet_type=ec2.SubnetType.PUBLIC,
                    cidr_mask=24,
                ),
                ec2.SubnetConfiguration(
                    name="Private",
                    subnet_type=ec2.SubnetType.PRIVATE_WITH_EGRESS,
                    cidr_mask=24,
                ),
            ],
        )

    def _create_security_group(self) -> ec2.SecurityGroup:
        """Create the fleet security group with SSH access."""
        sg = ec2.SecurityGroup(
            self,
            "NewSecurityGroup",
            vpc=self.vpc,
            description="Allow ssh access to ec2 instances",
            allow_all_outbound=True,
        )

        sg.add_ingress_rule(
            peer=ec2.Peer.ipv4(self.config["ssh_ingress_cidr"]),
            connection=ec2.Port.tcp(22),
            description="Allow SSH access",
        )

        return sg

    def _configure_notebook_access(self) -> None:
        """Open the notebook and Dask ports when a source CIDR is configured."""
        cidr = self.config["notebook_ingress_cidr"]
        if not cidr:
            return

        logger.warning("Notebook ports of %s are open to %s without authentication", self.stack_name, cidr)
        for port in SERVICE_PORTS:
            self.security_group.add_ingress_rule(
                peer=ec2.Peer.ipv4(cidr),
                connection=ec2.Port.tcp(port),
                description=f"Allow RAPIDS traffic on port {port}",
            )

    def _create_auto_scaling_group(self) -> autoscaling.AutoScalingGroup:
        """Create the fixed-size GPU fleet."""
        desired_capacity = self.config["desired_capacity"]

        return autoscaling.AutoScalingGroup(
            self,
            "EcsFleet",
            vpc=self.vpc,
            instance_type=ec2.InstanceType(self.config["instance_type"]),
            machine_image=ecs.EcsOptimizedImage.amazon_linux2(ecs.AmiHardwareType.GPU),
            min_capacity=desired_capacity,
            max_capacity=desired_capacity,
            desired_capacity=desired_capacity,
            key_name=self.config["key_name"],
            associate_public_ip_address=True,
            vpc_subnets=ec2.SubnetSelection(subnet_type=ec2.SubnetType.PUBLIC),
            security_group=self.security_group,
        )

    def _create_cluster(self) -> ecs.Cluster:
        """Create the ECS cluster and register the fleet as its capacity."""
        cluster = ecs.Cluster(self, "RapidsCluster", vpc=self.vpc)

        # Fleet size stays at desired_capacity; ECS does not scale it.
        self.capacity_provider = ecs.AsgCapacityProvider(
            self,
            "RapidsCapacityProvider",
            auto_scaling_group=self.auto_scaling_group,
            enable_managed_scaling=False,
            enable_managed_termination_protection=False,
        )
        cluster.add_asg_capacity_provider(self.capacity_provider)

        return cluster

    def _create_log_group(self) -> logs.LogGroup:
        """Create the CloudWatch log group for the container."""
        return logs.LogGroup(
            self,
            "RapidsLogGroup",
            retention=RETENTION_DAYS[self.config["log_retention_days"]],
            removal_policy=RemovalPolicy.DESTROY,
        )

    def _create_task_definition(self) -> ecs.Ec2TaskDefinition:
        """Create the task definition for the RAPIDS container."""
        task_definition = ecs.Ec2TaskDefinition(self, "RapidsTaskDefinition")

        self.container = task_definition.add_container(
            "RapidsContainer",
            image=ecs.ContainerImage.from_registry(self.config["container_image"]),
            command=list(self.config["container_command"]),
            memory_limit_mib=self.config["memory_limit_mib"],
            gpu_count=self.config["gpu_count"],
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=self.config["log_stream_prefix"],
                log_group=self.log_group,
            ),
        )

        # Notebook first: it is the port load balancer targets resolve to
        self.container.add_port_mappings(
            *[
                ecs.PortMapping(
                    container_port=port,
                    host_port=port,
                    protocol=ecs.Protocol.TCP,
                )
                for port in SERVICE_PORTS
            ]
        )

        return task_definition

    def _create_service(self) -> ecs.Ec2Service:
        """Create the ECS service running the notebook task."""
        # Host ports are fixed, so a replacement task can only start once
        # the old one has stopped.
        return ecs.Ec2Service(
            self,
            "RapidsService",
            cluster=self.cluster,
            task_definition=self.task_definition,
            desired_count=1,
            min_healthy_percent=0,
            max_healthy_percent=100,
        )

    def _create_outputs(self) -> None:
        """Create CloudFormation outputs for key resources."""
        CfnOutput(
            self,
            "ClusterName",
            value=self.cluster.cluster_name,
            description="Name of the ECS cluster",
        )

        CfnOutput(
            self,
            "ServiceName",
            value=self.service.service_name,
            description="Name of the ECS service",
        )

        CfnOutput(
            self,
            "AutoScalingGroupName",
            value=self.auto_scaling_group.auto_scaling_group_name,
            description="Name of the GPU Auto Scaling Group",
        )

    def _add_tags(self) -> None:
        """Add tags to all resources in the stack."""
        Tags.of(self).add("Project", "RapidsNotebook")
        Tags.of(self).add("Component", "GpuCompute")
