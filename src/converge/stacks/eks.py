"""Managed Kubernetes cluster stack: network, roles, control plane and worker capacity."""

from .builder import StackBuilder
from ..resources.kinds import ResourceKind

DEFAULT_CLUSTER_NAME = "eks-cluster-test"


def eks_cluster_stack(cluster_name: str = DEFAULT_CLUSTER_NAME) -> StackBuilder:
    """
    Declare a cluster with a two-AZ VPC and one auto-scaling node group.
    
    Args:
        cluster_name: EKS cluster name
        
    Returns:
        StackBuilder with outputs ``clusterRole`` (cluster ARN) and ``clusterName``
    """
    stack = StackBuilder()
    
    vpc = stack.add(
        ResourceKind.NETWORK, "eks-vpc",
        cidr="10.0.0.0/16",
        nat_gateways=1,
        max_azs=2,
        subnet_configuration=[
            {"subnet_type": "PUBLIC", "name": "eks-cluster-public"},
            {"subnet_type": "PRIVATE", "name": "eks-cluster-private"},
        ],
    )
    
    cluster_role = stack.add(
        ResourceKind.ROLE, "eks-cluster-role",
        assumed_by={"service": "eks.amazonaws.com"},
        managed_policies=["AmazonEKSServicePolicy", "AmazonEKSClusterPolicy"],
        inline_policy=[{
            "actions": ["elasticloadbalancing:*", "ec2:CreateSecurityGroup", "ec2:Describe*"],
            "resources": ["*"],
        }],
    )
    
    admin_role = stack.add(
        ResourceKind.ROLE, "eks-cluster-admin-role",
        role_name="kubernetesAdmin",
        assumed_by={"account_root": True},
    )
    
    cluster = stack.add(
        ResourceKind.CLUSTER, cluster_name,
        cluster_name=cluster_name,
        vpc_id=vpc.ref("vpc_id"),
        subnet_ids=vpc.ref("private_subnet_ids"),
        role_arn=cluster_role.ref("arn"),
        masters_role_arn=admin_role.ref("arn"),
        default_capacity=0,
    )
    
    stack.add(
        ResourceKind.NODE_GROUP, f"{cluster_name}-asg",
        cluster_name=cluster.ref("name"),
        instance_type="t3.large",
        machine_image={"type": "eks-optimized", "node_type": "STANDARD"},
        min_capacity=1,
        max_capacity=2,
        desired_capacity=1,
        update_type="ROLLING_UPDATE",
        subnet_ids=vpc.ref("private_subnet_ids"),
    )
    
    stack.output("clusterRole", cluster.ref("arn"))
    stack.output("clusterName", cluster_name)
    return stack
