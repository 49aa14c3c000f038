import logging

from botocore.exceptions import ClientError

from .exceptions import NotFoundError, ConfigMissingError

logger = logging.getLogger(__name__)

ECS_SERVICE_TYPE = "AWS::ECS::Service"
CLUSTER_LOGICAL_ID = "cluster"
CLUSTER_STACK_PARAMETER = "ClusterStackName"


class StackResolver:
    """Resolves ECS service and cluster names from CloudFormation stacks."""

    def __init__(self, cloudformation_client):
        self.cloudformation = cloudformation_client

    def _describe_stack_resources(self, stack_name, logical_id=None):
        params = {"StackName": stack_name}
        if logical_id:
            params["LogicalResourceId"] = logical_id
        try:
            response = self.cloudformation.describe_stack_resources(**params)
        except ClientError as error:
            if error.response["Error"]["Code"] == "ValidationError":
                raise NotFoundError(f"Stack '{stack_name}' not found") from error
            raise
        return response.get("StackResources", [])

    def resolve_service_name(self, stack_name, service_name=None):
        """
        Return the physical ECS service name in a stack. With a logical name the
        matching resource is used, otherwise the first AWS::ECS::Service found.
        """
        resources = self._describe_stack_resources(stack_name, service_name)
        if service_name:
            matches = [
                r for r in resources if r.get("LogicalResourceId") == service_name
            ]
            if not matches:
                raise NotFoundError(
                    f"Service '{service_name}' not found in stack '{stack_name}'"
                )
            physical_id = matches[0]["PhysicalResourceId"]
        else:
            for resource in resources:
                if resource.get("ResourceType") == ECS_SERVICE_TYPE:
                    physical_id = resource["PhysicalResourceId"]
                    break
            else:
                raise NotFoundError(f"Service not found in stack '{stack_name}'")

        logger.debug("Stack %s resolved to service %s", stack_name, physical_id)
        return physical_id

    def resolve_cluster_stack_name(self, stack_name):
        try:
            response = self.cloudformation.describe_stacks(StackName=stack_name)
        except ClientError as error:
            if error.response["Error"]["Code"] == "ValidationError":
                raise NotFoundError(f"Stack '{stack_name}' not found") from error
            raise

        stacks = response.get("Stacks", [])
        if not stacks:
            raise NotFoundError(f"Stack '{stack_name}' not found")

        for param in stacks[0].get("Parameters", []):
            if param.get("ParameterKey") == CLUSTER_STACK_PARAMETER:
                value = param.get("ParameterValue")
                if value:
                    return value
                break
        raise ConfigMissingError(
            f"Cluster stack parameter '{CLUSTER_STACK_PARAMETER}' not found "
            f"in stack '{stack_name}'"
        )

    def resolve_cluster_name(self, cluster_stack_name):
        resources = self._describe_stack_resources(
            cluster_stack_name, CLUSTER_LOGICAL_ID
        )
        if not resources:
            raise NotFoundError(f"Cluster stack '{cluster_stack_name}' not found")
        cluster_name = resources[0]["PhysicalResourceId"]
        logger.debug(
            "Cluster stack %s resolved to cluster %s", cluster_stack_name, cluster_name
        )
        return cluster_name

    def resolve_cluster_from_service_stack(self, stack_name):
        cluster_stack_name = self.resolve_cluster_stack_name(stack_name)
        logger.debug("Stack %s uses cluster stack %s", stack_name, cluster_stack_name)
        return self.resolve_cluster_name(cluster_stack_name)
