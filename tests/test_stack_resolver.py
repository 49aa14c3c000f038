import pytest
from unittest.mock import MagicMock

from botocore.exceptions import ClientError

from ecstunnels.stack_resolver import StackResolver
from ecstunnels.exceptions import NotFoundError, ConfigMissingError


def validation_error(operation):
    return ClientError(
        {"Error": {"Code": "ValidationError", "Message": "Stack does not exist"}},
        operation,
    )


class TestStackResolver:
    def test_resolve_service_name_first_ecs_service(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {
            "StackResources": [
                {
                    "LogicalResourceId": "role",
                    "PhysicalResourceId": "svc-A-role",
                    "ResourceType": "AWS::IAM::Role",
                },
                {
                    "LogicalResourceId": "service",
                    "PhysicalResourceId": "svc-A-service-1234",
                    "ResourceType": "AWS::ECS::Service",
                },
                {
                    "LogicalResourceId": "worker",
                    "PhysicalResourceId": "svc-A-worker-5678",
                    "ResourceType": "AWS::ECS::Service",
                },
            ]
        }
        resolver = StackResolver(mock_cf)

        assert resolver.resolve_service_name("svc-A") == "svc-A-service-1234"
        mock_cf.describe_stack_resources.assert_called_once_with(StackName="svc-A")

    def test_resolve_service_name_no_ecs_service(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {
            "StackResources": [
                {
                    "LogicalResourceId": "role",
                    "PhysicalResourceId": "svc-A-role",
                    "ResourceType": "AWS::IAM::Role",
                }
            ]
        }
        resolver = StackResolver(mock_cf)

        with pytest.raises(NotFoundError, match="Service not found"):
            resolver.resolve_service_name("svc-A")

    def test_resolve_service_name_by_logical_id(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {
            "StackResources": [
                {
                    "LogicalResourceId": "worker",
                    "PhysicalResourceId": "svc-A-worker-5678",
                    "ResourceType": "AWS::ECS::Service",
                }
            ]
        }
        resolver = StackResolver(mock_cf)

        assert resolver.resolve_service_name("svc-A", "worker") == "svc-A-worker-5678"
        mock_cf.describe_stack_resources.assert_called_once_with(
            StackName="svc-A", LogicalResourceId="worker"
        )

    def test_resolve_service_name_logical_id_missing(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {"StackResources": []}
        resolver = StackResolver(mock_cf)

        with pytest.raises(NotFoundError, match="Service 'worker' not found"):
            resolver.resolve_service_name("svc-A", "worker")

    def test_resolve_service_name_stack_missing(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.side_effect = validation_error(
            "DescribeStackResources"
        )
        resolver = StackResolver(mock_cf)

        with pytest.raises(NotFoundError, match="Stack 'svc-A' not found"):
            resolver.resolve_service_name("svc-A")

    def test_other_client_errors_propagate(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "Denied"}},
            "DescribeStackResources",
        )
        resolver = StackResolver(mock_cf)

        with pytest.raises(ClientError):
            resolver.resolve_service_name("svc-A")

    def test_resolve_cluster_stack_name(self):
        mock_cf = MagicMock()
        mock_cf.describe_stacks.return_value = {
            "Stacks": [
                {
                    "Parameters": [
                        {"ParameterKey": "Image", "ParameterValue": "nginx"},
                        {"ParameterKey": "ClusterStackName", "ParameterValue": "cluster-A"},
                    ]
                }
            ]
        }
        resolver = StackResolver(mock_cf)

        assert resolver.resolve_cluster_stack_name("svc-A") == "cluster-A"
        mock_cf.describe_stacks.assert_called_once_with(StackName="svc-A")

    def test_resolve_cluster_stack_name_no_stacks(self):
        mock_cf = MagicMock()
        mock_cf.describe_stacks.return_value = {"Stacks": []}
        resolver = StackResolver(mock_cf)

        with pytest.raises(NotFoundError, match="Stack 'svc-A' not found"):
            resolver.resolve_cluster_stack_name("svc-A")

    def test_resolve_cluster_stack_name_parameter_missing(self):
        mock_cf = MagicMock()
        mock_cf.describe_stacks.return_value = {
            "Stacks": [
                {"Parameters": [{"ParameterKey": "Image", "ParameterValue": "nginx"}]}
            ]
        }
        resolver = StackResolver(mock_cf)

        with pytest.raises(ConfigMissingError, match="ClusterStackName"):
            resolver.resolve_cluster_stack_name("svc-A")

    def test_resolve_cluster_stack_name_without_parameters(self):
        mock_cf = MagicMock()
        mock_cf.describe_stacks.return_value = {"Stacks": [{}]}
        resolver = StackResolver(mock_cf)

        with pytest.raises(ConfigMissingError):
            resolver.resolve_cluster_stack_name("svc-A")

    def test_resolve_cluster_name(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {
            "StackResources": [
                {
                    "LogicalResourceId": "cluster",
                    "PhysicalResourceId": "i-cluster-phys",
                    "ResourceType": "AWS::ECS::Cluster",
                }
            ]
        }
        resolver = StackResolver(mock_cf)

        assert resolver.resolve_cluster_name("cluster-A") == "i-cluster-phys"
        mock_cf.describe_stack_resources.assert_called_once_with(
            StackName="cluster-A", LogicalResourceId="cluster"
        )

    def test_resolve_cluster_name_no_resources(self):
        mock_cf = MagicMock()
        mock_cf.describe_stack_resources.return_value = {"StackResources": []}
        resolver = StackResolver(mock_cf)

        with pytest.raises(NotFoundError, match="Cluster stack 'cluster-A' not found"):
            resolver.resolve_cluster_name("cluster-A")

    def test_resolve_cluster_from_service_stack(self):
        mock_cf = MagicMock()
        mock_cf.describe_stacks.return_value = {
            "Stacks": [
                {
                    "Parameters": [
                        {"ParameterKey": "ClusterStackName", "ParameterValue": "cluster-A"}
                    ]
                }
            ]
        }
        mock_cf.describe_stack_resources.return_value = {
            "StackResources": [
                {"LogicalResourceId": "cluster", "PhysicalResourceId": "i-cluster-phys"}
            ]
        }
        resolver = StackResolver(mock_cf)

        assert resolver.resolve_cluster_from_service_stack("svc-A") == "i-cluster-phys"
        mock_cf.describe_stack_resources.assert_called_once_with(
            StackName="cluster-A", LogicalResourceId="cluster"
        )
