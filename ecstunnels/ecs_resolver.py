import logging

from .exceptions import NotFoundError
from .host_groups import HostGroups

logger = logging.getLogger(__name__)

# DescribeTasks and DescribeContainerInstances accept at most 100 identifiers
DESCRIBE_BATCH_SIZE = 100


def _batches(items, size=DESCRIBE_BATCH_SIZE):
    for start in range(0, len(items), size):
        yield items[start : start + size]


class ECSResolver:
    def __init__(self, ecs_client):
        self.ecs = ecs_client

    def list_tasks(self, cluster, service_name):
        """Return the ARNs of all tasks currently belonging to a service."""
        paginator = self.ecs.get_paginator("list_tasks")
        task_arns = []
        for page in paginator.paginate(cluster=cluster, serviceName=service_name):
            task_arns.extend(page.get("taskArns", []))
        logger.debug(
            "Found %d task(s) for service %s on cluster %s",
            len(task_arns),
            service_name,
            cluster,
        )
        return task_arns

    def describe_tasks(self, cluster, task_arns):
        tasks = []
        for batch in _batches(task_arns):
            response = self.ecs.describe_tasks(cluster=cluster, tasks=batch)
            tasks.extend(response.get("tasks", []))
        return tasks

    @staticmethod
    def container_names(task):
        """
        Pair each container with the override at the same position to recover the
        name given in the task definition. ECS returns both lists in task
        definition order, there is no key linking them; if the data source ever
        reorders one of them the names end up on the wrong containers.
        """
        containers = task.get("containers", [])
        overrides = task.get("overrides", {}).get("containerOverrides", [])
        if len(overrides) != len(containers):
            logger.warning(
                "Task %s has %d container(s) but %d container override(s)",
                task.get("taskArn"),
                len(containers),
                len(overrides),
            )
        names = []
        for index, container in enumerate(containers):
            if index < len(overrides) and overrides[index].get("name"):
                names.append(overrides[index]["name"])
            else:
                names.append(container.get("name"))
        return names

    def collect_host_groups(self, cluster, task_arns, container_ports=None):
        """
        Group the network bindings of the given tasks by container instance. When
        container_ports is given, only bindings for those container ports are kept.
        """
        host_groups = HostGroups()
        if not task_arns:
            return host_groups

        for task in self.describe_tasks(cluster, task_arns):
            container_instance_arn = task.get("containerInstanceArn")
            if not container_instance_arn:
                logger.warning(
                    "Task %s is not placed on a container instance, skipping",
                    task.get("taskArn"),
                )
                continue

            names = self.container_names(task)
            for container, container_name in zip(task.get("containers", []), names):
                bindings = container.get("networkBindings")
                if not isinstance(bindings, list):
                    continue
                for binding in bindings:
                    container_port = binding.get("containerPort")
                    if (
                        container_ports is not None
                        and container_port not in container_ports
                    ):
                        continue
                    group = host_groups.get_or_create(container_instance_arn)
                    group.add_binding(
                        container_name, container_port, binding.get("hostPort")
                    )

        logger.debug("Bindings found on %d container instance(s)", len(host_groups))
        return host_groups

    def attach_instance_ids(self, cluster, host_groups):
        """Look up the EC2 instance behind every container instance in host_groups."""
        arns = host_groups.container_instance_arns()
        for batch in _batches(arns):
            response = self.ecs.describe_container_instances(
                cluster=cluster, containerInstances=batch
            )
            for container_instance in response.get("containerInstances", []):
                group = host_groups.get(container_instance["containerInstanceArn"])
                if group is not None:
                    group.instance_id = container_instance.get("ec2InstanceId")
            for failure in response.get("failures", []):
                logger.warning(
                    "Could not describe container instance %s: %s",
                    failure.get("arn"),
                    failure.get("reason"),
                )

        missing = [
            group.container_instance_arn for group in host_groups if not group.instance_id
        ]
        if missing:
            raise NotFoundError(
                "No EC2 instance found for container instance(s): " + ", ".join(missing)
            )
        return host_groups
