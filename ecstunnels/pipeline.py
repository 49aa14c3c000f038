import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

from .address_resolver import AddressResolver
from .ecs_resolver import ECSResolver
from .emitter import CommandEmitter, DEFAULT_SSH_USER, DEFAULT_START_PORT
from .stack_resolver import StackResolver

logger = logging.getLogger(__name__)


class TunnelPipeline:
    """
    Resolves the container instances behind an ECS service deployed with
    CloudFormation and prints ssh port forwarding commands for them.

    The service and cluster lookups run concurrently; everything after the join
    happens on the calling thread, which is the only place host groups are
    modified.
    """

    def __init__(
        self,
        cloudformation_client,
        ecs_client,
        ec2_client,
        container_ports=None,
        ipv6: bool = False,
        start_port: int = DEFAULT_START_PORT,
        ssh_user: str = DEFAULT_SSH_USER,
    ):
        self.stack_resolver = StackResolver(cloudformation_client)
        self.ecs_resolver = ECSResolver(ecs_client)
        self.address_resolver = AddressResolver(ec2_client, ipv6=ipv6)
        self.emitter = CommandEmitter(start_port=start_port, ssh_user=ssh_user)
        self.container_ports = (
            set(container_ports) if container_ports is not None else None
        )

    @classmethod
    def from_session(cls, session, **kwargs):
        return cls(
            session.client("cloudformation"),
            session.client("ecs"),
            session.client("ec2"),
            **kwargs,
        )

    def _resolve_service_and_cluster(
        self, stack_name, service_name, cluster_stack_name
    ):
        executor = ThreadPoolExecutor(max_workers=2)
        try:
            service_future = executor.submit(
                self.stack_resolver.resolve_service_name, stack_name, service_name
            )
            if cluster_stack_name:
                cluster_future = executor.submit(
                    self.stack_resolver.resolve_cluster_name, cluster_stack_name
                )
            else:
                cluster_future = executor.submit(
                    self.stack_resolver.resolve_cluster_from_service_stack, stack_name
                )

            futures = [service_future, cluster_future]
            done, _ = wait(futures, return_when=FIRST_EXCEPTION)
            for future in futures:
                if future in done and future.exception() is not None:
                    raise future.exception()
            return service_future.result(), cluster_future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def resolve(self, stack_name, service_name=None, cluster_stack_name=None):
        """Return the host groups of the service, each with its address filled in."""
        service, cluster = self._resolve_service_and_cluster(
            stack_name, service_name, cluster_stack_name
        )
        logger.debug("Resolving tasks of service %s on cluster %s", service, cluster)

        task_arns = self.ecs_resolver.list_tasks(cluster, service)
        host_groups = self.ecs_resolver.collect_host_groups(
            cluster, task_arns, self.container_ports
        )
        if len(host_groups) == 0:
            logger.debug("No port bindings found for service %s", service)
            return host_groups

        self.ecs_resolver.attach_instance_ids(cluster, host_groups)
        return self.address_resolver.apply(host_groups)

    def run(self, stack_name, service_name=None, cluster_stack_name=None, out=None):
        host_groups = self.resolve(stack_name, service_name, cluster_stack_name)
        self.emitter.emit(host_groups, out=out)
        return host_groups
