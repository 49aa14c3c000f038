class HostGroup:
    """All port bindings published on one ECS container instance."""

    def __init__(self, container_instance_arn):
        self.container_instance_arn = container_instance_arn
        # container port -> host port; a repeated container port overwrites
        self.ports = {}
        # host port -> {"container_name": ..., "container_port": ...}
        self.by_host_port = {}
        self.instance_id = None
        self.ip_address = None

    def add_binding(self, container_name, container_port, host_port):
        self.ports[container_port] = host_port
        self.by_host_port[host_port] = {
            "container_name": container_name,
            "container_port": container_port,
        }


class HostGroups:
    """Host groups for one resolution run, kept in discovery order."""

    def __init__(self):
        self.groups = {}

    def get_or_create(self, container_instance_arn):
        if container_instance_arn not in self.groups:
            self.groups[container_instance_arn] = HostGroup(container_instance_arn)
        return self.groups[container_instance_arn]

    def get(self, container_instance_arn):
        return self.groups.get(container_instance_arn)

    def container_instance_arns(self):
        return list(self.groups.keys())

    def instance_ids(self):
        ids = []
        for group in self.groups.values():
            if group.instance_id and group.instance_id not in ids:
                ids.append(group.instance_id)
        return ids

    def __iter__(self):
        return iter(self.groups.values())

    def __len__(self):
        return len(self.groups)
