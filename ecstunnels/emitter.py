import sys

from .exceptions import ECSTunnelError

DEFAULT_START_PORT = 49152
DEFAULT_SSH_USER = "ec2-user"
MAX_PORT = 65535


class CommandEmitter:
    """Renders one ssh command per host group followed by its port legend."""

    def __init__(self, start_port=DEFAULT_START_PORT, ssh_user=DEFAULT_SSH_USER):
        self.start_port = start_port
        self.ssh_user = ssh_user

    def render(self, host_groups):
        lines = []
        # Shared across host groups so every local port is used only once
        port = self.start_port
        for group in host_groups:
            command = "ssh"
            for host_port in group.ports.values():
                if port > MAX_PORT:
                    raise ECSTunnelError(
                        f"Ran out of local ports starting from {self.start_port}"
                    )
                command += f" -L{port}:localhost:{host_port}"
                port += 1
            command += f" {self.ssh_user}@{group.ip_address or ''}"
            lines.append(command)

            for host_port, container in group.by_host_port.items():
                name = container["container_name"]
                lines.append(f"{host_port}\t{name}:{container['container_port']}")
        return lines

    def emit(self, host_groups, out=None):
        if out is None:
            out = sys.stdout
        for line in self.render(host_groups):
            print(line, file=out)
