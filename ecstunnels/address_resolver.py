import logging

from .exceptions import NoAddressError

logger = logging.getLogger(__name__)


class AddressResolver:
    def __init__(self, ec2_client, ipv6=False):
        self.ec2 = ec2_client
        self.ipv6 = ipv6

    def instance_address(self, instance):
        instance_id = instance.get("InstanceId")
        if not self.ipv6:
            # Instances without a public IPv4 address render as an empty host
            return instance.get("PublicIpAddress")

        interfaces = instance.get("NetworkInterfaces") or []
        addresses = interfaces[0].get("Ipv6Addresses") if interfaces else None
        if not addresses or not addresses[0].get("Ipv6Address"):
            raise NoAddressError(f"No IPv6 address for instance {instance_id}")
        return addresses[0]["Ipv6Address"]

    def resolve_addresses(self, instance_ids):
        """Map EC2 instance IDs to their public IPv4 or first IPv6 address."""
        addresses = {}
        if not instance_ids:
            return addresses

        response = self.ec2.describe_instances(InstanceIds=list(instance_ids))
        for reservation in response.get("Reservations", []):
            for instance in reservation.get("Instances", []):
                addresses[instance["InstanceId"]] = self.instance_address(instance)
        logger.debug("Resolved %d instance address(es)", len(addresses))
        return addresses

    def apply(self, host_groups):
        addresses = self.resolve_addresses(host_groups.instance_ids())
        for group in host_groups:
            if self.ipv6 and not addresses.get(group.instance_id):
                raise NoAddressError(
                    f"No IPv6 address for instance {group.instance_id}"
                )
            group.ip_address = addresses.get(group.instance_id)
        return host_groups
