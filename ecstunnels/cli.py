import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError

from .aws_sessions import AWSSessions
from .config_loader import ConfigLoader
from .exceptions import ECSTunnelError
from .pipeline import TunnelPipeline

logger = logging.getLogger(__name__)


def port_set(value):
    ports = set()
    for part in value.split(","):
        try:
            ports.add(int(part.strip()))
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid port: '{part}'")
    return ports


def build_parser():
    parser = argparse.ArgumentParser(
        prog="ecstunnels",
        usage="%(prog)s [options] stack-name",
        description="Print ssh port forwarding commands for the containers "
        "of an ECS service deployed with CloudFormation.",
    )
    parser.add_argument("stack_name", help="The service stack name")
    parser.add_argument(
        "-p", "--container-ports", type=port_set, help="Limit container ports"
    )
    parser.add_argument(
        "-s", "--service-name", help="The service to get containers for"
    )
    parser.add_argument(
        "-c",
        "--cluster-stack-name",
        help="Which cluster stack to get container instances for",
    )
    parser.add_argument(
        "-6",
        "--ipv6",
        action="store_true",
        default=None,
        help="Attempt to get IPv6 addresses for the container instances",
    )
    parser.add_argument("--profile", help="AWS profile to use")
    parser.add_argument("--region", help="AWS region to use")
    parser.add_argument("--config", help="Path to a JSON config file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log resolution steps"
    )
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        settings = ConfigLoader(args.config).load_settings(
            args.stack_name,
            {
                "profile": args.profile,
                "region": args.region,
                "ipv6": args.ipv6,
                "container_ports": args.container_ports,
                "service_name": args.service_name,
                "cluster_stack_name": args.cluster_stack_name,
            },
        )
        session = AWSSessions().get_session(
            profile_name=settings["profile"], region_name=settings["region"]
        )
        pipeline = TunnelPipeline.from_session(
            session,
            container_ports=settings["container_ports"],
            ipv6=settings["ipv6"],
            start_port=settings["start_port"],
            ssh_user=settings["ssh_user"],
        )
        pipeline.run(
            args.stack_name,
            service_name=settings["service_name"],
            cluster_stack_name=settings["cluster_stack_name"],
        )
    except (ECSTunnelError, ClientError, BotoCoreError) as e:
        logger.debug("Resolution failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
