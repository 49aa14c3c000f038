class ECSTunnelError(Exception):
    pass


class NotFoundError(ECSTunnelError):
    """A stack, service or cluster resource does not exist."""


class ConfigMissingError(ECSTunnelError):
    """A stack is missing a parameter the lookup depends on."""


class NoAddressError(ECSTunnelError):
    """IPv6 was requested but the instance has no IPv6 address."""


class ConfigError(ECSTunnelError):
    pass
