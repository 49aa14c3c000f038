import logging

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    NoCredentialsError,
    PartialCredentialsError,
)

from .exceptions import ECSTunnelError


class AWSSessions:
    def __init__(self):
        # botocore logs every credential lookup at INFO otherwise,
        # see https://github.com/boto/botocore/issues/1841
        boto3.set_stream_logger(name="botocore.credentials", level=logging.ERROR)

        self.sessions = {}
        self.default_session = None

    def get_session(self, profile_name=None, region_name=None):
        if profile_name is None:
            if not self.default_session:
                self.default_session = self.create_session(region_name=region_name)
            return self.default_session
        if profile_name not in self.sessions:
            self.sessions[profile_name] = self.create_session(
                profile_name=profile_name, region_name=region_name
            )
        return self.sessions.get(profile_name)

    def create_session(self, profile_name=None, region_name=None):
        kwargs = {}
        if profile_name is not None:
            kwargs["profile_name"] = profile_name
        if region_name is not None:
            kwargs["region_name"] = region_name
        try:
            session = boto3.Session(**kwargs)
            sts = session.client("sts")
            sts.get_caller_identity()
            return session
        except (
            NoCredentialsError,
            PartialCredentialsError,
            ClientError,
            BotoCoreError,
        ) as e:
            raise ECSTunnelError(
                f"Failed to create AWS session with profile '{profile_name}': {e}"
            ) from e
