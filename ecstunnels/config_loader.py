import json
import os

import jsonschema

from .emitter import DEFAULT_SSH_USER, DEFAULT_START_PORT
from .exceptions import ConfigError

DEFAULT_CONFIG_PATH = os.path.join("~", ".ecstunnels.json")


class ConfigLoader:
    DEFAULTS = {
        "profile": None,
        "region": None,
        "ssh_user": DEFAULT_SSH_USER,
        "start_port": DEFAULT_START_PORT,
        "ipv6": False,
        "container_ports": None,
        "service_name": None,
        "cluster_stack_name": None,
    }

    SETTINGS = {
        "profile": {"type": "string"},
        "region": {"type": "string"},
        "ssh_user": {"type": "string", "minLength": 1},
        "start_port": {"type": "integer", "minimum": 1, "maximum": 65535},
        "ipv6": {"type": "boolean"},
        "container_ports": {
            "type": "array",
            "items": {"type": "integer", "minimum": 1, "maximum": 65535},
            "uniqueItems": True,
        },
    }

    SCHEMA = {
        "type": "object",
        "properties": {
            **SETTINGS,
            "stacks": {
                "type": "object",
                "additionalProperties": {
                    "type": "object",
                    "properties": {
                        **SETTINGS,
                        "service_name": {"type": "string"},
                        "cluster_stack_name": {"type": "string"},
                    },
                    "additionalProperties": False,
                },
            },
        },
        "additionalProperties": False,
    }

    def __init__(self, config_path=None):
        self.explicit = config_path is not None
        self.config_path = os.path.expanduser(config_path or DEFAULT_CONFIG_PATH)

    def validate_schema(self, config):
        try:
            jsonschema.validate(instance=config, schema=self.SCHEMA)
        except jsonschema.exceptions.ValidationError as e:
            raise ConfigError(f"Configuration validation failed: {e.message}")

    def read_config(self):
        """Load the JSON file, or an empty config when the default file is absent."""
        if not os.path.exists(self.config_path):
            if self.explicit:
                raise ConfigError(f"Config file not found: {self.config_path}")
            return {}

        with open(self.config_path, "r") as f:
            try:
                config = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Failed to parse JSON config: {e}")

        self.validate_schema(config)
        return config

    def fold_settings(self, config, stack_name, overrides=None):
        """
        Merge defaults, top level settings, the stack specific entry and the
        given overrides, later ones winning. None values in overrides are ignored.
        """
        settings = dict(self.DEFAULTS)
        for key in self.SETTINGS:
            if key in config:
                settings[key] = config[key]
        settings.update(config.get("stacks", {}).get(stack_name, {}))
        for key, value in (overrides or {}).items():
            if value is not None:
                settings[key] = value
        if settings["container_ports"] is not None:
            settings["container_ports"] = set(settings["container_ports"])
        return settings

    def load_settings(self, stack_name, overrides=None):
        return self.fold_settings(self.read_config(), stack_name, overrides)
