import os

import yaml

_MISSING = object()


class ConfigLoader:
    def __init__(self, config_file="config/navmesh.yaml"):
        self.config = {}
        if os.path.exists(config_file):
            with open(config_file, "r", encoding="utf-8") as f:
                self.config = yaml.safe_load(f) or {}

    @classmethod
    def from_mapping(cls, mapping):
        """Build a loader around an already parsed configuration mapping."""
        loader = cls.__new__(cls)
        loader.config = dict(mapping)
        return loader

    def get(self, *keys, default=_MISSING):
        """
        Fetch a value from the configuration.
        When a key path does not exist:
          - raises KeyError if no default was supplied
          - returns the default otherwise
        """
        ref = self.config
        for key in keys:
            if isinstance(ref, dict) and key in ref:
                ref = ref[key]
            else:
                if default is not _MISSING:
                    return default
                raise KeyError(f"Configuration key {' -> '.join(keys)} not found and no default provided.")
        return ref
