"""RunConfig.py
This module defines the RunConfig class, which is used to load and hold
the configuration of a single task run on ECS.
"""

import json
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Union

from .exceptions import ConfigFileError
from .utils import EnvValue, camel_to_upper_snake, coerce_env_value

# JSON field name -> (attribute name, expected type)
CONFIG_FIELDS = {
    "clusterName": ("cluster_name", str),
    "taskName": ("task_name", str),
    "imageName": ("image_name", str),
    "bucketName": ("bucket_name", str),
    "outputFilename": ("output_filename", str),
    "cpuPercentage": ("cpu_percentage", int),
    "memoryUsage": ("memory_usage", int),
    "runEnvironment": ("run_environment", dict),
}


@dataclass(frozen=True)
class RunConfig:
    """Container for all parameters of one task run"""
    cluster_name: str
    task_name: str
    image_name: str
    bucket_name: str
    output_filename: str
    cpu_percentage: int
    memory_usage: int
    run_environment: Dict[str, EnvValue] = field(default_factory=dict)

    def __post_init__(self):
        # Reject values that could never become environment variables
        for value in self.run_environment.values():
            coerce_env_value(value)

    @property
    def cpu_units(self) -> int:
        """CPU reservation in ECS units (1024 per vCPU), truncated"""
        return self.cpu_percentage * 1024 // 100

    def get_environment(self) -> List[Dict[str, str]]:
        """Container environment as ECS name/value pairs.

        The run environment comes first, keys converted to UPPER_SNAKE,
        followed by S3_BUCKET and S3_OUTPUT_KEY.
        """
        env = [
            {"name": camel_to_upper_snake(key), "value": coerce_env_value(value)}
            for key, value in self.run_environment.items()
        ]
        env.append({"name": "S3_BUCKET", "value": self.bucket_name})
        env.append({"name": "S3_OUTPUT_KEY", "value": self.output_filename})
        return env

    def to_dict(self) -> Dict[str, Any]:
        """Render as the camelCase mapping used in configuration files"""
        return {
            json_name: getattr(self, attr)
            for json_name, (attr, _) in CONFIG_FIELDS.items()
        }

    @classmethod
    def example(cls) -> "RunConfig":
        """Sample configuration shown in the usage message"""
        return cls(
            cluster_name="my-eg",
            task_name="my-task",
            image_name="my-eg/primes",
            bucket_name=str(uuid.uuid4()),
            output_filename="primes-output.txt",
            cpu_percentage=50,
            memory_usage=128,
            run_environment={
                "takeN": 100,
                "takeEveryN": 100,
                "ignoreFirstN": 100,
            },
        )

    @classmethod
    def from_dict(cls, data: Any, source: str = "<dict>") -> "RunConfig":
        """
        Build a RunConfig from a parsed configuration document.

        Parameters
        ----------
        data : Any
            Decoded JSON document; must be an object with exactly the
            fields in CONFIG_FIELDS.
        source : str
            Where the document came from, used in error messages.

        Raises
        ------
        ConfigFileError
            If the document does not match the configuration schema.
        ConfigValueError
            If a runEnvironment value is neither a string nor an integer.
        """
        if not isinstance(data, dict):
            raise ConfigFileError(
                source,
                ValueError(
                    f"expected a JSON object, got {type(data).__name__}"
                ),
            )

        missing = [name for name in CONFIG_FIELDS if name not in data]
        if missing:
            raise ConfigFileError(
                source, ValueError(f"missing field(s): {', '.join(missing)}")
            )
        unknown = sorted(set(data) - set(CONFIG_FIELDS))
        if unknown:
            raise ConfigFileError(
                source, ValueError(f"unknown field(s): {', '.join(unknown)}")
            )

        kwargs = {}
        for json_name, (attr, expected) in CONFIG_FIELDS.items():
            value = data[json_name]
            wrong_bool = expected is int and isinstance(value, bool)
            if wrong_bool or not isinstance(value, expected):
                raise ConfigFileError(
                    source,
                    TypeError(
                        f"field '{json_name}' should be {expected.__name__}, "
                        f"got {type(value).__name__}"
                    ),
                )
            kwargs[attr] = value

        if not 0 <= kwargs["cpu_percentage"] <= 100:
            raise ConfigFileError(
                source,
                ValueError(
                    "field 'cpuPercentage' must be between 0 and 100, "
                    f"got {kwargs['cpu_percentage']}"
                ),
            )
        if kwargs["memory_usage"] < 0:
            raise ConfigFileError(
                source,
                ValueError(
                    "field 'memoryUsage' must not be negative, "
                    f"got {kwargs['memory_usage']}"
                ),
            )

        return cls(**kwargs)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "RunConfig":
        """Load a RunConfig from a JSON file"""
        try:
            with open(path, "r") as config_file:
                data = json.load(config_file)
        except (OSError, ValueError) as e:
            raise ConfigFileError(str(path), e) from e
        return cls.from_dict(data, source=str(path))
