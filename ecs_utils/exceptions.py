"""Errors raised while loading a run configuration or launching its task.

Every error is fatal for the run; none of them are caught inside the
package.
"""

from typing import Any, Dict


class RunEcsError(RuntimeError):
    """Base class for all run-ecs errors"""


class ConfigFileError(RunEcsError):
    """The configuration file could not be read or mapped onto RunConfig"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(f"Couldn't parse config file {path}: {cause}")


class ConfigValueError(RunEcsError):
    """An environment value is neither a string nor an integer"""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(
            f"Couldn't parse config file, the value {value!r} of type "
            f"{type(value).__name__} couldn't be converted into a string "
            "or integer environment value."
        )


class RepositoryNotFoundError(RunEcsError):
    def __init__(self, repository_name: str):
        self.repository_name = repository_name
        super().__init__(f"Couldn't find repository '{repository_name}'")


class ClusterNotFoundError(RunEcsError):
    def __init__(self, cluster_name: str):
        self.cluster_name = cluster_name
        super().__init__(f"Couldn't find cluster '{cluster_name}'")


class TaskNotStartedError(RunEcsError):
    """RunTask did not report exactly one started task"""

    def __init__(self, request: Dict[str, Any], response: Dict[str, Any]):
        self.request = request
        self.response = response
        super().__init__(
            f"Tasks returned for request {request} didn't start? {response}"
        )
