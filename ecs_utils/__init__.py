from .exceptions import (
    ClusterNotFoundError,
    ConfigFileError,
    ConfigValueError,
    RepositoryNotFoundError,
    RunEcsError,
    TaskNotStartedError,
)
from .RunConfig import RunConfig
from .TaskLauncher import LaunchResult, Lookup, TaskLauncher
