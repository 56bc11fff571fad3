import sys
from pathlib import Path

import boto3
import pytest

# Add the project root to the Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ecs_utils.RunConfig import RunConfig


def make_client(service: str, region: str = "us-east-1"):
    """A real boto3 client with dummy credentials, for use with Stubber"""
    return boto3.client(
        service,
        region_name=region,
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def config_dict():
    return {
        "clusterName": "my-eg",
        "taskName": "my-task",
        "imageName": "my-eg/primes",
        "bucketName": "my-eg-output",
        "outputFilename": "primes-output.txt",
        "cpuPercentage": 50,
        "memoryUsage": 128,
        "runEnvironment": {
            "takeN": 100,
            "takeEveryN": "10",
            "ignoreFirstN": 5,
        },
    }


@pytest.fixture
def run_config(config_dict):
    return RunConfig.from_dict(config_dict)


@pytest.fixture
def ecs_client():
    return make_client("ecs")


@pytest.fixture
def ecr_client():
    return make_client("ecr")


@pytest.fixture
def s3_client():
    return make_client("s3")
