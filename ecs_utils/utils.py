import re
from datetime import datetime, timedelta, timezone
from typing import Union

from .exceptions import ConfigValueError

EnvValue = Union[str, int]

BUCKET_RETENTION_DAYS = 2
OUTPUT_LINK_HOURS = 24

_WORD_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


# Environment utilities
def camel_to_upper_snake(key: str) -> str:
    """Convert a lowerCamel key to UPPER_SNAKE, e.g. ignoreFirstN -> IGNORE_FIRST_N"""
    return _WORD_BOUNDARY.sub("_", key).upper()


def coerce_env_value(value: EnvValue) -> str:
    """Render a str or int environment value as a string"""
    # bool is an int subclass but JSON true/false is not a valid value here
    if isinstance(value, bool):
        raise ConfigValueError(value)
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    raise ConfigValueError(value)


# Date utilities
def utc_midnight(instant: datetime) -> datetime:
    """Truncate an instant to 00:00 UTC of the same UTC day"""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    instant = instant.astimezone(timezone.utc)
    return instant.replace(hour=0, minute=0, second=0, microsecond=0)


def lifecycle_expiration_date(created_at: datetime) -> datetime:
    """
    Fixed expiration date for a newly created output bucket.

    S3 only accepts expiration dates at midnight UTC, so the creation
    instant is truncated to its UTC day before adding the retention period.

    Args:
        created_at: Bucket creation time. Naive datetimes are taken as UTC.

    Returns:
        Timezone-aware UTC datetime, BUCKET_RETENTION_DAYS after the
        creation day.
    """
    return utc_midnight(created_at) + timedelta(days=BUCKET_RETENTION_DAYS)


def link_expiry(issued_at: datetime) -> datetime:
    """Expiry time of a pre-signed output link issued at issued_at"""
    return issued_at + timedelta(hours=OUTPUT_LINK_HOURS)


# Usage text
def build_usage(example_json: str) -> str:
    """Build the CLI usage message around a pretty-printed example config"""
    lines = [
        "",
        "run-ecs takes one argument, the filename of a JSON configuration "
        "file, an example of which follows.",
        "The filename should be relative to the current directory.",
        "",
        "For example,",
        "",
        "\trun-ecs primes-config.json",
        "",
        "A sample JSON configuration might be",
        "",
        example_json,
        "",
        "The properties of this file are:",
        "",
        "\t* clusterName - the identifier used when creating the VPC",
        "\t* taskName - an identifier for this task. If a task definition "
        "with this name has already been created,",
        "\t\tit will be re-used with the original configuration, useful for "
        "instance if the docker image has been updated.",
        "\t* imageName - the name of the image repository, e.g. my-eg/primes.",
        "\t\tThe :latest tagged version of this image will always be used.",
        "\t* bucketName - the name of an S3 bucket, within this AWS account, "
        "to write any output to.",
        f"\t\tIf a bucket with this name doesn't exist, it will be created, "
        f"with a {BUCKET_RETENTION_DAYS} day deletion time.",
        "\t* outputFilename - the name of the output, when written to S3.",
        "\t* cpuPercentage - the percentage of a single instance CPU to reserve.",
        "\t* memoryUsage - the memory in MiB to allocate.",
        "\t* runEnvironment - environment variables to pass to the docker "
        "instance. In this example,",
        "\t\tvariables TAKE_N, TAKE_EVERY_N and IGNORE_FIRST_N would be set.",
        "",
        "",
        "The output from running this will include a URL to the bucket "
        "output, which can be shared",
        " without need for any AWS credentials.",
    ]
    return "\n".join(lines)
