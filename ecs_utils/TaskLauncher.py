import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .RunConfig import RunConfig
from .exceptions import (
    ClusterNotFoundError,
    RepositoryNotFoundError,
    TaskNotStartedError,
)
from .utils import OUTPUT_LINK_HOURS, lifecycle_expiration_date, link_expiry

# Error codes S3 uses when HeadBucket finds no bucket
MISSING_BUCKET_CODES = ("404", "NoSuchBucket", "NotFound")
# Bucket exists but is in another region or owned by someone else
EXISTING_BUCKET_CODES = ("301", "403")


class Lookup(Enum):
    """Outcome of looking up an existing task definition"""
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class LaunchResult:
    """What a successful launch leaves behind"""
    task_arn: str
    task_definition_arn: str
    cluster_arn: str
    output_url: str
    expires_at: datetime


class TaskLauncher:
    """Launches the single task described by a RunConfig on ECS"""

    def __init__(
        self,
        config: RunConfig,
        ecs=None,
        ecr=None,
        s3=None,
    ):
        self.config = config
        self.ecs = ecs if ecs is not None else boto3.client("ecs")
        self.ecr = ecr if ecr is not None else boto3.client("ecr")
        self.s3 = s3 if s3 is not None else boto3.client("s3")

    def __repr__(self) -> str:
        return (f"TaskLauncher(task={self.config.task_name}, "
                f"cluster={self.config.cluster_name})")

    def launch(self) -> LaunchResult:
        """Run the whole launch sequence and return where output will land"""
        repository_uri = self.get_repository_uri(self.config.image_name)
        cluster = self.get_cluster(self.config.cluster_name)
        definition = self.get_task_definition(repository_uri)
        self.create_bucket(self.config.bucket_name)
        task = self.run_task(cluster, definition)
        output_url, expires_at = self.presign_output()
        return LaunchResult(
            task_arn=task["taskArn"],
            task_definition_arn=definition["taskDefinitionArn"],
            cluster_arn=cluster["clusterArn"],
            output_url=output_url,
            expires_at=expires_at,
        )

    def get_repository_uri(self, repository_name: str) -> str:
        """Get the URI of the one ECR repository with this exact name"""
        try:
            response = self.ecr.describe_repositories(
                repositoryNames=[repository_name]
            )
        except (ClientError, BotoCoreError) as e:
            raise RepositoryNotFoundError(repository_name) from e

        repositories = response.get("repositories", [])
        if len(repositories) != 1:
            raise RepositoryNotFoundError(repository_name)

        uri = repositories[0]["repositoryUri"]
        logging.info(f"Resolved repository {repository_name} to {uri}")
        return uri

    def get_cluster(self, cluster_name: str) -> Dict[str, Any]:
        """Get the one ECS cluster with this name"""
        response = self.ecs.describe_clusters(clusters=[cluster_name])
        clusters = response.get("clusters", [])
        if len(clusters) != 1:
            raise ClusterNotFoundError(cluster_name)

        cluster = clusters[0]
        logging.info(f"Resolved cluster {cluster_name} "
                     f"to {cluster['clusterArn']}")
        return cluster

    def lookup_task_definition(
        self,
    ) -> Tuple[Lookup, Optional[Dict[str, Any]]]:
        """Look up the latest task definition in the task's family.

        ECS answers an unknown family with a ClientException; any other
        failure is reported as Lookup.ERROR.
        """
        try:
            response = self.ecs.describe_task_definition(
                taskDefinition=self.config.task_name
            )
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "ClientException":
                return Lookup.NOT_FOUND, None
            logging.debug(f"DescribeTaskDefinition failed: {e}")
            return Lookup.ERROR, None
        except BotoCoreError as e:
            logging.debug(f"DescribeTaskDefinition failed: {e}")
            return Lookup.ERROR, None
        return Lookup.FOUND, response["taskDefinition"]

    def get_task_definition(self, repository_uri: str) -> Dict[str, Any]:
        """Reuse the task's definition family, registering it if absent.

        An existing definition is returned as-is, even if the config has
        since changed its CPU, memory or environment.
        """
        outcome, definition = self.lookup_task_definition()
        if outcome is Lookup.FOUND:
            logging.info(f"Reusing task definition "
                         f"{definition['taskDefinitionArn']}")
            return definition
        if outcome is Lookup.ERROR:
            logging.warning(f"Could not look up task definition "
                            f"{self.config.task_name}, registering a new one")

        response = self.ecs.register_task_definition(
            family=self.config.task_name,
            containerDefinitions=[
                {
                    "name": self.config.task_name,
                    "image": repository_uri,
                    "cpu": self.config.cpu_units,
                    "memory": self.config.memory_usage,
                    "environment": self.config.get_environment(),
                }
            ],
        )
        definition = response["taskDefinition"]
        logging.info(f"Registered task definition "
                     f"{definition['taskDefinitionArn']}")
        return definition

    def bucket_exists(self, bucket_name: str) -> bool:
        """Check whether a bucket exists, whoever owns it"""
        try:
            self.s3.head_bucket(Bucket=bucket_name)
        except ClientError as e:
            code = str(e.response.get("Error", {}).get("Code"))
            if code in MISSING_BUCKET_CODES:
                return False
            if code in EXISTING_BUCKET_CODES:
                return True
            raise
        return True

    def create_bucket(
        self, bucket_name: str, created_at: Optional[datetime] = None
    ) -> str:
        """Create the output bucket with an expiration rule, unless it exists.

        Existing buckets are left untouched, lifecycle included.
        """
        if self.bucket_exists(bucket_name):
            logging.info(f"Using existing bucket {bucket_name}")
            return bucket_name

        create_kwargs: Dict[str, Any] = {"Bucket": bucket_name}
        region = self.s3.meta.region_name
        if region and region != "us-east-1":
            create_kwargs["CreateBucketConfiguration"] = {
                "LocationConstraint": region
            }
        self.s3.create_bucket(**create_kwargs)

        created_at = created_at or datetime.now(timezone.utc)
        expiration = lifecycle_expiration_date(created_at)
        self.s3.put_bucket_lifecycle_configuration(
            Bucket=bucket_name,
            LifecycleConfiguration={
                "Rules": [
                    {
                        "ID": "deletion",
                        "Status": "Enabled",
                        "Filter": {"Prefix": ""},
                        "Expiration": {"Date": expiration},
                    }
                ]
            },
        )
        logging.info(f"Created bucket {bucket_name}, "
                     f"expiring {expiration.isoformat()}")
        return bucket_name

    def run_task(
        self, cluster: Dict[str, Any], definition: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Start exactly one instance of the task definition on the cluster"""
        request = {
            "cluster": cluster["clusterArn"],
            "taskDefinition": definition["taskDefinitionArn"],
            "count": 1,
        }
        response = self.ecs.run_task(**request)

        tasks = response.get("tasks", [])
        if len(tasks) != 1:
            raise TaskNotStartedError(request, response)

        logging.info(f"Started task {tasks[0]['taskArn']}")
        return tasks[0]

    def presign_output(
        self, issued_at: Optional[datetime] = None
    ) -> Tuple[str, datetime]:
        """Pre-signed GET link to the output object and its expiry time"""
        issued_at = issued_at or datetime.now(timezone.utc)
        url = self.s3.generate_presigned_url(
            "get_object",
            Params={
                "Bucket": self.config.bucket_name,
                "Key": self.config.output_filename,
            },
            ExpiresIn=OUTPUT_LINK_HOURS * 3600,
        )
        return url, link_expiry(issued_at)
