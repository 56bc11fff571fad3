"""
Script for launching a containerized batch job on AWS ECS.

This script handles the end-to-end process of:
1. Resolving the ECR repository of the container image
2. Resolving the ECS cluster
3. Reusing or registering a task definition for the task
4. Creating the S3 output bucket with a 2 day expiration, if needed
5. Starting exactly one task
6. Printing a pre-signed link to the task's output, valid for 24 hours

The link is printed straight away and will only resolve once the task has
written its output.

Usage:
    python run_on_ecs.py [--verbose] [--log-file <log_path>] <config.json>
"""

import datetime
import json
import logging
import sys
from typing import Optional

import click
import yaml

from ecs_utils.RunConfig import RunConfig
from ecs_utils.TaskLauncher import TaskLauncher
from ecs_utils.utils import build_usage

USAGE_EXIT_CODE = 22


def usage() -> str:
    example = json.dumps(RunConfig.example().to_dict(), indent=2)
    return build_usage(example)


def setup_logging(verbose: bool, log_file: Optional[str]) -> None:
    """Console logging without timestamps, plus an optional log file"""
    logger = logging.getLogger()
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(filename=log_file, mode="a")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(message)s",
                              datefmt="%Y-%m-%d %H:%M:%S")
        )
        logger.addHandler(file_handler)


@click.command()
@click.argument("config_files", nargs=-1, type=click.Path())
@click.option("--verbose", "-v", is_flag=True, help="Log at DEBUG level.")
@click.option("--log-file",
              "-l",
              type=click.Path(dir_okay=False),
              help="Also write the log to this file.")
def main(config_files: tuple, verbose: bool, log_file: str):
    """Launch one ECS task described by a JSON configuration file."""
    if len(config_files) != 1:
        click.echo(usage())
        sys.exit(USAGE_EXIT_CODE)

    setup_logging(verbose, log_file)
    config_path = config_files[0]

    start_time = datetime.datetime.now()
    logging.info(f"Starting task launch at {start_time}.")

    try:
        run_config = RunConfig.from_file(config_path)
        logging.debug(f"Configuration from {config_path}:\n"
                      f"{yaml.safe_dump(run_config.to_dict(), sort_keys=False)}")

        launcher = TaskLauncher(run_config)
        result = launcher.launch()
    except Exception as e:
        logging.error(f"Launch failed: {e}")
        raise

    click.echo(f"Find results in {result.output_url}"
               f"\n\nThis link will expire at "
               f"{result.expires_at.isoformat()}")
    logging.info(f"Launch of {result.task_arn} completed in "
                 f"{datetime.datetime.now() - start_time}.")


if __name__ == "__main__":
    main()
