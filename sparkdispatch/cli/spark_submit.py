#!/usr/bin/env python3
"""Spark submit module."""

import uuid
from argparse import Namespace
from logging import Logger

from sparkdispatch.cli import defaults
from sparkdispatch.cli.params import (
    add_config_arguments,
    add_logging_arguments,
    add_service_arguments,
    add_submit_arguments,
    get_context,
    get_properties,
    parse_arguments_with,
    parse_key_values,
)
from sparkdispatch.domain import SubmitCommand
from sparkdispatch.exceptions import SubmitArgsError
from sparkdispatch.spark_interface import SparkSubmitInterface
from sparkdispatch.utils import setup_logging


def build_command(args: Namespace, logger: Logger) -> SubmitCommand:
    """Create the submit command out of the parsed arguments."""
    properties = get_properties(args)
    properties.log(logger.debug)
    return SubmitCommand(
        submission_id=args.submission_id or str(uuid.uuid4()),
        submit_args=args.submit_args,
        docker_image=args.docker_image or defaults.docker_image,
        properties=properties.props,
        env=parse_key_values(args.env),
        verbose=args.verbose,
    )


def main(args: Namespace, logger: Logger) -> str:
    """Submit main entrypoint, returning the payload to be posted to the dispatcher."""
    command = build_command(args, logger)
    payload = SparkSubmitInterface(get_context(args)).build_submit_json(command)
    logger.debug(f"Payload of submission {command.submission_id}: {payload}")
    return payload


def run():
    """Console entrypoint."""
    args = parse_arguments_with(
        [
            add_logging_arguments,
            add_submit_arguments,
            add_config_arguments,
            add_service_arguments,
        ]
    ).parse_args()

    log_level = (
        "INFO" if args.verbose and args.log_level in ("WARN", "ERROR") else args.log_level
    )
    logger = setup_logging(
        log_level, args.log_conf_file, "sparkdispatch.cli.spark_submit"
    )

    try:
        print(main(args, logger))
        exit(0)
    except SubmitArgsError as e:
        logger.error(str(e))
        exit(1)
    except KeyError as e:
        logger.error(f"Missing environment variable {e}")
        exit(1)
    except Exception as e:
        raise e


if __name__ == "__main__":
    run()
