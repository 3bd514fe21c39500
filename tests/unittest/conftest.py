import argparse

import pytest

from sparkdispatch.cli.params import (
    add_config_arguments,
    add_logging_arguments,
    add_service_arguments,
    add_submit_arguments,
    parse_arguments_with,
)
from sparkdispatch.domain import ExternalContext, SubmitCommand
from tests import (
    APP_JAR,
    DRIVER_CORES,
    DRIVER_MEMORY,
    IMAGE,
    MAIN_CLASS,
    MAX_CORES,
    SERVICE_NAME,
)


@pytest.fixture
def context():
    return ExternalContext(
        service_url="https://fake-url/service/spark-app",
        ssl_verify=False,
        service_name=SERVICE_NAME,
    )


@pytest.fixture
def make_command():
    def _make_command(submit_args: str, docker_image: str = IMAGE, **kwargs):
        return SubmitCommand("subId", submit_args, docker_image, **kwargs)

    return _make_command


@pytest.fixture
def simple_args():
    return (
        f"--driver-cores {DRIVER_CORES} "
        f"--conf spark.cores.max={MAX_CORES} "
        f"--driver-memory {DRIVER_MEMORY} "
        f"--class {MAIN_CLASS} "
        f"{APP_JAR} --input1 value1 --input2 value2"
    )


@pytest.fixture
def submit_parser():
    return parse_arguments_with(
        [
            add_logging_arguments,
            add_submit_arguments,
            add_config_arguments,
            add_service_arguments,
        ],
        argparse.ArgumentParser(exit_on_error=False),
    )
