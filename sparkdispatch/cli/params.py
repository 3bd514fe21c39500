"""Parameters module."""

from argparse import ArgumentParser, Namespace, RawDescriptionHelpFormatter
from typing import Callable

from sparkdispatch.cli import defaults
from sparkdispatch.domain import SUBMIT_FLAGS, Defaults, ExternalContext
from sparkdispatch.exceptions import MalformedConfigError
from sparkdispatch.utils import PropertyFile


def parse_arguments_with(
    parsers: list[Callable[[ArgumentParser], ArgumentParser]],
    base_parser: ArgumentParser | None = None,
):
    """
    Specify a chain of parsers to help parse the list of arguments to main.

    :param parsers: List of parsers to be applied.
    :param base_parser: Parser to start the chain from, a new one when not provided.
    """
    from functools import reduce

    return reduce(
        lambda x, f: f(x), parsers, base_parser if base_parser else ArgumentParser()
    )


def add_logging_arguments(parser: ArgumentParser) -> ArgumentParser:
    """
    Add logging argument parsing to the existing parser context.

    :param parser: Input parser to decorate with parsing support for logging args.
    """
    parser.add_argument(
        "--log-level",
        choices=["INFO", "WARN", "ERROR", "DEBUG"],
        default="WARN",
        help="Set the log level of the logging",
    )
    parser.add_argument(
        "--log-conf-file",
        help="Provide a log configuration file",
    )

    return parser


def format_submit_flags() -> str:
    """List the spark-submit flags understood inside --submit-args, with their help."""
    lines = ["flags understood in --submit-args:"]
    for flag in SUBMIT_FLAGS:
        names = ", ".join(f"--{name}" for name in flag.names)
        lines.append(f"  {names}: {flag.help}")
    return "\n".join(lines)


def add_submit_arguments(parser: ArgumentParser) -> ArgumentParser:
    """
    Add submission related argument parsing to the existing parser context.

    :param parser: Input parser to decorate with parsing support for submit args.
    """
    parser.add_argument(
        "--submit-args",
        required=True,
        type=str,
        help="spark-submit style arguments, including the application resource and its arguments.",
    )
    parser.add_argument(
        "--submission-id",
        default="",
        type=str,
        help="Identifier of the submission, used for logging.",
    )
    parser.add_argument(
        "--docker-image",
        default=None,
        type=str,
        help="Docker image used by the driver and the executors.",
    )
    parser.add_argument(
        "--env",
        action="append",
        type=str,
        help="Environment variable of the driver, KEY=VALUE.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log the resulting Spark properties at INFO level.",
    )
    parser.epilog = format_submit_flags()
    parser.formatter_class = RawDescriptionHelpFormatter
    return parser


def add_config_arguments(parser: ArgumentParser) -> ArgumentParser:
    """
    Add arguments to provide extra configurations for the spark properties.

    :param parser: Input parser to decorate with parsing support for config arguments.
    """
    parser.add_argument(
        "--properties-file",
        default=None,
        type=str,
        help="Spark configuration properties file overriding the submit arguments.",
    )
    parser.add_argument(
        "--conf",
        action="append",
        type=str,
        help="Config properties overriding the submit arguments.",
    )
    return parser


def add_service_arguments(parser: ArgumentParser) -> ArgumentParser:
    """
    Add dispatcher related argument parsing to the existing parser context.

    :param parser: Input parser to decorate with parsing support for service args.
    """
    parser.add_argument(
        "--service-name",
        default=None,
        type=str,
        help="Name of the Spark dispatcher service.",
    )
    parser.add_argument(
        "--dispatcher-url",
        default=None,
        type=str,
        help="Dispatcher endpoint, derived from DCOS_URL when not provided.",
    )
    parser.add_argument(
        "--no-ssl-verify",
        action="store_true",
        help="Do not verify the TLS certificate of the cluster.",
    )
    parser.add_argument(
        "--secret-path",
        action="append",
        type=str,
        help="Additional secret to be mounted in the driver.",
    )
    return parser


def parse_key_values(items: list[str] | None) -> dict[str, str]:
    """Parse KEY=VALUE items provided on the command line."""
    parsed = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise MalformedConfigError(item)
        parsed[key.strip()] = value
    return parsed


def get_properties(args: Namespace) -> PropertyFile:
    """Pre-set properties of the submission: properties file first, then --conf."""
    from_file = (
        PropertyFile.read(args.properties_file)
        if args.properties_file is not None
        else PropertyFile.empty()
    )
    return from_file + PropertyFile(parse_key_values(args.conf))


def get_context(args: Namespace, env_defaults: Defaults = defaults) -> ExternalContext:
    """Resolve the cluster context once, command line values taking precedence."""
    environ = dict(env_defaults.environ)
    if args.service_name:
        environ["SPARK_SERVICE_NAME"] = args.service_name
    if args.dispatcher_url:
        environ["SPARK_DISPATCHER_URL"] = args.dispatcher_url
    if args.no_ssl_verify:
        environ["DCOS_SSL_VERIFY"] = "false"
    return ExternalContext.from_defaults(
        Defaults(environ), secret_paths=tuple(args.secret_path or [])
    )
