"""Interface for building spark submissions for the dispatcher."""

from __future__ import annotations

from sparkdispatch.domain import BOOLEAN_FLAGS, ExternalContext, SubmitCommand
from sparkdispatch.payload import SubmissionRequest
from sparkdispatch.properties import PropertyMerger
from sparkdispatch.tokenizer import clean_up_submit_args
from sparkdispatch.utils import WithLogging


class SparkSubmitInterface(WithLogging):
    """Class for turning submit commands into dispatcher payloads."""

    def __init__(self, context: ExternalContext, strict_flags: bool = False):
        """Initialise the interface for a given cluster context.

        Args:
            context: snapshot of the cluster information, resolved once by the caller
            strict_flags: raise UnknownFlagError on unrecognized flags instead of ignoring them
        """
        self.context = context
        self.strict_flags = strict_flags

    def build_request(self, command: SubmitCommand) -> SubmissionRequest:
        """Build the submission request of a command.

        Raises:
            TokenizeError: empty submit arguments or unterminated quotes
            MalformedConfigError: a --conf value is not key=value
            MissingResourceError: no application resource in the submit arguments
            UnknownFlagError: unrecognized flag, only with strict_flags
        """
        submit_args, app_args = clean_up_submit_args(
            command.submit_args, BOOLEAN_FLAGS, strict=True
        )

        merger = PropertyMerger(command, self.context, strict=self.strict_flags)
        args, props = merger.build(submit_args)

        # the dispatcher picks the runner of python and R applications itself
        main_class = (
            "" if merger.is_python(args) or merger.is_r(args) else args.main_class
        )

        self.logger.info(
            f"Submission {command.submission_id}: resource {args.app_resource}, "
            f"{len(props)} properties, {len(app_args)} application arguments"
        )

        return SubmissionRequest(
            app_resource=args.app_resource or "",
            main_class=main_class,
            app_args=app_args,
            spark_properties=props,
            environment_variables=dict(command.env),
            client_spark_version=self.context.spark_version,
        )

    def build_submit_json(self, command: SubmitCommand) -> str:
        """Build the JSON payload of a command."""
        return self.build_request(command).to_json()


def build_submit_json(
    command: SubmitCommand, context: ExternalContext, strict_flags: bool = False
) -> str:
    """Run the whole argument to payload pipeline for one submission."""
    return SparkSubmitInterface(context, strict_flags).build_submit_json(command)
