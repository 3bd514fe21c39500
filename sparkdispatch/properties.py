"""Merge of submit arguments, command settings and cluster context into Spark properties."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sparkdispatch import literals
from sparkdispatch.domain import (
    ExternalContext,
    SparkDeployMode,
    SubmitCommand,
    find_flag,
)
from sparkdispatch.exceptions import (
    MalformedConfigError,
    MissingResourceError,
    SubmitArgsError,
    UnknownFlagError,
)
from sparkdispatch.utils import PropertyFile, WithLogging, join_csv

TRUE_VALUES = ("true", "1", "yes")


@dataclass
class SubmitArguments:
    """Class representing the parsed content of the canonical submit tokens."""

    app_resource: str | None = None
    main_class: str = ""
    options: dict[str, str] = field(default_factory=dict)
    confs: PropertyFile = field(default_factory=PropertyFile.empty)
    ignored: list[str] = field(default_factory=list)

    def flag(self, name: str) -> str:
        """Return the value of a flag, empty when not provided."""
        return self.options.get(name, "")

    def is_set(self, name: str) -> bool:
        """Return whether a boolean flag was enabled."""
        return self.flag(name).lower() in TRUE_VALUES


class SubmitTokenParser(WithLogging):
    """Parser of the canonical --flag=value tokens produced by the classifier."""

    def __init__(self, strict: bool = False):
        self.strict = strict

    def parse(self, submit_args: list[str]) -> SubmitArguments:
        """Parse the submit tokens.

        Raises:
            MalformedConfigError: when a --conf value is not key=value
            UnknownFlagError: when parsing strictly and a flag is not recognized
        """
        parsed = SubmitArguments()
        confs: dict[str, str] = {}

        for arg in submit_args:
            if not arg.startswith("-"):
                if parsed.app_resource is None:
                    parsed.app_resource = arg
                else:
                    self.logger.warning(f"Ignoring extra positional argument {arg}")
                    parsed.ignored.append(arg)
                continue

            name, sep, value = arg.lstrip("-").partition("=")
            flag = find_flag(name) if arg.startswith("--") else None

            if flag is None:
                if self.strict:
                    raise UnknownFlagError(arg.partition("=")[0])
                self.logger.warning(f"Ignoring unknown submit flag {arg}")
                parsed.ignored.append(arg)
                continue

            if flag.boolean:
                parsed.options[flag.name] = value if sep else "true"
                continue

            if flag.name == "conf":
                key, has_equals, conf_value = value.partition("=")
                if not sep or not has_equals or not key.strip():
                    raise MalformedConfigError(value)
                confs[key.strip()] = conf_value
                continue

            if not sep:
                raise SubmitArgsError(f"Flag --{name} requires a value")

            if flag.name == "class":
                parsed.main_class = value
            else:
                parsed.options[flag.name] = value

        parsed.confs = PropertyFile(confs)
        return parsed


def parse_submit_tokens(submit_args: list[str], strict: bool = False) -> SubmitArguments:
    """Parse canonical submit tokens into a SubmitArguments object."""
    return SubmitTokenParser(strict).parse(submit_args)


def secret_filename(secret_path: str) -> str:
    """Filename under which a secret is mounted in the driver sandbox."""
    filename = secret_path.rstrip("/").rsplit("/", 1)[-1]
    if filename.startswith(literals.BASE64_SECRET_MARKER):
        return filename[len(literals.BASE64_SECRET_MARKER):]
    return filename


def format_cores(cores: float) -> str:
    """Render a number of cores without a trailing .0."""
    return str(int(cores)) if float(cores).is_integer() else str(cores)


class DriverSecrets:
    """Accumulator of the secrets mounted as files in the driver."""

    def __init__(self):
        self.names: list[str] = []
        self.filenames: list[str] = []

    def register(self, secret_path: str, filename: str | None = None) -> str:
        """Register a secret path, returning the filename it is mounted with."""
        filename = filename or secret_filename(secret_path)
        if secret_path not in self.names:
            self.names.append(secret_path)
            self.filenames.append(filename)
        return filename

    @property
    def properties(self) -> PropertyFile:
        """Secret properties, comma-joined."""
        if not self.names:
            return PropertyFile.empty()
        return PropertyFile(
            {
                literals.SECRET_NAMES: ",".join(self.names),
                literals.SECRET_FILENAMES: ",".join(self.filenames),
            }
        )


class PropertyMerger(WithLogging):
    """Build the Spark properties of a submission.

    User provided values (command fields, flags, --conf pairs, pre-set
    properties) override the defaults. Properties computed from the cluster
    context and from the security options are protected: they always win over
    user provided values.
    """

    def __init__(
        self,
        command: SubmitCommand,
        context: ExternalContext,
        strict: bool = False,
    ):
        self.command = command
        self.context = context
        self.strict = strict

    @staticmethod
    def defaults() -> PropertyFile:
        """Properties used unless the user overrides them."""
        return PropertyFile(
            {
                literals.EXECUTOR_MEMORY: literals.DEFAULT_EXECUTOR_MEMORY,
                literals.DEPLOY_MODE: SparkDeployMode.CLUSTER,
            }
        )

    def _command_properties(self) -> PropertyFile:
        props: dict[str, str] = {}
        if self.command.driver_cores:
            props[literals.DRIVER_CORES] = format_cores(self.command.driver_cores)
        if self.command.driver_memory:
            props[literals.DRIVER_MEMORY] = f"{self.command.driver_memory}M"
        if self.command.max_cores:
            props[literals.CORES_MAX] = str(self.command.max_cores)
        if self.command.supervise:
            props[literals.SUPERVISE] = "true"
        return PropertyFile(props)

    @staticmethod
    def _flag_properties(args: SubmitArguments) -> PropertyFile:
        props: dict[str, str] = {}
        for name, value in args.options.items():
            flag = find_flag(name)
            if flag is None or flag.spark_property is None:
                continue
            if flag.boolean:
                if value.lower() in TRUE_VALUES:
                    props[flag.spark_property] = "true"
            else:
                props[flag.spark_property] = value
        return PropertyFile(props)

    def _env_properties(self) -> PropertyFile:
        return PropertyFile(
            {
                f"{literals.DRIVER_ENV_PREFIX}{key}": value
                for key, value in self.command.env.items()
            }
        )

    def user_properties(self, args: SubmitArguments) -> PropertyFile:
        """Properties explicitly requested by the user, in increasing precedence."""
        return (
            self._command_properties()
            + self._flag_properties(args)
            + args.confs
            + self._env_properties()
            + PropertyFile(dict(self.command.properties))
        )

    def is_python(self, args: SubmitArguments) -> bool:
        """Whether the application is a Python script."""
        return (
            self.command.is_python
            or args.is_set("isPython")
            or (args.app_resource or "").endswith(".py")
        )

    def is_r(self, args: SubmitArguments) -> bool:
        """Whether the application is an R script."""
        return (
            self.command.is_r
            or args.is_set("isR")
            or (args.app_resource or "").lower().endswith(".r")
        )

    def application_properties(
        self, args: SubmitArguments, props: PropertyFile
    ) -> PropertyFile:
        """Register the application resource with Spark."""
        resource = args.app_resource or ""
        if self.is_python(args):
            return PropertyFile(
                {literals.PY_FILES: join_csv(props.get(literals.PY_FILES), resource)}
            )
        if self.is_r(args):
            return PropertyFile({literals.R_APP: "true"})
        return PropertyFile({literals.JARS: join_csv(props.get(literals.JARS), resource)})

    def docker_properties(self, props: PropertyFile) -> PropertyFile:
        """Executor image properties, forcing the pull unless the user decided otherwise."""
        image = self.command.docker_image or props.get(literals.DOCKER_IMAGE)
        if not image:
            return PropertyFile.empty()

        docker = {literals.DOCKER_IMAGE: image}
        if literals.DOCKER_FORCE_PULL in props:
            self.logger.debug(
                f"Using {literals.DOCKER_FORCE_PULL}={props.get(literals.DOCKER_FORCE_PULL)} from the user"
            )
        else:
            docker[literals.DOCKER_FORCE_PULL] = "true"
        return PropertyFile(docker)

    def label_properties(self, props: PropertyFile) -> PropertyFile:
        """Attach the DCOS_SPACE label to the driver and the executors."""
        space_label = f"{literals.DCOS_SPACE_LABEL}:{self.context.dcos_space}"
        labels = {}
        for key in (literals.DRIVER_LABELS, literals.TASK_LABELS):
            existing = join_csv(props.get(key))
            kept = [
                label
                for label in existing.split(",")
                if label and not label.startswith(f"{literals.DCOS_SPACE_LABEL}:")
            ]
            if existing and len(kept) != len(existing.split(",")):
                self.logger.warning(
                    f"Replacing user provided {literals.DCOS_SPACE_LABEL} label in {key}"
                )
            labels[key] = ",".join(kept + [space_label])
        return PropertyFile(labels)

    def cluster_properties(self) -> PropertyFile:
        """Properties derived from the cluster context."""
        return PropertyFile(
            {
                literals.NO_CERT_VERIFICATION: not self.context.ssl_verify,
                literals.SPARK_MASTER: self.context.spark_master,
            }
        )

    def security_properties(self, args: SubmitArguments) -> PropertyFile:
        """Kerberos, TLS and executor authentication properties, with their driver secrets."""
        secrets = DriverSecrets()
        props: dict[str, str] = {}

        principal = args.flag("kerberos-principal") or self.command.kerberos_principal
        keytab = args.flag("keytab-secret-path") or self.command.keytab_secret_path
        tgt = args.flag("tgt-secret-path")
        if principal:
            props[literals.YARN_PRINCIPAL] = principal
            props[literals.CONTAINERIZER] = "mesos"
        if keytab:
            secrets.register(keytab)
            props[literals.CONTAINERIZER] = "mesos"
        if tgt:
            props[literals.KRB5CCNAME] = secrets.register(tgt, literals.TGT_FILENAME)
            props[literals.CONTAINERIZER] = "mesos"

        keystore = args.flag("keystore-secret-path")
        truststore = args.flag("truststore-secret-path")
        if keystore:
            props[literals.SSL_ENABLED] = "true"
            props[literals.SSL_KEYSTORE] = secrets.register(keystore)
            props[literals.CONTAINERIZER] = "mesos"
            if args.flag("keystore-password"):
                props[literals.SSL_KEYSTORE_PASSWORD] = args.flag("keystore-password")
            if args.flag("private-key-password"):
                props[literals.SSL_KEY_PASSWORD] = args.flag("private-key-password")
        if truststore:
            props[literals.SSL_ENABLED] = "true"
            props[literals.SSL_TRUSTSTORE] = secrets.register(truststore)
            props[literals.CONTAINERIZER] = "mesos"
            if args.flag("truststore-password"):
                props[literals.SSL_TRUSTSTORE_PASSWORD] = args.flag("truststore-password")

        auth_secret = args.flag("executor-auth-secret") or self.command.executor_auth_secret
        if auth_secret:
            props[literals.AUTHENTICATE] = "true"
            props[literals.SASL_ENCRYPTION] = "true"
            props[literals.CONTAINERIZER] = "mesos"
            props[literals.AUTH_SECRET] = literals.SPARK_SHARED_SECRET
            props[literals.EXECUTOR_AUTH_SECRET_ENV] = literals.SPARK_SHARED_SECRET
            secrets.register(auth_secret)

        for secret_path in self.context.secret_paths:
            secrets.register(secret_path)

        return PropertyFile(props) + secrets.properties

    def apply_protected(self, props: PropertyFile, computed: PropertyFile) -> PropertyFile:
        """Merge computed properties: protected keys are forced, the others only fill gaps."""
        merged = dict(props.props)
        for key, value in computed.props.items():
            if key not in literals.PROTECTED_KEYS:
                merged.setdefault(key, value)
                continue
            if key in merged and merged[key] != value:
                self.logger.warning(
                    f"Ignoring user provided value for protected property {key}"
                )
            merged[key] = value
        return PropertyFile(merged)

    def build(self, submit_args: list[str]) -> tuple[SubmitArguments, PropertyFile]:
        """Parse the submit tokens and build the final Spark properties.

        Raises:
            MissingResourceError: when no application resource is found
            MalformedConfigError: when a --conf value is not key=value
            UnknownFlagError: when parsing strictly and a flag is not recognized
        """
        args = parse_submit_tokens(submit_args, strict=self.strict)
        if not args.app_resource:
            raise MissingResourceError()

        props = self.defaults() + self.user_properties(args)
        props = props + self.application_properties(args, props)
        props = props + self.docker_properties(props)
        props = props + self.label_properties(props)
        props = self.apply_protected(
            props, self.cluster_properties() + self.security_properties(args)
        )

        # --verbose lists the resulting properties at INFO
        level = (
            logging.INFO
            if self.command.verbose or args.is_set("verbose")
            else logging.DEBUG
        )
        for key, value in props.props.items():
            self.logger.log(
                level, f"{key}={'*****' if 'password' in key.lower() else value}"
            )
        return args, props


def build_properties(
    command: SubmitCommand,
    submit_args: list[str],
    context: ExternalContext,
    strict: bool = False,
) -> PropertyFile:
    """Build the Spark properties of a submission from its canonical submit tokens."""
    _, props = PropertyMerger(command, context, strict=strict).build(submit_args)
    return props
