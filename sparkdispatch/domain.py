"""Domain module."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping

from sparkdispatch import literals


class Defaults:
    """Class containing all relevant defaults for the application."""

    def __init__(self, environ: dict | None = None):
        """Initialize a Defaults class using the value contained in a dictionary.

        Args:
            environ: dictionary representing the environment. Default uses the os.environ key-value pairs.
        """
        if environ is None:
            environ = dict(os.environ)
        self.environ = environ if environ is not None else {}

    @property
    def dcos_url(self) -> str:
        """Cluster base URL."""
        return self.environ["DCOS_URL"].rstrip("/")

    @property
    def ssl_verify(self) -> bool:
        """Whether TLS certificates of the cluster should be verified."""
        return self.environ.get("DCOS_SSL_VERIFY", "true").strip().lower() not in (
            "false",
            "0",
            "no",
        )

    @property
    def service_name(self) -> str:
        """Name of the Spark dispatcher service."""
        return self.environ.get("SPARK_SERVICE_NAME", literals.DEFAULT_SERVICE_NAME)

    @property
    def service_url(self) -> str:
        """Dispatcher endpoint, either explicitly provided or derived from the cluster URL."""
        explicit = self.environ.get("SPARK_DISPATCHER_URL")
        if explicit:
            return explicit.rstrip("/")
        return f"{self.dcos_url}/service/{self.service_name.strip('/')}"

    @property
    def spark_version(self) -> str:
        """Spark version reported to the dispatcher."""
        return self.environ.get("SPARK_CLIENT_VERSION", literals.DEFAULT_SPARK_VERSION)

    @property
    def docker_image(self) -> str:
        """Default executor docker image, empty when not configured."""
        return self.environ.get("SPARK_DOCKER_IMAGE", "")


class SparkDeployMode(str, Enum):
    """Spark deployment mode."""

    CLIENT = "client"
    CLUSTER = "cluster"

    def __str__(self) -> str:
        """Define string representation.

        TODO(py310): replace inheritance with StrEnum once we drop py310
        """
        return str.__str__(self)


class JavaOptionsTarget(str, Enum):
    """Process receiving extra java options."""

    DRIVER = "driver"
    EXECUTOR = "executor"

    @property
    def property(self) -> str:
        """Spark property holding the java options of the target."""
        return f"spark.{self.value}.extraJavaOptions"

    def __str__(self) -> str:
        """Define string representation."""
        return str.__str__(self)


@dataclass(frozen=True)
class SubmitFlag:
    """Class representing a spark-submit flag known to the dispatcher client."""

    name: str
    spark_property: str | None = None
    boolean: bool = False
    aliases: tuple[str, ...] = ()
    help: str = ""

    @property
    def names(self) -> tuple[str, ...]:
        """All the spellings of the flag, without leading dashes."""
        return (self.name,) + self.aliases


SUBMIT_FLAGS: tuple[SubmitFlag, ...] = (
    SubmitFlag("class", help="Your application's main class (for Java / Scala apps)."),
    SubmitFlag("conf", help="Arbitrary Spark configuration property, PROP=VALUE."),
    SubmitFlag("name", "spark.app.name", help="A name for your application."),
    SubmitFlag("master", literals.SPARK_MASTER, help="Ignored, set from the dispatcher URL."),
    SubmitFlag("deploy-mode", literals.DEPLOY_MODE, help="Deploy mode of the driver."),
    SubmitFlag("driver-cores", literals.DRIVER_CORES, help="Number of cores used by the driver."),
    SubmitFlag("driver-memory", literals.DRIVER_MEMORY, help="Memory for the driver (e.g. 1000M, 2G)."),
    SubmitFlag("driver-class-path", "spark.driver.extraClassPath", help="Extra class path entries for the driver."),
    SubmitFlag(
        "driver-java-options",
        literals.DRIVER_JAVA_OPTIONS,
        aliases=("driver-java-option",),
        help="Extra Java options to pass to the driver.",
    ),
    SubmitFlag(
        "executor-java-options",
        literals.EXECUTOR_JAVA_OPTIONS,
        aliases=("executor-java-option",),
        help="Extra Java options to pass to the executors.",
    ),
    SubmitFlag("driver-library-path", "spark.driver.extraLibraryPath", help="Extra library path entries for the driver."),
    SubmitFlag("executor-memory", literals.EXECUTOR_MEMORY, help="Memory per executor (e.g. 1000M, 2G)."),
    SubmitFlag("executor-cores", "spark.executor.cores", help="Number of cores per executor."),
    SubmitFlag("total-executor-cores", literals.CORES_MAX, help="Total cores for all executors."),
    SubmitFlag("jars", literals.JARS, help="Comma-separated list of jars to include."),
    SubmitFlag("packages", "spark.jars.packages", help="Comma-separated list of maven coordinates."),
    SubmitFlag("exclude-packages", "spark.jars.excludes", help="Comma-separated list of groupId:artifactId to exclude."),
    SubmitFlag("repositories", "spark.jars.repositories", help="Comma-separated list of remote repositories."),
    SubmitFlag("py-files", literals.PY_FILES, help="Comma-separated list of .zip, .egg, or .py files."),
    SubmitFlag("files", "spark.files", help="Comma-separated list of files to be placed in the working directory."),
    SubmitFlag("supervise", literals.SUPERVISE, boolean=True, help="Restart the driver on failure."),
    SubmitFlag("verbose", boolean=True, help="Print additional debug output."),
    SubmitFlag("isR", boolean=True, help="Force using SparkR."),
    SubmitFlag("isPython", boolean=True, help="Force using Python."),
    SubmitFlag(
        "kerberos-principal",
        aliases=("principal",),
        help="Principal to be used to login to KDC.",
    ),
    SubmitFlag(
        "keytab-secret-path",
        aliases=("keytab",),
        help="Path to the keytab in the secret store.",
    ),
    SubmitFlag("tgt-secret-path", help="Path to the ticket granting ticket in the secret store."),
    SubmitFlag("keystore-secret-path", help="Path to the keystore in the secret store."),
    SubmitFlag("keystore-password", help="Password of the keystore."),
    SubmitFlag("private-key-password", help="Password of the private key in the keystore."),
    SubmitFlag("truststore-secret-path", help="Path to the truststore in the secret store."),
    SubmitFlag("truststore-password", help="Password of the truststore."),
    SubmitFlag("executor-auth-secret", help="Path to the secret used for executor authentication."),
)

FLAGS_BY_NAME: Mapping[str, SubmitFlag] = MappingProxyType(
    {name: flag for flag in SUBMIT_FLAGS for name in flag.names}
)

BOOLEAN_FLAGS: frozenset[str] = frozenset(
    name for flag in SUBMIT_FLAGS if flag.boolean for name in flag.names
)


def find_flag(name: str) -> SubmitFlag | None:
    """Return the flag registered under a name or alias, with or without leading dashes."""
    return FLAGS_BY_NAME.get(name.lstrip("-"))


@dataclass(frozen=True)
class SubmitCommand:
    """Class representing a single submission request, as provided by the user."""

    submission_id: str
    submit_args: str
    docker_image: str = ""
    properties: Mapping[str, str] = field(default_factory=dict)
    env: Mapping[str, str] = field(default_factory=dict)
    verbose: bool = False
    supervise: bool = False
    driver_cores: float = 0.0
    driver_memory: int = 0
    max_cores: int = 0
    kerberos_principal: str = ""
    keytab_secret_path: str = ""
    executor_auth_secret: str = ""
    is_python: bool = False
    is_r: bool = False

    def __post_init__(self):
        """Freeze the mapping attributes."""
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(self, "env", MappingProxyType(dict(self.env)))


@dataclass(frozen=True)
class ExternalContext:
    """Snapshot of the cluster information needed to build a submission."""

    service_url: str
    ssl_verify: bool = True
    service_name: str = literals.DEFAULT_SERVICE_NAME
    secret_paths: tuple[str, ...] = ()
    spark_version: str = literals.DEFAULT_SPARK_VERSION

    @classmethod
    def from_defaults(
        cls, defaults: Defaults, secret_paths: tuple[str, ...] = ()
    ) -> "ExternalContext":
        """Resolve the context once from the environment backed defaults."""
        return cls(
            service_url=defaults.service_url,
            ssl_verify=defaults.ssl_verify,
            service_name=defaults.service_name,
            secret_paths=tuple(secret_paths),
            spark_version=defaults.spark_version,
        )

    @property
    def dcos_space(self) -> str:
        """DCOS_SPACE value derived from the service name."""
        return "/" + self.service_name.lstrip("/")

    @property
    def spark_master(self) -> str:
        """Spark master URL pointing at the dispatcher."""
        for scheme in ("https://", "http://"):
            if self.service_url.startswith(scheme):
                return "mesos://" + self.service_url[len(scheme):]
        if "://" in self.service_url:
            return self.service_url
        return "mesos://" + self.service_url
