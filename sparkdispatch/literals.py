"""Literals and constant module."""

BASE64_SECRET_MARKER = "__dcos_base64__"
SPARK_SHARED_SECRET = "spark_shared_secret"
SUBMISSION_ACTION = "CreateSubmissionRequest"
DCOS_SPACE_LABEL = "DCOS_SPACE"
TGT_FILENAME = "tgt"

DEFAULT_EXECUTOR_MEMORY = "1G"
DEFAULT_SERVICE_NAME = "spark"
DEFAULT_SPARK_VERSION = "2.4.0"

# Spark property keys
SPARK_MASTER = "spark.master"
DEPLOY_MODE = "spark.submit.deployMode"
EXECUTOR_MEMORY = "spark.executor.memory"
DRIVER_CORES = "spark.driver.cores"
DRIVER_MEMORY = "spark.driver.memory"
CORES_MAX = "spark.cores.max"
SUPERVISE = "spark.driver.supervise"
JARS = "spark.jars"
PY_FILES = "spark.submit.pyFiles"
R_APP = "spark.r.isRApp"
DRIVER_JAVA_OPTIONS = "spark.driver.extraJavaOptions"
EXECUTOR_JAVA_OPTIONS = "spark.executor.extraJavaOptions"
DOCKER_IMAGE = "spark.mesos.executor.docker.image"
DOCKER_FORCE_PULL = "spark.mesos.executor.docker.forcePullImage"
DRIVER_LABELS = "spark.mesos.driver.labels"
TASK_LABELS = "spark.mesos.task.labels"
NO_CERT_VERIFICATION = "spark.ssl.noCertVerification"
CONTAINERIZER = "spark.mesos.containerizer"
DRIVER_ENV_PREFIX = "spark.mesos.driverEnv."
KRB5CCNAME = "spark.mesos.driverEnv.KRB5CCNAME"
YARN_PRINCIPAL = "spark.yarn.principal"
SECRET_NAMES = "spark.mesos.driver.secret.names"
SECRET_FILENAMES = "spark.mesos.driver.secret.filenames"
AUTHENTICATE = "spark.authenticate"
SASL_ENCRYPTION = "spark.authenticate.enableSaslEncryption"
AUTH_SECRET = "spark.authenticate.secret"
EXECUTOR_AUTH_SECRET_ENV = "spark.executorEnv._SPARK_AUTH_SECRET"
SSL_ENABLED = "spark.ssl.enabled"
SSL_KEYSTORE = "spark.ssl.keyStore"
SSL_KEYSTORE_PASSWORD = "spark.ssl.keyStorePassword"
SSL_KEY_PASSWORD = "spark.ssl.keyPassword"
SSL_TRUSTSTORE = "spark.ssl.trustStore"
SSL_TRUSTSTORE_PASSWORD = "spark.ssl.trustStorePassword"

PROTECTED_KEYS = frozenset(
    {
        SPARK_MASTER,
        NO_CERT_VERIFICATION,
        YARN_PRINCIPAL,
        CONTAINERIZER,
        AUTHENTICATE,
        SASL_ENCRYPTION,
        AUTH_SECRET,
        EXECUTOR_AUTH_SECRET_ENV,
        SECRET_NAMES,
        SECRET_FILENAMES,
        KRB5CCNAME,
        SSL_ENABLED,
        SSL_KEYSTORE,
        SSL_KEYSTORE_PASSWORD,
        SSL_KEY_PASSWORD,
        SSL_TRUSTSTORE,
        SSL_TRUSTSTORE_PASSWORD,
    }
)
