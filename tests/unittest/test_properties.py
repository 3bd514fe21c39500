import logging

import pytest

from sparkdispatch.domain import ExternalContext
from sparkdispatch.exceptions import (
    MalformedConfigError,
    MissingResourceError,
    SubmitArgsError,
    UnknownFlagError,
)
from sparkdispatch.literals import PROTECTED_KEYS
from sparkdispatch.properties import (
    PropertyMerger,
    build_properties,
    parse_submit_tokens,
    secret_filename,
)
from sparkdispatch.tokenizer import clean_up_submit_args
from tests import (
    APP_JAR,
    IMAGE,
    KEYTAB,
    KEYTAB_PREFIXED,
    MAIN_CLASS,
    PRINCIPAL,
    SPARK_AUTH_SECRET,
)


def props_for(make_command, context, submit_args: str, docker_image: str = IMAGE, **kwargs):
    command = make_command(submit_args, docker_image, **kwargs)
    tokens, _ = clean_up_submit_args(command.submit_args)
    return build_properties(command, tokens, context).props


def test_parse_submit_tokens():
    args = parse_submit_tokens(
        [
            "--driver-memory=512M",
            "--conf=spark.cores.max=1",
            "--conf=spark.app.name=a=b",
            f"--class={MAIN_CLASS}",
            "--supervise",
            APP_JAR,
        ]
    )

    assert args.app_resource == APP_JAR
    assert args.main_class == MAIN_CLASS
    assert args.flag("driver-memory") == "512M"
    assert args.is_set("supervise")
    assert args.confs.props == {"spark.cores.max": "1", "spark.app.name": "a=b"}


def test_parse_submit_tokens_resolves_aliases():
    args = parse_submit_tokens(["--principal=me@REALM", "--keytab=/kt", APP_JAR])

    assert args.flag("kerberos-principal") == "me@REALM"
    assert args.flag("keytab-secret-path") == "/kt"


@pytest.mark.parametrize(
    "tokens", [["--conf=spark.cores.max", APP_JAR], ["--conf=", APP_JAR], ["--conf"], ["--conf==1"]]
)
def test_malformed_conf(tokens):
    with pytest.raises(MalformedConfigError):
        parse_submit_tokens(tokens)


def test_flag_without_value():
    with pytest.raises(SubmitArgsError):
        parse_submit_tokens(["--driver-memory"])


def test_unknown_flag_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        args = parse_submit_tokens(["--not-a-flag=1", "-x", APP_JAR])

    assert args.app_resource == APP_JAR
    assert args.ignored == ["--not-a-flag=1", "-x"]
    assert len([r for r in caplog.records if "unknown submit flag" in r.message]) == 2


def test_unknown_flag_strict():
    with pytest.raises(UnknownFlagError) as exc_info:
        parse_submit_tokens(["--not-a-flag=1", APP_JAR], strict=True)

    assert exc_info.value.flag == "--not-a-flag"


def test_missing_resource(make_command, context):
    command = make_command("--driver-cores 1 --conf spark.cores.max=1")
    tokens, _ = clean_up_submit_args(command.submit_args)

    with pytest.raises(MissingResourceError):
        build_properties(command, tokens, context)


def test_defaults(make_command, context, simple_args):
    props = props_for(make_command, context, simple_args)

    assert props["spark.executor.memory"] == "1G"
    assert props["spark.submit.deployMode"] == "cluster"
    assert props["spark.jars"] == APP_JAR


@pytest.mark.parametrize(
    "key, value",
    [
        ("spark.cores.max", "4"),
        ("spark.executor.memory", "4G"),
        ("spark.app.name", "my app"),
        ("spark.mesos.uris", "http://a,http://b"),
        ("spark.eventLog.enabled", "true"),
    ],
)
def test_conf_pairs_are_kept(make_command, context, key, value):
    props = props_for(make_command, context, f"--conf '{key}={value}' {APP_JAR}")

    assert props[key] == value


def test_last_conf_wins(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--conf spark.cores.max=1 --total-executor-cores 2 --conf spark.cores.max=3 {APP_JAR}",
    )

    assert props["spark.cores.max"] == "3"


def test_flags_are_mapped(make_command, context):
    props = props_for(
        make_command,
        context,
        "--name pi --driver-cores 2 --driver-memory 1G --executor-memory 2G "
        f"--jars http://a.jar --supervise --verbose {APP_JAR}",
    )

    assert props["spark.app.name"] == "pi"
    assert props["spark.driver.cores"] == "2"
    assert props["spark.driver.memory"] == "1G"
    assert props["spark.executor.memory"] == "2G"
    assert props["spark.driver.supervise"] == "true"
    assert props["spark.jars"] == f"http://a.jar,{APP_JAR}"


def test_resource_already_in_jars(make_command, context):
    props = props_for(
        make_command, context, f"--jars {APP_JAR},http://a.jar {APP_JAR}"
    )

    assert props["spark.jars"] == f"{APP_JAR},http://a.jar"


def test_command_fields(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--driver-memory 2G {APP_JAR}",
        driver_cores=1.5,
        driver_memory=1024,
        max_cores=4,
        supervise=True,
        env={"FOO": "bar"},
    )

    assert props["spark.driver.cores"] == "1.5"
    # flags take precedence over the command fields
    assert props["spark.driver.memory"] == "2G"
    assert props["spark.cores.max"] == "4"
    assert props["spark.driver.supervise"] == "true"
    assert props["spark.mesos.driverEnv.FOO"] == "bar"


def test_command_properties_override_confs(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--conf spark.app.name=from-args {APP_JAR}",
        properties={"spark.app.name": "from-command"},
    )

    assert props["spark.app.name"] == "from-command"


def test_docker_image(make_command, context):
    props = props_for(make_command, context, APP_JAR)

    assert props["spark.mesos.executor.docker.image"] == IMAGE
    assert props["spark.mesos.executor.docker.forcePullImage"] == "true"


def test_docker_force_pull_from_user(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--conf spark.mesos.executor.docker.forcePullImage=false {APP_JAR}",
    )

    assert props["spark.mesos.executor.docker.image"] == IMAGE
    assert props["spark.mesos.executor.docker.forcePullImage"] == "false"


def test_docker_image_from_command_wins(make_command, context):
    props = props_for(
        make_command, context, f"--conf spark.mesos.executor.docker.image=other {APP_JAR}"
    )

    assert props["spark.mesos.executor.docker.image"] == IMAGE


def test_docker_image_from_conf(make_command, context):
    props = props_for(
        make_command, context, f"--conf spark.mesos.executor.docker.image=other {APP_JAR}", ""
    )

    assert props["spark.mesos.executor.docker.image"] == "other"
    assert props["spark.mesos.executor.docker.forcePullImage"] == "true"


def test_no_docker_image(make_command, context):
    props = props_for(make_command, context, APP_JAR, "")

    assert "spark.mesos.executor.docker.image" not in props
    assert "spark.mesos.executor.docker.forcePullImage" not in props


def test_dcos_space_labels(make_command, context):
    props = props_for(
        make_command,
        context,
        "--conf spark.mesos.driver.labels=team:data,DCOS_SPACE:/other "
        f"--conf spark.mesos.task.labels=DCOS_SPACE:/other {APP_JAR}",
    )

    assert props["spark.mesos.driver.labels"] == "team:data,DCOS_SPACE:/spark-app"
    assert props["spark.mesos.task.labels"] == "DCOS_SPACE:/spark-app"


def test_dcos_space_is_not_double_prefixed(make_command):
    context = ExternalContext("https://fake-url", service_name="/group/spark")
    props = props_for(make_command, context, APP_JAR)

    assert props["spark.mesos.driver.labels"] == "DCOS_SPACE:/group/spark"


@pytest.mark.parametrize("ssl_verify, expected", [(True, "false"), (False, "true")])
def test_ssl_verification(make_command, ssl_verify, expected):
    context = ExternalContext("https://fake-url", ssl_verify=ssl_verify)
    props = props_for(make_command, context, APP_JAR)

    assert props["spark.ssl.noCertVerification"] == expected


@pytest.mark.parametrize(
    "service_url, expected",
    [
        ("https://fake-url/service/spark", "mesos://fake-url/service/spark"),
        ("http://10.0.0.1:7077", "mesos://10.0.0.1:7077"),
        ("mesos://dispatcher:7077", "mesos://dispatcher:7077"),
        ("dispatcher:7077", "mesos://dispatcher:7077"),
    ],
)
def test_spark_master(make_command, service_url, expected):
    props = props_for(make_command, ExternalContext(service_url), f"--master local {APP_JAR}")

    assert props["spark.master"] == expected


@pytest.mark.parametrize(
    "secret_path, secret_file", [(KEYTAB, KEYTAB), (KEYTAB_PREFIXED, KEYTAB)]
)
def test_kerberos_secret(make_command, context, secret_path, secret_file):
    props = props_for(
        make_command,
        context,
        f"--driver-cores 1 --kerberos-principal {PRINCIPAL} --keytab-secret-path /{secret_path} "
        f"--class {MAIN_CLASS} {APP_JAR} --input1 value1",
    )

    assert props["spark.yarn.principal"] == PRINCIPAL
    assert props["spark.mesos.containerizer"] == "mesos"
    assert props["spark.mesos.driver.secret.filenames"] == secret_file
    assert props["spark.mesos.driver.secret.names"] == f"/{secret_path}"


def test_kerberos_from_command(make_command, context):
    props = props_for(
        make_command,
        context,
        APP_JAR,
        kerberos_principal=PRINCIPAL,
        keytab_secret_path=f"/path/{KEYTAB_PREFIXED}",
    )

    assert props["spark.yarn.principal"] == PRINCIPAL
    assert props["spark.mesos.driver.secret.names"] == f"/path/{KEYTAB_PREFIXED}"
    assert props["spark.mesos.driver.secret.filenames"] == KEYTAB


def test_tgt_secret(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--kerberos-principal {PRINCIPAL} --tgt-secret-path /__dcos_base64__mytgt {APP_JAR}",
    )

    assert props["spark.mesos.driver.secret.names"] == "/__dcos_base64__mytgt"
    assert props["spark.mesos.driver.secret.filenames"] == "tgt"
    assert props["spark.mesos.driverEnv.KRB5CCNAME"] == "tgt"


def test_sasl_secret(make_command, context):
    props = props_for(
        make_command,
        context,
        f"--executor-auth-secret /{SPARK_AUTH_SECRET} --class {MAIN_CLASS} {APP_JAR} --input1 value1",
    )

    assert props["spark.authenticate"] == "true"
    assert props["spark.mesos.containerizer"] == "mesos"
    assert props["spark.authenticate.enableSaslEncryption"] == "true"
    assert props["spark.authenticate.secret"] == "spark_shared_secret"
    assert props["spark.executorEnv._SPARK_AUTH_SECRET"] == "spark_shared_secret"
    assert props["spark.mesos.driver.secret.filenames"] == SPARK_AUTH_SECRET
    assert props["spark.mesos.driver.secret.names"] == f"/{SPARK_AUTH_SECRET}"


def test_secrets_accumulate(make_command):
    context = ExternalContext("https://fake-url", secret_paths=("/extra/__dcos_base64__conf",))
    props = props_for(
        make_command,
        context,
        f"--kerberos-principal {PRINCIPAL} --keytab-secret-path /{KEYTAB_PREFIXED} "
        f"--executor-auth-secret /{SPARK_AUTH_SECRET} {APP_JAR}",
    )

    assert props["spark.authenticate"] == "true"
    assert (
        props["spark.mesos.driver.secret.names"]
        == f"/{KEYTAB_PREFIXED},/{SPARK_AUTH_SECRET},/extra/__dcos_base64__conf"
    )
    assert (
        props["spark.mesos.driver.secret.filenames"]
        == f"{KEYTAB},{SPARK_AUTH_SECRET},conf"
    )


def test_tls_secrets(make_command, context):
    props = props_for(
        make_command,
        context,
        "--keystore-secret-path /__dcos_base64__keystore --keystore-password ks "
        "--private-key-password pk --truststore-secret-path /truststore "
        f"--truststore-password ts {APP_JAR}",
    )

    assert props["spark.ssl.enabled"] == "true"
    assert props["spark.ssl.keyStore"] == "keystore"
    assert props["spark.ssl.keyStorePassword"] == "ks"
    assert props["spark.ssl.keyPassword"] == "pk"
    assert props["spark.ssl.trustStore"] == "truststore"
    assert props["spark.ssl.trustStorePassword"] == "ts"
    assert props["spark.mesos.driver.secret.names"] == "/__dcos_base64__keystore,/truststore"
    assert props["spark.mesos.driver.secret.filenames"] == "keystore,truststore"


def test_protected_keys_win(make_command, context, caplog):
    """
    Validates that computed security properties always override user provided values.
    """
    with caplog.at_level(logging.WARNING):
        props = props_for(
            make_command,
            context,
            "--conf spark.authenticate.secret=mine "
            "--conf spark.mesos.driver.secret.names=/mine "
            "--conf spark.ssl.noCertVerification=false "
            f"--executor-auth-secret /{SPARK_AUTH_SECRET} {APP_JAR}",
        )

    assert props["spark.authenticate.secret"] == "spark_shared_secret"
    assert props["spark.mesos.driver.secret.names"] == f"/{SPARK_AUTH_SECRET}"
    assert props["spark.ssl.noCertVerification"] == "true"
    assert (
        len([r for r in caplog.records if "protected property" in r.message]) == 3
    )


def test_protected_keys_only_forced_when_computed(make_command, context):
    props = props_for(
        make_command, context, f"--conf spark.mesos.driver.secret.names=/mine {APP_JAR}"
    )

    assert props["spark.mesos.driver.secret.names"] == "/mine"


def test_computed_keys_are_protected(make_command, context):
    command = make_command(
        f"--kerberos-principal {PRINCIPAL} --keytab /{KEYTAB} --tgt-secret-path /tgt "
        "--keystore-secret-path /ks --keystore-password a --private-key-password b "
        "--truststore-secret-path /ts --truststore-password c "
        f"--executor-auth-secret /{SPARK_AUTH_SECRET} {APP_JAR}"
    )
    tokens, _ = clean_up_submit_args(command.submit_args)
    merger = PropertyMerger(command, context)
    args = parse_submit_tokens(tokens)

    computed = merger.cluster_properties() + merger.security_properties(args)

    assert set(computed.props) == set(PROTECTED_KEYS)


def test_python_application(make_command, context):
    command = make_command("--py-files http://lib.zip http://app.py --input1 value1")
    tokens, _ = clean_up_submit_args(command.submit_args)
    args, props = PropertyMerger(command, context).build(tokens)

    assert args.app_resource == "http://app.py"
    assert props.get("spark.submit.pyFiles") == "http://lib.zip,http://app.py"
    assert "spark.jars" not in props


def test_r_application(make_command, context):
    props = props_for(make_command, context, "--isR http://app.R")

    assert props["spark.r.isRApp"] == "true"
    assert "spark.jars" not in props


@pytest.mark.parametrize(
    "secret_path, expected",
    [
        ("/keytab", "keytab"),
        ("/__dcos_base64__keytab", "keytab"),
        ("/a/b/__dcos_base64__keytab", "keytab"),
        ("keytab/", "keytab"),
        ("/a/__dcos_base64__/x", "x"),
    ],
)
def test_secret_filename(secret_path, expected):
    assert secret_filename(secret_path) == expected
