import os

test_path = os.path.dirname(os.path.abspath(__file__))

RESOURCES_FOLDER = os.path.join(test_path, "resources")

IMAGE = "mesosphere/spark"
DRIVER_CORES = "1"
MAX_CORES = "1"
DRIVER_MEMORY = "512M"
APP_JAR = "http://spark-example.jar"
MAIN_CLASS = "org.apache.spark.examples.SparkPi"
PRINCIPAL = "client@local"
KEYTAB = "keytab"
KEYTAB_PREFIXED = "__dcos_base64__keytab"
SPARK_AUTH_SECRET = "spark-auth-secret"
SERVICE_NAME = "spark-app"
