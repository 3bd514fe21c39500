"""Build Spark dispatcher submissions from spark-submit style arguments."""
