"""Serialization of a submission into the dispatcher REST payload."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Mapping

from sparkdispatch import literals
from sparkdispatch.utils import PropertyFile, stringify


@dataclass
class SubmissionRequest:
    """Class representing the body of a CreateSubmissionRequest."""

    app_resource: str
    main_class: str = ""
    app_args: list[str] = field(default_factory=list)
    spark_properties: PropertyFile = field(default_factory=PropertyFile.empty)
    environment_variables: dict[str, str] = field(default_factory=dict)
    client_spark_version: str = literals.DEFAULT_SPARK_VERSION
    action: str = literals.SUBMISSION_ACTION

    def to_dict(self) -> dict[str, Any]:
        """Return the request as a JSON compatible dictionary."""
        return {
            "action": self.action,
            "appResource": self.app_resource,
            "mainClass": self.main_class or "",
            "appArgs": [str(arg) for arg in self.app_args],
            "clientSparkVersion": self.client_spark_version,
            "environmentVariables": {
                str(k): stringify(v) for k, v in self.environment_variables.items()
            },
            "sparkProperties": {
                str(k): stringify(v) for k, v in self.spark_properties.props.items()
            },
        }

    def to_json(self, indent: int | None = None) -> str:
        """Return the request as JSON text."""
        return json.dumps(self.to_dict(), indent=indent)


def serialize(
    app_resource: str,
    main_class: str | None,
    app_args: list[str],
    props: PropertyFile | Mapping[str, Any],
    environment_variables: Mapping[str, str] | None = None,
    client_spark_version: str = literals.DEFAULT_SPARK_VERSION,
) -> str:
    """Render a submission as the JSON document expected by the dispatcher."""
    return SubmissionRequest(
        app_resource=app_resource,
        main_class=main_class or "",
        app_args=list(app_args),
        spark_properties=props if isinstance(props, PropertyFile) else PropertyFile(dict(props)),
        environment_variables=dict(environment_variables or {}),
        client_spark_version=client_spark_version,
    ).to_json()
