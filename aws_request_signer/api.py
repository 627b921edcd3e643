# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self


@dataclass(kw_only=True, frozen=True)
class ServiceMetadata:
    """Signing related metadata from a service description."""

    endpoint_prefix: str | None = None
    """Short service identifier used to build default endpoints.

    Absent for services that require the endpoint to be specified.
    """

    signing_name: str | None = None
    """The name to sign requests with. Takes priority over ``endpoint_prefix``."""

    signature_version: str | None = None
    """The signature version the service expects, for example ``v4``."""

    @classmethod
    def from_dict(cls, metadata: Mapping[str, Any]) -> Self:
        return cls(
            endpoint_prefix=metadata.get("endpointPrefix"),
            signing_name=metadata.get("signingName"),
            signature_version=metadata.get("signatureVersion"),
        )


@dataclass(kw_only=True, frozen=True)
class APIOperation:
    """An operation a client can invoke."""

    name: str
    http_method: str = "POST"
    http_path: str = "/"


@dataclass(kw_only=True, frozen=True)
class ServiceAPI:
    """The parts of a service description that a client needs."""

    metadata: ServiceMetadata = field(default_factory=ServiceMetadata)
    operations: Mapping[str, APIOperation] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, description: Mapping[str, Any]) -> Self:
        """Build from a description of the form
        ``{"metadata": {...}, "operations": {"Name": {...}}}``.

        Both keys are optional.
        """
        operations = {
            name: APIOperation(
                name=name,
                http_method=definition.get("http", {}).get("method", "POST"),
                http_path=definition.get("http", {}).get("requestUri", "/"),
            )
            for name, definition in description.get("operations", {}).items()
        }
        return cls(
            metadata=ServiceMetadata.from_dict(description.get("metadata", {})),
            operations=operations,
        )
