# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import logging
from collections.abc import Mapping, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any, ClassVar, Protocol

from ._http import AWSRequest, Field, Fields, HTTPClient, HTTPResponse
from .api import APIOperation, ServiceAPI
from .config import Configuration, ConfigurationBuilder
from .endpoints import parse_endpoint
from .exceptions import (
    ConfigurationError,
    IdentityResolutionError,
    MissingCredentialsError,
)
from .identity import AWSCredentialsIdentity, AWSIdentityProperties
from .plugins import RegionalEndpointPlugin, RequestSignerPlugin
from .signers import RequestSigner, check_credentials, is_signing_capable

_LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/x-amz-json-1.1"


class Plugin(Protocol):
    """Registers configuration options on a client's configuration builder."""

    def add_options(self, builder: ConfigurationBuilder) -> None: ...


class Client:
    """A service client that signs its requests before they're sent.

    Subclasses describe their service with ``api``. Every option registered by
    ``plugins`` may be passed as a keyword argument, for example:

    .. code-block:: python

        class ExampleClient(Client):
            api = ServiceAPI.from_dict({"metadata": {"endpointPrefix": "example"}})

        client = ExampleClient(region="us-west-2", http_client=my_http_client)
    """

    api: ClassVar[ServiceAPI] = ServiceAPI()
    plugins: ClassVar[Sequence[Plugin]] = (
        RegionalEndpointPlugin(),
        RequestSignerPlugin(),
    )

    def __init__(self, **options: Any) -> None:
        """
        :param options: Option values that take precedence over the environment,
            the shared config file, and defaults.
        :raises ConfigurationError: If an option is unknown or the configuration
            can't be resolved.
        """
        self.config: Configuration = self.config_builder().build(**options)
        self._signer = RequestSigner()

    @classmethod
    def config_builder(cls) -> ConfigurationBuilder:
        """Get a builder with every option of this client registered."""
        builder = ConfigurationBuilder()
        builder.add_option("api", cls.api)
        builder.add_option("http_client")
        for plugin in cls.plugins:
            plugin.add_options(builder)
        return builder

    async def call(
        self, operation_name: str, params: Mapping[str, Any] | None = None
    ) -> HTTPResponse:
        """Invoke an operation.

        :param operation_name: The name of the operation to invoke.
        :param params: The operation input, serialized as the JSON request body.
        :raises MissingCredentialsError: If the request must be signed and no usable
            credentials are available. Nothing is sent in that case.
        :raises ConfigurationError: If the operation is unknown or no HTTP client is
            configured.
        """
        operation = self.config.api.operations.get(operation_name)
        if operation is None:
            raise ConfigurationError(f"Unknown operation: {operation_name}")

        request = self._serialize_request(operation, params or {})
        _LOGGER.debug("Serialized request for %s: %s", operation_name, request)

        if is_signing_capable(self.config.signature_version):
            credentials = await self._resolve_credentials()
            _LOGGER.debug("Request to sign: %s", request)
            self._signer.sign(
                request,
                credentials,
                self.config.sigv4_name,
                self.config.sigv4_region,
                self.config.signature_version,
                datetime.now(UTC),
                payload_signing_enabled=self.config.payload_signing_enabled,
            )

        http_client: HTTPClient | None = self.config.http_client
        if http_client is None:
            raise ConfigurationError("No http_client is configured on the client.")

        _LOGGER.debug("Sending request %s", request)
        response = await http_client.send(request)
        _LOGGER.debug("Received response: %s", response.status)
        return response

    async def _resolve_credentials(self) -> AWSCredentialsIdentity:
        resolver = self.config.aws_credentials_identity_resolver
        properties = AWSIdentityProperties(
            access_key_id=self.config.aws_access_key_id,
            secret_access_key=self.config.aws_secret_access_key,
            session_token=self.config.aws_session_token,
        )
        try:
            credentials = await resolver.get_identity(properties=properties)
        except MissingCredentialsError:
            raise
        except IdentityResolutionError as e:
            raise MissingCredentialsError(
                "Unable to sign request without credentials set. Configure "
                "credentials on the client or in the environment."
            ) from e
        return check_credentials(credentials)

    def _serialize_request(
        self, operation: APIOperation, params: Mapping[str, Any]
    ) -> AWSRequest:
        endpoint = parse_endpoint(self.config.endpoint)
        base_path = (endpoint.path or "").rstrip("/")
        destination = replace(endpoint, path=f"{base_path}{operation.http_path}")

        body = json.dumps(params).encode("utf-8")
        fields = Fields(
            [
                Field(name="Content-Type", values=[JSON_CONTENT_TYPE]),
                Field(name="Content-Length", values=[str(len(body))]),
            ]
        )
        if prefix := self.config.api.metadata.endpoint_prefix:
            fields.set_field(
                Field(name="X-Amz-Target", values=[f"{prefix}.{operation.name}"])
            )

        return AWSRequest(
            destination=destination,
            method=operation.http_method,
            fields=fields,
            body=body,
        )
