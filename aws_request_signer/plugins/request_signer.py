# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
from typing import Any, Final

from .._http import URI
from ..api import ServiceMetadata
from ..config import SOURCE_OVERRIDE, Configuration, ConfigurationBuilder
from ..endpoints import extract_region, global_region, parse_endpoint
from ..exceptions import ConfigurationError
from ..identity import create_default_chain
from ..signers import SIGNING_STRATEGIES, is_signing_capable
from .regional_endpoint import service_metadata

logger: Final = logging.getLogger(__name__)


def resolve_sigv4_name(
    metadata: ServiceMetadata, *, required: bool = True
) -> str | None:
    """Compute the default signing name for a service.

    The ``signingName`` metadata is preferred over the ``endpointPrefix``. An explicit
    ``sigv4_name`` option takes precedence over both and never reaches this function.

    :param metadata: The service's metadata.
    :param required: Whether a missing name is an error.
    :raises ConfigurationError: If no name can be determined and one is required.
    """
    name = metadata.signing_name or metadata.endpoint_prefix
    if name is None and required:
        raise ConfigurationError(
            "Cannot determine signing name: the service metadata has neither a "
            "signingName nor an endpointPrefix. Set the sigv4_name option."
        )
    return name


def resolve_sigv4_region(
    endpoint: str | URI | None,
    region: str | None,
    *,
    prefer_region: bool = False,
    required: bool = True,
) -> str | None:
    """Compute the default signing region.

    In order: the global region for global endpoints such as
    ``svc-name.amazonaws.com``, the region when ``prefer_region`` is set, the region
    in the endpoint host, and finally the region. An explicit ``sigv4_region`` option
    takes precedence over all of these and never reaches this function.

    :param endpoint: The client's endpoint.
    :param region: The client's configured region.
    :param prefer_region: Whether the region was explicitly provided, in which case
        it wins over a region found in the endpoint host.
    :param required: Whether a missing region is an error.
    :raises ConfigurationError: If no region can be determined and one is required.
    """
    host = parse_endpoint(endpoint).host if endpoint else None

    if host is not None and (global_signing_region := global_region(host)):
        return global_signing_region
    if prefer_region and region:
        return region
    if host is not None and (endpoint_region := extract_region(host)):
        return endpoint_region
    if region:
        return region
    if required:
        raise ConfigurationError(
            "Cannot determine signing region from the endpoint or the region "
            "option. Set the region or sigv4_region option."
        )
    return None


def _default_sigv4_name(cfg: Any) -> str | None:
    # A missing name is reported when a request is signed, after credentials are
    # checked.
    return resolve_sigv4_name(service_metadata(cfg), required=False)


def _default_sigv4_region(cfg: Any) -> str | None:
    region = cfg.resolve("region")
    return resolve_sigv4_region(
        cfg.endpoint,
        region.value,
        prefer_region=region.source == SOURCE_OVERRIDE,
        required=is_signing_capable(cfg.signature_version),
    )


def _validate_signature_version(value: Any, config: Configuration) -> None:
    if value is not None and value not in SIGNING_STRATEGIES:
        raise ConfigurationError(
            f"Unsupported signature version: {value!r}. Supported versions: "
            f"{', '.join(sorted(SIGNING_STRATEGIES))}"
        )


def _validate_signing_parameters(value: Any, config: Configuration) -> None:
    if not is_signing_capable(config.signature_version):
        return
    if not config.sigv4_region:
        raise ConfigurationError("Cannot determine signing region.")
    logger.debug(
        "Resolved signing parameters: name=%s region=%s version=%s",
        config.sigv4_name,
        config.sigv4_region,
        config.signature_version,
    )


class RequestSignerPlugin:
    """Adds the options that control how requests are signed.

    The signing name and region are resolved once, when the configuration is built.
    A signed service without a signing name fails when a request is signed.
    """

    def add_options(self, builder: ConfigurationBuilder) -> None:
        builder.add_option(
            "signature_version",
            default_factory=lambda cfg: service_metadata(cfg).signature_version,
            validator=_validate_signature_version,
        )
        builder.add_option("sigv4_name", default_factory=_default_sigv4_name)
        builder.add_option(
            "sigv4_region",
            default_factory=_default_sigv4_region,
            validator=_validate_signing_parameters,
        )
        builder.add_option("aws_access_key_id")
        builder.add_option("aws_secret_access_key")
        builder.add_option("aws_session_token")
        builder.add_option(
            "aws_credentials_identity_resolver",
            default_factory=lambda cfg: create_default_chain(),
        )
        builder.add_option("payload_signing_enabled", default=True)
