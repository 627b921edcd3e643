# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from typing import Any

from ..api import ServiceMetadata
from ..config import ConfigurationBuilder
from ..endpoints import regional_endpoint
from ..exceptions import ConfigurationError


def service_metadata(cfg: Any) -> ServiceMetadata:
    """Get the service metadata from the ``api`` option, if one is set."""
    api = cfg.api
    if api is None:
        return ServiceMetadata()
    return api.metadata


def _default_endpoint(cfg: Any) -> str:
    prefix = service_metadata(cfg).endpoint_prefix
    if prefix is None:
        raise ConfigurationError(
            "This service has no default endpoint. The endpoint option is required."
        )
    region = cfg.region
    if not region:
        raise ConfigurationError(
            "Unable to build a default endpoint without a region. Set the region "
            "option or the AWS_REGION environment variable."
        )
    return regional_endpoint(prefix, region)


class RegionalEndpointPlugin:
    """Adds the ``region``, ``region_defaults`` and ``endpoint`` options.

    ``region`` may be given as a string or as a zero-argument callable, which is
    called once when the configuration is built.
    """

    def add_options(self, builder: ConfigurationBuilder) -> None:
        builder.add_option(
            "region", env_var="AWS_REGION", config_key="region", lazy=True
        )
        builder.add_option("region_defaults", default_factory=lambda cfg: {})
        builder.add_option(
            "endpoint",
            env_var="AWS_ENDPOINT_URL",
            config_key="endpoint_url",
            default_factory=_default_endpoint,
        )
