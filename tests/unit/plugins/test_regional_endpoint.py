# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from typing import Any

import pytest

from aws_request_signer import (
    Configuration,
    ConfigurationBuilder,
    ConfigurationError,
    ServiceAPI,
)
from aws_request_signer.config import SOURCE_CONFIG_FILE, SOURCE_ENVIRONMENT
from aws_request_signer.plugins import RegionalEndpointPlugin


def _build(
    endpoint_prefix: str | None = "svc-name",
    environment: dict[str, str] | None = None,
    config_file: dict[str, str] | None = None,
    **overrides: Any,
) -> Configuration:
    builder = ConfigurationBuilder(
        environment=environment or {},
        config_file_loader=lambda: config_file or {},
    )
    metadata = {"endpointPrefix": endpoint_prefix} if endpoint_prefix else {}
    builder.add_option("api", ServiceAPI.from_dict({"metadata": metadata}))
    RegionalEndpointPlugin().add_options(builder)
    return builder.build(**overrides)


def test_default_endpoint_from_region() -> None:
    config = _build(region="us-west-2")
    assert config.endpoint == "https://svc-name.us-west-2.amazonaws.com"
    assert config.region_defaults == {}


def test_region_from_environment() -> None:
    config = _build(environment={"AWS_REGION": "eu-west-1"})
    assert config.region == "eu-west-1"
    assert config.get_config_value_object("region").source == SOURCE_ENVIRONMENT


def test_region_from_config_file() -> None:
    config = _build(config_file={"region": "eu-central-1"})
    assert config.region == "eu-central-1"
    assert config.get_config_value_object("region").source == SOURCE_CONFIG_FILE
    assert config.endpoint == "https://svc-name.eu-central-1.amazonaws.com"


def test_endpoint_from_environment() -> None:
    config = _build(environment={"AWS_ENDPOINT_URL": "http://localhost:8000"})
    assert config.endpoint == "http://localhost:8000"
    assert config.region is None


def test_default_endpoint_requires_region() -> None:
    with pytest.raises(ConfigurationError, match="region"):
        _build()


def test_default_endpoint_requires_endpoint_prefix() -> None:
    with pytest.raises(ConfigurationError, match="endpoint option is required"):
        _build(endpoint_prefix=None, region="us-west-2")
