# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import pytest

from aws_request_signer import URI, ConfigurationError
from aws_request_signer.endpoints import (
    extract_region,
    global_region,
    parse_endpoint,
    partition_for_region,
    regional_endpoint,
)


@pytest.mark.parametrize(
    "host, expected",
    [
        ("svc-name.us-west-2.amazonaws.com", "us-west-2"),
        ("SVC-NAME.EU-WEST-1.AMAZONAWS.COM", "eu-west-1"),
        ("svc-name.cn-north-1.amazonaws.com.cn", "cn-north-1"),
        ("svc-name.us-gov-west-1.amazonaws.com", "us-gov-west-1"),
        ("svc-name.amazonaws.com", None),
        ("uniqueness.svc-name.us-west-2.amazonaws.com", None),
        ("svc-name.us-west-2.example.com", None),
        ("mybucket.s3.amazonaws.com", None),
        ("domain.region.amazonaws.com", None),
        ("svc-name.cn-north-1.amazonaws.com", None),
        ("localhost", None),
        ("127.0.0.1", None),
    ],
)
def test_extract_region(host: str, expected: str | None) -> None:
    assert extract_region(host) == expected


@pytest.mark.parametrize(
    "host, expected",
    [
        ("svc-name.amazonaws.com", "us-east-1"),
        ("svc-name.amazonaws.com.cn", "cn-north-1"),
        ("svc-name.us-west-2.amazonaws.com", None),
        ("localhost", None),
    ],
)
def test_global_region(host: str, expected: str | None) -> None:
    assert global_region(host) == expected


@pytest.mark.parametrize(
    "region, partition",
    [
        ("us-west-2", "aws"),
        ("cn-northwest-1", "aws-cn"),
        ("us-gov-east-1", "aws-us-gov"),
        ("us-iso-east-1", "aws-iso"),
        ("unknown-region", "aws"),
    ],
)
def test_partition_for_region(region: str, partition: str) -> None:
    assert partition_for_region(region).name == partition


def test_regional_endpoint() -> None:
    assert (
        regional_endpoint("svc-name", "us-west-2")
        == "https://svc-name.us-west-2.amazonaws.com"
    )
    assert (
        regional_endpoint("svc-name", "cn-north-1")
        == "https://svc-name.cn-north-1.amazonaws.com.cn"
    )


def test_parse_endpoint_without_scheme() -> None:
    assert parse_endpoint("svc-name.amazonaws.com") == URI(
        host="svc-name.amazonaws.com"
    )


def test_parse_endpoint_with_all_components() -> None:
    uri = parse_endpoint("http://localhost:8000/base?key=value")
    assert uri.scheme == "http"
    assert uri.host == "localhost"
    assert uri.port == 8000
    assert uri.path == "/base"
    assert uri.query == "key=value"


def test_parse_endpoint_returns_uri_unchanged() -> None:
    uri = URI(host="localhost", port=8000)
    assert parse_endpoint(uri) is uri


@pytest.mark.parametrize("endpoint", ["https://localhost:port", "https://"])
def test_parse_invalid_endpoint(endpoint: str) -> None:
    with pytest.raises(ConfigurationError):
        parse_endpoint(endpoint)
