# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
from datetime import UTC, datetime

import pytest
from freezegun import freeze_time

from aws_request_signer import (
    AWSCredentialsIdentity,
    Client,
    ConfigurationError,
    MissingCredentialsError,
    ServiceAPI,
)
from aws_request_signer.identity import AWSIdentityProperties
from aws_request_signer.testing import MockHTTPClient, MockHTTPClientError

SIGNED_API = ServiceAPI.from_dict(
    {
        "metadata": {"endpointPrefix": "svc-name", "signatureVersion": "v4"},
        "operations": {
            "ListThings": {},
            "GetThing": {"http": {"method": "GET", "requestUri": "/things"}},
        },
    }
)


class SignedClient(Client):
    api = SIGNED_API


class UnsignedClient(Client):
    api = ServiceAPI.from_dict(
        {
            "metadata": {"endpointPrefix": "svc-name"},
            "operations": {"ListThings": {}},
        }
    )


class NoMetadataClient(Client):
    api = ServiceAPI.from_dict({"operations": {"DoSomething": {}}})


class _FixedResolver:
    def __init__(self, identity: AWSCredentialsIdentity) -> None:
        self.identity = identity

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        return self.identity


def _http_client(responses: int = 1) -> MockHTTPClient:
    http_client = MockHTTPClient()
    for _ in range(responses):
        http_client.add_response(status=200, body=b"{}")
    return http_client


@pytest.mark.asyncio
async def test_missing_credentials_fail_before_sending() -> None:
    http_client = _http_client()
    client = SignedClient(region="us-west-2", http_client=http_client)

    with pytest.raises(MissingCredentialsError):
        await client.call("ListThings")
    assert http_client.call_count == 0


@pytest.mark.asyncio
async def test_missing_credentials_with_explicit_signature_version() -> None:
    http_client = _http_client()
    client = UnsignedClient(
        endpoint="http://localhost:8000",
        region="us-west-2",
        signature_version="v4",
        http_client=http_client,
    )

    with pytest.raises(MissingCredentialsError):
        await client.call("ListThings")
    assert http_client.call_count == 0


@pytest.mark.asyncio
async def test_missing_credentials_for_service_without_metadata() -> None:
    http_client = _http_client()
    client = NoMetadataClient(
        signature_version="v4",
        endpoint="http://domain.region.amazonaws.com",
        region="region",
        http_client=http_client,
    )

    assert client.config.sigv4_name is None
    with pytest.raises(MissingCredentialsError):
        await client.call("DoSomething")
    assert http_client.call_count == 0


@pytest.mark.asyncio
async def test_missing_signing_name_fails_when_signing() -> None:
    http_client = _http_client()
    client = NoMetadataClient(
        signature_version="v4",
        endpoint="http://domain.region.amazonaws.com",
        region="region",
        http_client=http_client,
        aws_access_key_id="AKID",
        aws_secret_access_key="SECRET",
    )

    with pytest.raises(ConfigurationError, match="signing name"):
        await client.call("DoSomething")
    assert http_client.call_count == 0


@pytest.mark.asyncio
@freeze_time("2023-01-01")
async def test_expired_credentials_fail_before_sending() -> None:
    http_client = _http_client()
    expired = AWSCredentialsIdentity(
        access_key_id="AKID",
        secret_access_key="SECRET",
        expiration=datetime(2022, 12, 31, tzinfo=UTC),
    )
    client = SignedClient(
        region="us-west-2",
        http_client=http_client,
        aws_credentials_identity_resolver=_FixedResolver(expired),
    )

    with pytest.raises(MissingCredentialsError, match="expired"):
        await client.call("ListThings")
    assert http_client.call_count == 0


@pytest.mark.asyncio
@freeze_time("2015-08-30 12:36:00")
async def test_request_is_signed_with_configured_credentials() -> None:
    http_client = _http_client()
    client = SignedClient(
        region="us-west-2",
        http_client=http_client,
        aws_access_key_id="AKID",
        aws_secret_access_key="SECRET",
        aws_session_token="TOKEN",
    )

    response = await client.call("ListThings", {"Limit": 10})

    assert response.status == 200
    assert http_client.call_count == 1
    request = http_client.captured_requests[0]
    assert request.method == "POST"
    assert request.destination.build() == (
        "https://svc-name.us-west-2.amazonaws.com/"
    )
    assert json.loads(request.body) == {"Limit": 10}
    assert request.fields["X-Amz-Target"].as_string() == "svc-name.ListThings"
    assert request.fields["X-Amz-Date"].as_string() == "20150830T123600Z"
    assert request.fields["X-Amz-Security-Token"].as_string() == "TOKEN"
    authorization = request.fields["Authorization"].as_string()
    assert authorization.startswith(
        "AWS4-HMAC-SHA256 Credential=AKID/20150830/us-west-2/svc-name/aws4_request, "
    )


@pytest.mark.asyncio
async def test_request_is_signed_with_environment_credentials(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "env-akid")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "env-secret")
    http_client = _http_client()
    client = SignedClient(
        endpoint="svc-name.amazonaws.com", region="eu-west-1", http_client=http_client
    )

    await client.call("GetThing")

    request = http_client.captured_requests[0]
    assert request.method == "GET"
    assert request.destination.path == "/things"
    assert "/us-east-1/svc-name/aws4_request" in (
        request.fields["Authorization"].as_string()
    )


@pytest.mark.asyncio
async def test_signing_overrides() -> None:
    http_client = _http_client()
    client = SignedClient(
        endpoint="http://localhost:8000",
        region="us-west-2",
        sigv4_name="custom-name",
        sigv4_region="custom-region",
        http_client=http_client,
        aws_access_key_id="AKID",
        aws_secret_access_key="SECRET",
    )

    await client.call("ListThings")

    authorization = http_client.captured_requests[0].fields["Authorization"]
    assert "/custom-region/custom-name/aws4_request" in authorization.as_string()


@pytest.mark.asyncio
async def test_unsigned_service_sends_without_credentials() -> None:
    http_client = _http_client()
    client = UnsignedClient(region="us-west-2", http_client=http_client)

    await client.call("ListThings")

    request = http_client.captured_requests[0]
    assert "Authorization" not in request.fields
    assert "X-Amz-Date" not in request.fields


@pytest.mark.asyncio
async def test_unknown_operation() -> None:
    client = UnsignedClient(region="us-west-2", http_client=_http_client())
    with pytest.raises(ConfigurationError, match="DeleteThings"):
        await client.call("DeleteThings")


@pytest.mark.asyncio
async def test_missing_http_client() -> None:
    client = UnsignedClient(region="us-west-2")
    with pytest.raises(ConfigurationError, match="http_client"):
        await client.call("ListThings")


@pytest.mark.asyncio
async def test_mock_http_client_requires_queued_responses() -> None:
    http_client = MockHTTPClient()
    client = UnsignedClient(region="us-west-2", http_client=http_client)
    with pytest.raises(MockHTTPClientError):
        await client.call("ListThings")
    assert http_client.call_count == 1


def test_unknown_option() -> None:
    with pytest.raises(ConfigurationError, match="not_an_option"):
        SignedClient(region="us-west-2", not_an_option=True)


def test_signing_parameters_resolved_at_construction() -> None:
    client = SignedClient(
        endpoint="http://uniqueness.svc-name.us-west-2.amazonaws.com",
        region="eu-west-1",
    )
    assert client.config.sigv4_name == "svc-name"
    assert client.config.sigv4_region == "eu-west-1"
    assert client.config.signature_version == "v4"


def test_signed_client_without_region() -> None:
    with pytest.raises(ConfigurationError, match="signing region"):
        SignedClient(endpoint="localhost")
