# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from enum import StrEnum
from hashlib import sha256
from io import BytesIO
from typing import Final, Protocol, Required, TypedDict
from urllib.parse import parse_qsl, quote

from awscrt import auth as crt_auth
from awscrt import http as crt_http

from ._http import URI, AWSRequest, Field
from .exceptions import (
    ConfigurationError,
    MissingCredentialsError,
    MissingExpectedParameterError,
)
from .identity import AWSCredentialsIdentity
from .utils import ensure_utc, remove_dot_segments

logger: Final = logging.getLogger(__name__)

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "accept",
    "accept-encoding",
    "authorization",
    "connection",
    "expect",
    "user-agent",
    "x-amzn-trace-id",
)
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: str
    payload_signing_enabled: bool
    content_checksum_enabled: bool
    uri_encode_path: bool


class Signer(Protocol):
    """A signing scheme that adds authentication fields to a request."""

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: SigV4SigningProperties,
    ) -> AWSRequest:
        """Sign the request in place and return it.

        :param request: The request to be signed.
        :param identity: The credentials to sign the request with.
        :param properties: Additional properties used to sign the request.
        """
        ...


def _require_date(properties: SigV4SigningProperties) -> str:
    date = properties.get("date")
    if date is None:
        raise MissingExpectedParameterError(
            "Cannot sign without a valid date in your signing properties."
        )
    return date


def _should_sha256_sign_payload(
    *, request: AWSRequest, properties: SigV4SigningProperties
) -> bool:
    # All insecure connections should be signed
    if request.destination.scheme != "https":
        return True

    return properties.get("payload_signing_enabled", True)


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm."""

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: SigV4SigningProperties,
    ) -> AWSRequest:
        """Generate and apply a SigV4 Signature to the supplied request in place.

        :param request: An AWSRequest to sign prior to sending to the service.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        :param properties: SigV4SigningProperties to define signing primitives such
            as the target service, region, and date.
        """
        date = _require_date(properties)
        self._apply_required_fields(request=request, date=date, identity=identity)

        canonical_request = self.canonical_request(
            properties=properties, request=request
        )
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, properties=properties
        )
        signature = self._signature(
            string_to_sign=string_to_sign,
            secret_key=identity.secret_access_key,
            properties=properties,
        )

        signing_fields = self._normalize_signing_fields(request=request)
        credential = f"{identity.access_key_id}/{self._scope(properties)}"
        request.fields.set_field(
            self.generate_authorization_field(
                credential=credential,
                signed_headers=list(signing_fields),
                signature=signature,
            )
        )
        return request

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        auth_str = (
            f"AWS4-HMAC-SHA256 Credential={credential}, "
            f"SignedHeaders={';'.join(signed_headers)}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def canonical_request(
        self, *, properties: SigV4SigningProperties, request: AWSRequest
    ) -> str:
        """The canonical request is a standardized string laying out the components used
        in the SigV4 signing algorithm. This is useful to quickly compare inputs to find
        signature mismatches and unintended variances.

        SigV4 defines the canonical request as:
            <HTTPMethod>\n
            <CanonicalURI>\n
            <CanonicalQueryString>\n
            <CanonicalHeaders>\n
            <SignedHeaders>\n
            <HashedPayload>
        """
        # The payload goes first so that the checksum field, if enabled, is in place
        # before the canonical fields are chosen.
        canonical_payload = self._format_canonical_payload(
            request=request, properties=properties
        )
        canonical_path = self._format_canonical_path(
            path=request.destination.path, properties=properties
        )
        canonical_query = self._format_canonical_query(query=request.destination.query)
        normalized_fields = self._normalize_signing_fields(request=request)
        canonical_fields = "".join(
            f"{key}:{' '.join(value.split())}\n"
            for key, value in normalized_fields.items()
        )
        return (
            f"{request.method.upper()}\n"
            f"{canonical_path}\n"
            f"{canonical_query}\n"
            f"{canonical_fields}\n"
            f"{';'.join(normalized_fields)}\n"
            f"{canonical_payload}"
        )

    def string_to_sign(
        self, *, canonical_request: str, properties: SigV4SigningProperties
    ) -> str:
        """The string to sign concatenates the signing algorithm, the signing date,
        the credential scope, and a hash of the canonical request.

        SigV4 defines the string to sign as:
            Algorithm \n
            RequestDateTime \n
            CredentialScope  \n
            HashedCanonicalRequest
        """
        return (
            "AWS4-HMAC-SHA256\n"
            f"{_require_date(properties)}\n"
            f"{self._scope(properties)}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def _scope(self, properties: SigV4SigningProperties) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return (
            f"{_require_date(properties)[0:8]}/{properties['region']}/"
            f"{properties['service']}/aws4_request"
        )

    def _signature(
        self,
        *,
        string_to_sign: str,
        secret_key: str,
        properties: SigV4SigningProperties,
    ) -> str:
        """Sign the string to sign.

        In SigV4, a signing key is created that is scoped to a specific region and
        service. The date, region, service and resulting signing key are individually
        hashed, then the composite hash is used to sign the string to sign.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        """
        k_date = self._hash(
            key=f"AWS4{secret_key}".encode(), value=_require_date(properties)[0:8]
        )
        k_region = self._hash(key=k_date, value=properties["region"])
        k_service = self._hash(key=k_region, value=properties["service"])
        k_signing = self._hash(key=k_service, value="aws4_request")
        return self._hash(key=k_signing, value=string_to_sign).hex()

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _apply_required_fields(
        self, *, request: AWSRequest, date: str, identity: AWSCredentialsIdentity
    ) -> None:
        # set_field overwrites values left over from an earlier signing attempt.
        request.fields.set_field(Field(name="X-Amz-Date", values=[date]))
        if identity.session_token:
            request.fields.set_field(
                Field(name="X-Amz-Security-Token", values=[identity.session_token])
            )
        elif "X-Amz-Security-Token" in request.fields:
            del request.fields["X-Amz-Security-Token"]

    def _format_canonical_path(
        self, *, path: str | None, properties: SigV4SigningProperties
    ) -> str:
        if not path:
            path = "/"

        if properties.get("uri_encode_path", True):
            return quote(string=remove_dot_segments(path), safe="/")
        return remove_dot_segments(path, remove_consecutive_slashes=False)

    def _format_canonical_query(self, *, query: str | None) -> str:
        if not query:
            return ""

        query_parts = (
            (quote(string=key, safe=""), quote(string=value, safe=""))
            for key, value in parse_qsl(qs=query, keep_blank_values=True)
        )
        # key-value pairs must be in sorted order for their encoded forms.
        return "&".join(f"{key}={value}" for key, value in sorted(query_parts))

    def _normalize_signing_fields(self, *, request: AWSRequest) -> dict[str, str]:
        normalized_fields = {
            field.name.lower(): field.as_string()
            for field in request.fields
            if field.name.lower() not in HEADERS_EXCLUDED_FROM_SIGNING
        }
        if "host" not in normalized_fields:
            normalized_fields["host"] = _host_field(request.destination)

        return dict(sorted(normalized_fields.items()))

    def _format_canonical_payload(
        self, *, request: AWSRequest, properties: SigV4SigningProperties
    ) -> str:
        if not _should_sha256_sign_payload(request=request, properties=properties):
            payload_hash = UNSIGNED_PAYLOAD
        elif not request.body:
            payload_hash = EMPTY_SHA256_HASH
        else:
            payload_hash = sha256(request.body).hexdigest()

        if properties.get("content_checksum_enabled", False):
            request.fields.set_field(
                Field(name="X-Amz-Content-SHA256", values=[payload_hash])
            )
        return payload_hash


def _host_field(uri: URI) -> str:
    if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
        uri = uri.with_port(None)
    return uri.netloc


class CRTSigV4ASigner:
    """Request signer for the asymmetric AWS Signature Version 4 algorithm.

    The ECDSA signing itself is delegated to the AWS Common Runtime. The region in
    the signing properties becomes the region set the signature is valid for.
    """

    # Fields the runtime may add to a request while signing it.
    SIGNING_FIELDS: tuple[str, ...] = (
        "authorization",
        "x-amz-content-sha256",
        "x-amz-date",
        "x-amz-region-set",
        "x-amz-security-token",
    )

    def sign(
        self,
        *,
        request: AWSRequest,
        identity: AWSCredentialsIdentity,
        properties: SigV4SigningProperties,
    ) -> AWSRequest:
        date = datetime.strptime(
            _require_date(properties), SIGV4_TIMESTAMP_FORMAT
        ).replace(tzinfo=UTC)

        if properties.get("content_checksum_enabled", False):
            body_header = crt_auth.AwsSignedBodyHeaderType.X_AMZ_CONTENT_SHA_256
        else:
            body_header = crt_auth.AwsSignedBodyHeaderType.NONE

        signed_body_value = None
        if not _should_sha256_sign_payload(request=request, properties=properties):
            signed_body_value = crt_auth.AwsSignedBodyValue.UNSIGNED_PAYLOAD

        signing_config = crt_auth.AwsSigningConfig(
            algorithm=crt_auth.AwsSigningAlgorithm.V4_ASYMMETRIC,
            signature_type=crt_auth.AwsSignatureType.HTTP_REQUEST_HEADERS,
            credentials_provider=crt_auth.AwsCredentialsProvider.new_static(
                identity.access_key_id,
                identity.secret_access_key,
                identity.session_token,
            ),
            region=properties["region"],
            service=properties["service"],
            date=date,
            use_double_uri_encode=properties.get("uri_encode_path", True),
            signed_body_value=signed_body_value,
            signed_body_header_type=body_header,
        )

        crt_request = self._to_crt_request(request)
        signed = crt_auth.aws_sign_request(crt_request, signing_config).result()

        for name, value in signed.headers:
            if name.lower() in self.SIGNING_FIELDS:
                request.fields.set_field(Field(name=name, values=[value]))
        return request

    def _to_crt_request(self, request: AWSRequest) -> crt_http.HttpRequest:
        headers = crt_http.HttpHeaders()
        for field in request.fields:
            if field.name.lower() in self.SIGNING_FIELDS:
                continue
            for name, value in field.as_tuples():
                headers.add(name, value)
        if headers.get("host") is None:
            headers.add("Host", _host_field(request.destination))

        destination = request.destination
        path = destination.path or "/"
        if destination.query:
            path = f"{path}?{destination.query}"

        return crt_http.HttpRequest(
            method=request.method.upper(),
            path=path,
            headers=headers,
            body_stream=BytesIO(request.body) if request.body else None,
        )


class SignatureVersion(StrEnum):
    """The signature versions requests can be signed with."""

    V4 = "v4"
    V4A = "v4a"


SIGNING_STRATEGIES: Final[Mapping[SignatureVersion, Signer]] = {
    SignatureVersion.V4: SigV4Signer(),
    SignatureVersion.V4A: CRTSigV4ASigner(),
}


def is_signing_capable(signature_version: str | None) -> bool:
    """Whether requests for a signature version need credentials and a signature."""
    return signature_version is not None and signature_version in SIGNING_STRATEGIES


def check_credentials(
    credentials: AWSCredentialsIdentity | None,
) -> AWSCredentialsIdentity:
    """Ensure usable credentials are present before a signed request is dispatched.

    :param credentials: The resolved credentials, if any.
    :returns: The credentials, unchanged.
    :raises MissingCredentialsError: If there are no credentials, a key is empty, or
        the credentials have expired.
    """
    if credentials is None:
        raise MissingCredentialsError(
            "Unable to sign request without credentials set. Configure credentials "
            "on the client or in the environment."
        )
    if not credentials.access_key_id or not credentials.secret_access_key:
        raise MissingCredentialsError(
            "Unable to sign request: both an access key id and a secret access key "
            "are required."
        )
    if credentials.is_expired:
        raise MissingCredentialsError(
            f"Provided credentials expired at {credentials.expiration}. Please "
            "refresh the credentials or update the expiration."
        )
    return credentials


class RequestSigner:
    """Selects a signing strategy by signature version and applies it to requests.

    Signing is stateless and may be invoked concurrently for different requests.
    """

    def __init__(self, strategies: Mapping[str, Signer] | None = None) -> None:
        """
        :param strategies: The signing strategy for each supported signature version.
        """
        self._strategies = strategies if strategies is not None else SIGNING_STRATEGIES

    def strategy(self, signature_version: str) -> Signer:
        """Get the strategy for a signature version.

        :raises ConfigurationError: If the signature version isn't supported.
        """
        try:
            return self._strategies[signature_version]
        except KeyError:
            raise ConfigurationError(
                f"Unsupported signature version: {signature_version!r}. Supported "
                f"versions: {', '.join(sorted(self._strategies))}"
            ) from None

    def sign(
        self,
        request: AWSRequest,
        credentials: AWSCredentialsIdentity | None,
        sigv4_name: str | None,
        sigv4_region: str | None,
        signature_version: str,
        timestamp: datetime,
        *,
        payload_signing_enabled: bool = True,
        content_checksum_enabled: bool = False,
    ) -> AWSRequest:
        """Sign a request in place.

        :param request: The request to sign. Authentication fields are added to it.
        :param credentials: The credentials to sign with.
        :param sigv4_name: The signing name of the service.
        :param sigv4_region: The region to scope the signature to.
        :param signature_version: The signature version, for example ``v4``.
        :param timestamp: The signing time.
        :returns: The same request object.
        """
        strategy = self.strategy(signature_version)
        identity = check_credentials(credentials)
        if not sigv4_name:
            raise ConfigurationError("Unable to sign request without a signing name.")
        if not sigv4_region:
            raise ConfigurationError(
                "Unable to sign request without a signing region."
            )

        properties = SigV4SigningProperties(
            region=sigv4_region,
            service=sigv4_name,
            date=ensure_utc(timestamp).strftime(SIGV4_TIMESTAMP_FORMAT),
            payload_signing_enabled=payload_signing_enabled,
            content_checksum_enabled=content_checksum_enabled,
        )
        logger.debug("Signing request with %s: %s", signature_version, request)
        return strategy.sign(request=request, identity=identity, properties=properties)
