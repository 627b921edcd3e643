# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Final, Protocol, TypedDict

from .exceptions import IdentityResolutionError
from .utils import ensure_utc

logger: Final = logging.getLogger(__name__)


@dataclass(kw_only=True)
class AWSCredentialsIdentity:
    """A bundle of AWS credentials.

    Signers only hold a reference to an identity for the duration of a single
    signing operation.
    """

    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = None
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """The expiration time of the identity.

    If time zone is provided, it is updated to UTC. The value must always be in UTC.
    """

    account_id: str | None = None
    """The AWS account's ID."""

    def __post_init__(self) -> None:
        if self.expiration is not None:
            self.expiration = ensure_utc(self.expiration)

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired."""
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= self.expiration

    def __repr__(self) -> str:
        return (
            f"AWSCredentialsIdentity(access_key_id={self.access_key_id!r}, "
            f"expiration={self.expiration!r})"
        )


class AWSIdentityProperties(TypedDict, total=False):
    access_key_id: str | None
    secret_access_key: str | None
    session_token: str | None


class IdentityResolver(Protocol):
    """Used to load AWS credentials from a given source."""

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        """Load the user's identity from this resolver.

        :param properties: Properties used to help determine the identity to return.
        :raises IdentityResolutionError: If this source has no credentials.
        """
        ...


class StaticCredentialsResolver:
    """Resolve credentials that were set directly on the client config."""

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        access_key_id = properties.get("access_key_id")
        secret_access_key = properties.get("secret_access_key")
        if access_key_id and secret_access_key:
            return AWSCredentialsIdentity(
                access_key_id=access_key_id,
                secret_access_key=secret_access_key,
                session_token=properties.get("session_token"),
            )
        raise IdentityResolutionError(
            "Attempted to resolve AWS credentials from config, but credentials "
            "weren't configured."
        )


class EnvironmentCredentialsResolver:
    """Resolves AWS Credentials from system environment variables."""

    def __init__(self) -> None:
        self._credentials: AWSCredentialsIdentity | None = None

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        if self._credentials is not None:
            return self._credentials

        access_key_id = os.getenv("AWS_ACCESS_KEY_ID")
        secret_access_key = os.getenv("AWS_SECRET_ACCESS_KEY")

        if not access_key_id or not secret_access_key:
            raise IdentityResolutionError(
                "AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required"
            )

        self._credentials = AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=os.getenv("AWS_SESSION_TOKEN"),
            account_id=os.getenv("AWS_ACCOUNT_ID"),
        )
        return self._credentials


class ChainedIdentityResolver:
    """Attempts to resolve an identity by checking a sequence of sub-resolvers.

    If a nested resolver raises a :py:class:`IdentityResolutionError`, the next
    resolver in the chain will be attempted. A resolved identity is cached until it
    expires.
    """

    def __init__(self, resolvers: Sequence[IdentityResolver]) -> None:
        """Construct a ChainedIdentityResolver.

        :param resolvers: The sequence of resolvers to resolve identity from.
        """
        self._resolvers = resolvers
        self._cached: AWSCredentialsIdentity | None = None

    async def get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        if self._cached is None or self._cached.is_expired:
            self._cached = await self._get_identity(properties=properties)
        return self._cached

    async def _get_identity(
        self, *, properties: AWSIdentityProperties
    ) -> AWSCredentialsIdentity:
        logger.debug("Attempting to resolve identity from resolver chain.")
        for resolver in self._resolvers:
            try:
                logger.debug("Attempting to resolve identity from %s.", type(resolver))
                return await resolver.get_identity(properties=properties)
            except IdentityResolutionError as e:
                logger.debug(
                    "Failed to resolve identity from %s: %s", type(resolver), e
                )

        raise IdentityResolutionError("Failed to resolve identity from resolver chain.")


def create_default_chain() -> IdentityResolver:
    """Creates the default credentials resolver chain.

    Credentials set on the client config take priority over the environment.
    """
    return ChainedIdentityResolver(
        resolvers=(
            StaticCredentialsResolver(),
            EnvironmentCredentialsResolver(),
        )
    )
