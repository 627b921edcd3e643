# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class RequestSignerError(Exception):
    """Base exception type for all exceptions raised by aws-request-signer."""


class ConfigurationError(RequestSignerError):
    """Exception type for static misconfiguration of a client.

    Raised when a signing name, signing region, or signature version can't be
    determined or isn't supported. These errors are never retried.
    """


class IdentityResolutionError(RequestSignerError):
    """Base exception type for all exceptions raised in identity resolution."""


class MissingCredentialsError(IdentityResolutionError):
    """Exception raised when a request must be signed but no usable credentials are
    available.

    The request is never sent. Supplying credentials and calling again is safe.
    """


class MissingExpectedParameterError(RequestSignerError, ValueError):
    """Some signers require specific signing properties to be present."""
