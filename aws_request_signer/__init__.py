# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Request signing for AWS service clients.

Resolves the signing name, signing region, and signature version of a client from
its service metadata and configuration, and signs outbound requests with them.
"""

from ._http import URI, AWSRequest, Field, Fields, HTTPResponse
from .api import ServiceAPI, ServiceMetadata
from .client import Client
from .config import Configuration, ConfigurationBuilder
from .exceptions import (
    ConfigurationError,
    IdentityResolutionError,
    MissingCredentialsError,
    RequestSignerError,
)
from .identity import AWSCredentialsIdentity
from .signers import RequestSigner, SignatureVersion, check_credentials

__version__ = "0.1.0"
__license__ = "Apache-2.0"

__all__ = (
    "AWSCredentialsIdentity",
    "AWSRequest",
    "Client",
    "Configuration",
    "ConfigurationBuilder",
    "ConfigurationError",
    "Field",
    "Fields",
    "HTTPResponse",
    "IdentityResolutionError",
    "MissingCredentialsError",
    "RequestSigner",
    "RequestSignerError",
    "ServiceAPI",
    "ServiceMetadata",
    "SignatureVersion",
    "URI",
    "check_credentials",
)
