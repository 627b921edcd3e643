# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from .regional_endpoint import RegionalEndpointPlugin
from .request_signer import (
    RequestSignerPlugin,
    resolve_sigv4_name,
    resolve_sigv4_region,
)

__all__ = (
    "RegionalEndpointPlugin",
    "RequestSignerPlugin",
    "resolve_sigv4_name",
    "resolve_sigv4_region",
)
