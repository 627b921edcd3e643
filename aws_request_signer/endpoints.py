# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

from ._http import URI
from .exceptions import ConfigurationError

_LABEL_RE: Final = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


@dataclass(kw_only=True, frozen=True)
class Partition:
    """A group of regions that share a DNS suffix."""

    name: str
    dns_suffix: str
    region_regex: re.Pattern[str]
    global_region: str
    """The region that global endpoints in this partition are signed for."""

    def matches_region(self, region: str) -> bool:
        return self.region_regex.match(region) is not None


PARTITIONS: Final[tuple[Partition, ...]] = (
    Partition(
        name="aws",
        dns_suffix="amazonaws.com",
        region_regex=re.compile(r"^(us|eu|ap|sa|ca|me|af|il|mx)-\w+-\d+$"),
        global_region="us-east-1",
    ),
    Partition(
        name="aws-cn",
        dns_suffix="amazonaws.com.cn",
        region_regex=re.compile(r"^cn-\w+-\d+$"),
        global_region="cn-north-1",
    ),
    Partition(
        name="aws-us-gov",
        dns_suffix="amazonaws.com",
        region_regex=re.compile(r"^us-gov-\w+-\d+$"),
        global_region="us-gov-west-1",
    ),
    Partition(
        name="aws-iso",
        dns_suffix="c2s.ic.gov",
        region_regex=re.compile(r"^us-iso-\w+-\d+$"),
        global_region="us-iso-east-1",
    ),
    Partition(
        name="aws-iso-b",
        dns_suffix="sc2s.sgov.gov",
        region_regex=re.compile(r"^us-isob-\w+-\d+$"),
        global_region="us-isob-east-1",
    ),
)
DEFAULT_PARTITION: Final = PARTITIONS[0]


def _split_host(host: str) -> tuple[Partition, list[str]] | None:
    """Split a host into its partition and the labels in front of the DNS suffix."""
    host = host.lower().rstrip(".")
    for partition in PARTITIONS:
        suffix = f".{partition.dns_suffix}"
        if host.endswith(suffix):
            labels = host[: -len(suffix)].split(".")
            if all(_LABEL_RE.match(label) for label in labels):
                return partition, labels
            return None
    return None


def extract_region(host: str) -> str | None:
    """Extract the region from a host of the form ``<prefix>.<region>.<dns-suffix>``.

    The region label must match the region pattern of a partition with the host's
    DNS suffix, so ``bucket.s3.amazonaws.com`` has no region. Global hosts such as
    ``svc-name.amazonaws.com``, hosts with any other number of labels in front of
    the DNS suffix, and unrecognized hosts such as ``localhost`` return None.

    :param host: The host name to inspect.
    """
    split = _split_host(host)
    if split is None:
        return None
    partition, labels = split
    if len(labels) != 2:
        return None
    region = labels[1]
    if not any(
        candidate.dns_suffix == partition.dns_suffix
        and candidate.matches_region(region)
        for candidate in PARTITIONS
    ):
        return None
    return region


def global_region(host: str) -> str | None:
    """Get the signing region for a global host of the form ``<prefix>.<dns-suffix>``.

    :param host: The host name to inspect.
    :returns: The global region of the host's partition, or None if the host isn't
        a global endpoint.
    """
    split = _split_host(host)
    if split is None:
        return None
    partition, labels = split
    if len(labels) != 1:
        return None
    return partition.global_region


def partition_for_region(region: str) -> Partition:
    for partition in PARTITIONS:
        if partition.matches_region(region):
            return partition
    return DEFAULT_PARTITION


def regional_endpoint(endpoint_prefix: str, region: str) -> str:
    """Build the default endpoint for a service in a region."""
    dns_suffix = partition_for_region(region).dns_suffix
    return f"https://{endpoint_prefix}.{region}.{dns_suffix}"


def parse_endpoint(endpoint: str | URI) -> URI:
    """Parse an endpoint into a :py:class:`URI`.

    Strings without a scheme, such as ``svc-name.amazonaws.com`` or ``localhost``,
    are treated as https hosts.

    :param endpoint: The endpoint to parse. URIs are returned unchanged.
    """
    if isinstance(endpoint, URI):
        return endpoint

    candidate = endpoint if "://" in endpoint else f"https://{endpoint}"
    parsed = urlsplit(candidate)
    try:
        port = parsed.port
    except ValueError as e:
        raise ConfigurationError(
            f"Unable to parse port from provided endpoint: {endpoint}"
        ) from e
    if not parsed.hostname:
        raise ConfigurationError(
            f"Unable to parse hostname from provided endpoint: {endpoint}"
        )

    return URI(
        scheme=parsed.scheme,
        host=parsed.hostname,
        port=port,
        path=parsed.path or None,
        query=parsed.query or None,
    )
