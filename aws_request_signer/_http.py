# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace
from typing import Protocol
from urllib.parse import urlunsplit


class Field:
    """A name-value pair representing a single header in an HTTP request.

    Field names are case insensitive. The name is preserved as given for
    transmission, but lookups in :py:class:`Fields` are normalized.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def as_string(self, delimiter: str = ",") -> str:
        """Get delimited string of all values.

        If the ``Field`` has zero values, the empty string is returned. If it has
        exactly one value, the value is returned unmodified. Values of multi-valued
        fields that contain commas or double quotes are quoted and escaped.
        """
        if not self.values:
            return ""
        if len(self.values) == 1:
            return self.values[0]
        return delimiter.join(quote_and_escape_field_value(v) for v in self.values)

    def as_tuples(self) -> list[tuple[str, str]]:
        return [(self.name, val) for val in self.values]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    """Collection of header entries mapped by normalized name."""

    def __init__(self, initial: Iterable[Field] | None = None):
        self.entries: OrderedDict[str, Field] = OrderedDict()
        for field in initial or ():
            key = self._normalize_field_name(field.name)
            if key in self.entries:
                raise ValueError(
                    "Field names of the initial list of fields must be unique. "
                    f"{field.name} appears more than once."
                )
            self.entries[key] = field

    @classmethod
    def from_tuples(cls, tuples: Iterable[tuple[str, str]]) -> Fields:
        """Build a collection from ``(name, value)`` pairs, merging repeated names."""
        fields = cls()
        for name, value in tuples:
            if name in fields:
                fields[name].add(value)
            else:
                fields.set_field(Field(name=name, values=[value]))
        return fields

    def set_field(self, field: Field) -> None:
        """Set or override the entry for ``field.name``."""
        self.entries[self._normalize_field_name(field.name)] = field

    def __getitem__(self, name: str) -> Field:
        return self.entries[self._normalize_field_name(name)]

    def __delitem__(self, name: str) -> None:
        del self.entries[self._normalize_field_name(name)]

    def __contains__(self, key: object) -> bool:
        return (
            isinstance(key, str) and self._normalize_field_name(key) in self.entries
        )

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Fields({list(self.entries.values())})"

    def _normalize_field_name(self, name: str) -> str:
        return name.lower()


@dataclass(kw_only=True, frozen=True)
class URI:
    """Universal Resource Identifier, target location for an :py:class:`AWSRequest`."""

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``svc-name.us-west-2.amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as string."""

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{host}:{port}``.

        ``port`` is only included if set.
        """
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    def build(self) -> str:
        """Construct URI string representation."""
        return urlunsplit(
            (self.scheme, self.netloc, self.path or "", self.query or "", "")
        )

    def with_port(self, port: int | None) -> URI:
        return replace(self, port=port)


class AWSRequest:
    """A single outbound HTTP request.

    The request is mutable and single-use: signers add their authentication
    fields to it in place.
    """

    def __init__(
        self,
        *,
        destination: URI,
        method: str,
        fields: Fields | None = None,
        body: bytes | None = None,
    ):
        self.destination = destination
        self.method = method
        self.fields = fields if fields is not None else Fields()
        self.body = body

    def __repr__(self) -> str:
        return (
            f"AWSRequest(method={self.method!r}, "
            f"destination={self.destination.build()!r}, fields={self.fields!r})"
        )


def quote_and_escape_field_value(value: str) -> str:
    """Escapes and quotes a single :class:`Field` value if necessary.

    See :func:`Field.as_string` for quoting and escaping logic.
    """
    if any(char in value for char in (",", '"')):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return value


@dataclass(kw_only=True)
class HTTPResponse:
    """A complete HTTP response."""

    status: int
    """The 3 digit response status code."""

    fields: Fields
    """HTTP header and trailer fields."""

    body: bytes = b""
    """The response payload."""


class HTTPClient(Protocol):
    """An asynchronous HTTP client interface."""

    async def send(self, request: AWSRequest) -> HTTPResponse:
        """Send a request over HTTP and return the response.

        :param request: The request including destination URI, fields, payload.
        """
        ...
