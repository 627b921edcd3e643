# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Transport doubles for exercising clients without a network."""

from collections import deque
from copy import copy
from typing import Any

from ._http import AWSRequest, Fields, HTTPResponse


class MockHTTPClient:
    """Implementation of :py:class:`._http.HTTPClient` solely for testing purposes.

    Simulates HTTP request/response behavior. Responses are queued in FIFO order and
    requests are captured for inspection.
    """

    def __init__(self) -> None:
        self._response_queue: deque[dict[str, Any]] = deque()
        self._captured_requests: list[AWSRequest] = []

    def add_response(
        self,
        status: int = 200,
        headers: list[tuple[str, str]] | None = None,
        body: bytes = b"",
    ) -> None:
        """Queue a response for the next request.

        :param status: HTTP status code.
        :param headers: HTTP response headers as list of (name, value) tuples.
        :param body: Response body as bytes.
        """
        self._response_queue.append(
            {
                "status": status,
                "headers": headers or [],
                "body": body,
            }
        )

    async def send(self, request: AWSRequest) -> HTTPResponse:
        """Capture the request and return the next queued response.

        :param request: The request including destination URI, fields, payload.
        :raises MockHTTPClientError: If no responses are queued.
        """
        self._captured_requests.append(copy(request))

        if not self._response_queue:
            raise MockHTTPClientError(
                "No responses queued in MockHTTPClient. Use add_response() to queue "
                "responses."
            )
        response_data = self._response_queue.popleft()
        return HTTPResponse(
            status=response_data["status"],
            fields=Fields.from_tuples(response_data["headers"]),
            body=response_data["body"],
        )

    @property
    def call_count(self) -> int:
        """The number of requests made to this client."""
        return len(self._captured_requests)

    @property
    def captured_requests(self) -> list[AWSRequest]:
        """The list of all requests captured by this client."""
        return self._captured_requests.copy()


class MockHTTPClientError(Exception):
    """Exception raised by MockHTTPClient for test setup issues."""
