#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from collections import deque
from copy import copy

from .http import HTTPClient, HTTPRequest, HTTPRequestConfiguration, HTTPResponse


class MockHTTPClient(HTTPClient):
    """Implementation of :py:class:`.http.HTTPClient` solely for testing purposes.

    Responses are queued in FIFO order and requests are captured for inspection. A
    queued exception is raised instead of returning a response.
    """

    def __init__(self) -> None:
        self._response_queue: deque[HTTPResponse | Exception] = deque()
        self._captured_requests: list[HTTPRequest] = []
        self._captured_configs: list[HTTPRequestConfiguration | None] = []

    def add_response(
        self,
        status: int = 200,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
    ) -> None:
        """Queue a response for the next request.

        :param status: HTTP status code.
        :param headers: HTTP response headers.
        :param body: Response body as bytes.
        """
        self._response_queue.append(
            HTTPResponse(status=status, fields=headers or {}, body=body)
        )

    def add_error(self, error: Exception) -> None:
        """Queue an exception to be raised by the next request."""
        self._response_queue.append(error)

    async def send(
        self,
        request: HTTPRequest,
        *,
        request_config: HTTPRequestConfiguration | None = None,
    ) -> HTTPResponse:
        self._captured_requests.append(copy(request))
        self._captured_configs.append(request_config)

        if not self._response_queue:
            raise MockHTTPClientError(
                "No responses queued in MockHTTPClient. Use add_response() to queue "
                "responses."
            )
        response = self._response_queue.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def call_count(self) -> int:
        """The number of requests made to this client."""
        return len(self._captured_requests)

    @property
    def captured_requests(self) -> list[HTTPRequest]:
        """The list of all requests captured by this client."""
        return self._captured_requests.copy()

    @property
    def captured_configs(self) -> list[HTTPRequestConfiguration | None]:
        return self._captured_configs.copy()


class MockHTTPClientError(Exception):
    """Exception raised by MockHTTPClient for test setup issues."""
