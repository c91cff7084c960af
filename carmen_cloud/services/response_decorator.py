"""Copies the server correlation id from response headers into results."""

from __future__ import annotations

import httpx

from carmen_cloud.models.common import RecognitionResult

REQUEST_ID_HEADER = "x-amzn-requestid"


def attach_request_id[R: RecognitionResult](result: R, response: httpx.Response) -> R:
    """Set ``result.request_id`` from the response header, if the header is present."""
    request_id = response.headers.get(REQUEST_ID_HEADER)
    if request_id:
        result.request_id = request_id
    return result
