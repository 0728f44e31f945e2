"""Shared HTTP helpers used by the registry clients.

Wraps ``requests`` with DEBUG traces. Network and timeout exceptions are not
caught here: callers decide whether a failed fetch is fatal.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

import requests

from ..constants import Constants
from .logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


def safe_get(
    url: str,
    *,
    context: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """Perform a GET request with consistent DEBUG traces.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "jsr", "npm").
        session: Optional session to issue the request through.
        timeout: Seconds before giving up; falls back to Constants.REQUEST_TIMEOUT.
        headers: Extra request headers.

    Returns:
        requests.Response: The HTTP response object.
    """
    safe_target = safe_url(url)
    effective_timeout = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    request_headers = {"User-Agent": Constants.USER_AGENT, **HEADERS_JSON, **(headers or {})}
    getter = session.get if session is not None else requests.get

    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context,
                ),
            )
        try:
            res = getter(url, timeout=effective_timeout, headers=request_headers)
        except requests.Timeout:
            logger.warning(
                "%s request timed out after %s seconds", context, effective_timeout
            )
            raise
        except requests.RequestException as exc:  # includes ConnectionError
            logger.warning("%s connection error: %s", context, exc)
            raise

    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action="GET",
                outcome="success" if 200 <= res.status_code < 300 else "non_2xx",
                status_code=res.status_code,
                duration_ms=t.duration_ms(),
                target=safe_target,
                context=context,
            ),
        )
    return res


def get_json(
    url: str,
    *,
    context: str,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> Tuple[int, Optional[Any]]:
    """Perform a GET request and parse a JSON body.

    Args:
        url: Target URL
        context: Source tag for logs
        session: Optional session
        timeout: Optional per-call timeout in seconds

    Returns:
        Tuple of (status_code, parsed_json_or_none). The body is only parsed
        for 2xx responses; undecodable bodies yield None.
    """
    res = safe_get(url, context=context, session=session, timeout=timeout)

    if not 200 <= res.status_code < 300:
        return res.status_code, None

    try:
        return res.status_code, json.loads(res.text)
    except (json.JSONDecodeError, TypeError):
        if is_debug_enabled(logger):
            logger.debug(
                "JSON decode error",
                extra=extra_context(
                    event="parse",
                    component="http_client",
                    action="get_json",
                    outcome="json_decode_error",
                    status_code=res.status_code,
                    target=safe_url(url),
                ),
            )
        return res.status_code, None
