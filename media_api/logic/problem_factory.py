"""Centralised construction of problem+json payloads for request preconditions.

Errors raised by the record core carry their own problem bodies
(`RecordError.to_problem`); this module covers the checks performed before
a request reaches it.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable

logger = logging.getLogger(__name__)


def problem_pre_request_content_type_unsupported(allowed: Iterable[str]) -> Dict[str, object]:
    """Return a 415 problem listing the accepted content types."""
    allowed_list = sorted(allowed)
    detail = f"Content-Type must be one of: {', '.join(allowed_list)}"
    problem = {
        "title": "Unsupported Media Type",
        "status": 415,
        "detail": detail,
        "code": "PRE_REQUEST_CONTENT_TYPE_UNSUPPORTED",
        "transient": False,
    }
    logger.info("error_handler.handle", extra={"code": problem["code"]})
    return problem


def problem_pre_if_match_invalid_format(reason: str) -> Dict[str, object]:
    """Return a 400 problem for an unusable If-Match header."""
    problem = {
        "title": "Bad Request",
        "status": 400,
        "detail": reason,
        "code": "PRE_IF_MATCH_INVALID_FORMAT",
        "transient": False,
    }
    logger.info("error_handler.handle", extra={"code": problem["code"]})
    return problem


__all__ = [
    "problem_pre_request_content_type_unsupported",
    "problem_pre_if_match_invalid_format",
]
