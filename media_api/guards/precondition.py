"""If-Match dependency for conditional writes.

Normalises the optional If-Match header into a single store revision (or
`*`). A header that names several revisions, or is malformed, is rejected
with 400 PRE_IF_MATCH_INVALID_FORMAT before the store is touched.
"""

from __future__ import annotations

import logging
from typing import Annotated, Optional

from fastapi import Header, HTTPException

from media_api.logic.etag import normalize_if_match
from media_api.logic.problem_factory import problem_pre_if_match_invalid_format

logger = logging.getLogger(__name__)


def if_match_revision(
    if_match: Annotated[Optional[str], Header(alias="If-Match")] = None,
) -> Optional[str]:
    try:
        revision = normalize_if_match(if_match)
    except ValueError as exc:
        logger.info("precondition.fail", extra={"if_match_raw": if_match, "reason": str(exc)})
        raise HTTPException(status_code=400, detail=problem_pre_if_match_invalid_format(str(exc))) from exc
    return revision


__all__ = ["if_match_revision"]
