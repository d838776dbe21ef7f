"""Job-type tags and helpers for requesting post-processing on a record."""

from __future__ import annotations

import logging

from pydantic import JsonValue

from media_api.models.record import Record

logger = logging.getLogger(__name__)

# Automatic speech recognition
ASR = "asr"


def request_job(record: Record, job_type: str, settings: JsonValue = True) -> Record:
    """Annotate `record` with a request for `job_type` and return it.

    `settings=True` means "use the default settings for this job type".
    """
    record.meta.jobs.insert(job_type, settings)
    logger.info("record.job_requested", extra={"record_id": record.id, "job_type": job_type})
    return record


__all__ = ["ASR", "request_job"]
