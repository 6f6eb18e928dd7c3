from __future__ import annotations

"""Exceptions raised by the archive pipeline.

Retry decisions are made on the class alone: anything deriving from
:class:`RetryableTransportError` may be attempted again, everything else
short-circuits the retry loop it was raised in.
"""


class ArchiveError(Exception):
    """Base class for all archive pipeline errors."""


class NoUrlsFound(ArchiveError):
    """The message text contained no well-formed URL."""

    def __init__(self, text: str = "") -> None:
        super().__init__("found 0 URLs in message")
        self.text = text


class LookupFailed(ArchiveError):
    """A domain name could not be derived from a URL."""

    def __init__(self, url: str) -> None:
        super().__init__(f"unable to determine domain name for url: {url}")
        self.url = url


# ----------------------------------------------------------------------
# Archive service
# ----------------------------------------------------------------------
class RetryableTransportError(ArchiveError):
    """Network failure or transient service condition."""


class RateLimited(RetryableTransportError):
    def __init__(self, endpoint: str) -> None:
        super().__init__(f"rate limited by archive.org {endpoint} api")
        self.endpoint = endpoint


class ProtocolError(RetryableTransportError):
    """The archive service answered with something we could not use."""


class JobStillPending(RetryableTransportError):
    def __init__(self, job_id: str) -> None:
        super().__init__(f"job {job_id} is still pending")
        self.job_id = job_id


class NonRetryableDeclined(ArchiveError):
    """archive.org explicitly refused to capture the page."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"archive.org declined to archive the page (http {status_code})")
        self.status_code = status_code


class JobFailed(ArchiveError):
    """A capture job reached a terminal status other than success."""

    def __init__(self, job_id: str, status: str, message: str | None = None) -> None:
        detail = f": {message}" if message else ""
        super().__init__(f"archive.org job {job_id} ended with status {status!r}{detail}")
        self.job_id = job_id
        self.status = status


class RetriesExhausted(ArchiveError):
    def __init__(self, last_error: BaseException | None, attempts: int) -> None:
        super().__init__(f"giving up after {attempts} attempt(s): {last_error}")
        self.last_error = last_error
        self.attempts = attempts


class ArchiveCancelled(ArchiveError):
    """The caller cancelled the request between attempts."""


class HistoryUnavailable(ArchiveError):
    """Snapshot history could not be read; never fatal to a reply."""


# ----------------------------------------------------------------------
# Persistence / settings
# ----------------------------------------------------------------------
class PersistenceError(ArchiveError):
    def __init__(self, expected: int, affected: int) -> None:
        super().__init__(
            f"unexpected number of rows affected inserting archive records: {affected} (expected {expected})"
        )
        self.expected = expected
        self.affected = affected


class InvalidSetting(ArchiveError):
    def __init__(self, setting: str, value: object, reason: str) -> None:
        super().__init__(f"invalid value {value!r} for setting {setting}: {reason}")
        self.setting = setting
        self.value = value
