"""Service error hierarchy for content generation and the job queue.

Exceptions raised by the generation clients, the pipeline and the store:
- ServiceError: Base for all service errors
- TransientError: Retryable errors (network, rate limits, timeouts)
- PermanentError: Errors that will not fix themselves (auth, bad config)
- StoreUnavailableError: The database cannot be reached; the worker stops
"""

from sqlalchemy.exc import InterfaceError, OperationalError


class ServiceError(Exception):
    """Base exception for all service errors."""

    pass


class TransientError(ServiceError):
    """Failure worth another attempt after the backoff delay.

    Examples:
    - Network timeouts
    - Rate limit exceeded (429)
    - Service unavailable (503)
    - LLM returned unparseable output
    """

    pass


class PermanentError(ServiceError):
    """Failure that another attempt will not fix.

    Examples:
    - Authentication failures (401, 403)
    - Invalid request parameters (400)
    - Missing credentials
    """

    pass


# Sentence generation errors
class SentenceGenerationError(ServiceError):
    """Base exception for sentence generation errors."""

    pass


class LLMUnavailableError(TransientError):
    """LLM server unreachable, timing out or overloaded."""

    pass


class LLMResponseError(TransientError):
    """LLM answered with output that could not be parsed into sentences."""

    pass


class SentenceCorpusError(TransientError):
    """External sentence corpus (Tatoeba) unreachable or answering with an error."""

    pass


# Audio errors
class AudioError(ServiceError):
    """Base exception for audio synthesis and download errors."""

    pass


class AudioNetworkError(TransientError):
    """Network timeout or service unavailable while fetching audio."""

    pass


class AudioRateLimitError(TransientError):
    """TTS rate limit exceeded (429)."""

    pass


class AudioAuthError(PermanentError):
    """TTS authentication failure (401, 403)."""

    pass


# Queue errors
class WordNotFoundError(PermanentError):
    """Word referenced by an enqueue request does not exist."""

    def __init__(self, word_id: int):
        super().__init__(f"Word {word_id} not found")
        self.word_id = word_id


class IncompleteGenerationError(TransientError):
    """Pipeline finished but the word still has fewer sentences than requested."""

    def __init__(self, have: int, wanted: int):
        super().__init__(f"Sentence generation incomplete. Have {have}, wanted {wanted}.")
        self.have = have
        self.wanted = wanted


class StoreUnavailableError(ServiceError):
    """Job store (database) is closed or unreachable."""

    pass


_DISCONNECT_MARKERS = (
    "unable to open database",
    "closed database",
    "database is closed",
    "not connected",
    "disk i/o error",
    "no such table",
)


def is_infrastructure_error(exc: BaseException) -> bool:
    """Classify an exception as a job-store connectivity failure.

    Classification rules:
        - StoreUnavailableError → infrastructure
        - InterfaceError (DBAPI misuse of a closed connection) → infrastructure
        - OperationalError flagged as a disconnect, or whose message says the
          database cannot be opened / is closed → infrastructure
        - OperationalError such as "database is locked" → job-local
        - Everything else → job-local
    """
    if isinstance(exc, (StoreUnavailableError, InterfaceError)):
        return True

    if isinstance(exc, OperationalError):
        if exc.connection_invalidated:
            return True
        message = str(exc).lower()
        return any(marker in message for marker in _DISCONNECT_MARKERS)

    return False
