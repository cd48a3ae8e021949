"""
Error taxonomy for the batch evaluator.

Request-level errors drive the retry loop; task-level exhaustion is turned
into an invalid result row; configuration errors stop a batch before any
task starts.  Parser failures are not exceptions; see
:class:`parser.ParseResult`.
"""

from __future__ import annotations


class BatchEvalError(Exception):
    """Base class for every error raised by the evaluator."""


class ConfigurationError(BatchEvalError, ValueError):
    """Missing credential, empty record set, or out-of-range run setting."""


class RequestError(BatchEvalError):
    """A single chat-completion request failed."""


class EndpointError(RequestError):
    """
    The endpoint answered with a non-2xx status.

    Attributes:
        status_code: HTTP status code returned by the endpoint.
        body: Response body text, captured verbatim for diagnostics.
    """

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"API error {status_code}: {body}")


class TransportError(RequestError):
    """Timeout, DNS failure, connection reset, or an undecodable body."""


class ExhaustedRetries(BatchEvalError):
    """
    A record failed on every allowed attempt.

    Attributes:
        index: Position of the record in the batch.
        attempts: Number of attempts made.
        last_error: Message of the final failure.
    """

    def __init__(self, index: int, attempts: int, last_error: str) -> None:
        self.index = index
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Row {index + 1} failed after {attempts} attempt(s): {last_error}"
        )
