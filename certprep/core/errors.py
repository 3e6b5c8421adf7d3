# certprep/core/errors.py
"""
Error taxonomy for the test generation pipeline.

Every error carries the HTTP status the API layer answers with and a short
type tag used in the `{"error": ..., "type": ...}` payload.
"""


class CertPrepError(Exception):
    """Base class for all pipeline errors"""

    status_code = 500
    error_type = "server_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FetchError(CertPrepError):
    """Remote document unreachable or answered with a non-2xx status"""

    status_code = 502
    error_type = "fetch_error"

    def __init__(self, message: str, url: str = "", status: int = None):
        super().__init__(message)
        self.url = url
        self.status = status


class EmptyContentError(CertPrepError):
    """Extraction yielded no usable text"""

    status_code = 422
    error_type = "empty_content"


class SearchUnavailableError(CertPrepError):
    """No search provider is configured"""

    status_code = 503
    error_type = "search_unavailable"


class SearchFailure(CertPrepError):
    """The search provider call itself failed"""

    status_code = 502
    error_type = "search_failed"


class CompletionError(CertPrepError):
    """The completion provider call failed or returned nothing"""

    status_code = 502
    error_type = "completion_error"


class MalformedGenerationError(CertPrepError):
    """Completion reply could not be decoded into the required JSON shape"""

    status_code = 502
    error_type = "malformed_generation"


class ValidationError(CertPrepError):
    """A parsed question record violates the Question invariants"""

    status_code = 422
    error_type = "validation_error"


class NotFoundError(CertPrepError):
    """Unknown test id"""

    status_code = 404
    error_type = "not_found"


class UpstreamTimeoutError(CertPrepError, TimeoutError):
    """A fetch, search or completion transport timed out"""

    status_code = 504
    error_type = "timeout"
