#------------------------------------------------------------
#                          errors.py
#    Failure kinds raised by data sources and absorbed or
#             propagated by the analysis pipeline.

from datetime import datetime
from typing import Optional

class ProfileSourceError(Exception):
    pass

class FatalFetchError(ProfileSourceError):
    pass

class NotFoundError(FatalFetchError):
    pass

class RateLimitedError(FatalFetchError):
    def __init__(self, message: str, reset_at: Optional[datetime] = None) -> None:
        super().__init__(message)
        self.reset_at = reset_at

class UpstreamError(FatalFetchError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code

# One optional fetch failed; the run continues with a safe default.
class DegradedFetchError(ProfileSourceError):
    def __init__(self, kind: str, repo_name: str, cause: BaseException) -> None:
        super().__init__(f"Could not fetch {kind} for {repo_name}: {cause}")
        self.kind = kind
        self.repo_name = repo_name
        self.cause = cause

class QuotaExhausted(ProfileSourceError):
    def __init__(self, remaining: int, threshold: int, skipped: int) -> None:
        super().__init__(
            f"Rate limit low ({remaining} requests remaining, threshold {threshold}); "
            f"{skipped} README(s) skipped"
        )
        self.remaining = remaining
        self.threshold = threshold
        self.skipped = skipped

class MalformedManifestError(ValueError):
    pass

class TextGenerationError(Exception):
    pass

NOT_FOUND_MESSAGE = "GitHub user not found. Check the username and try again."
RATE_LIMITED_MESSAGE = "GitHub API rate limit exceeded. Please try again later."
RATE_LIMITED_RESET_TEMPLATE = "GitHub API rate limit exceeded. Resets at {reset}."
UPSTREAM_MESSAGE_TEMPLATE = "Failed to analyze profile: {message}"

# This function does map a failed analysis to a user-facing message.
# Not-found and rate-limited failures get their own wording.
def describe_error(exc: BaseException) -> str:
    if isinstance(exc, NotFoundError):
        return NOT_FOUND_MESSAGE
    if isinstance(exc, RateLimitedError):
        if exc.reset_at is not None:
            return RATE_LIMITED_RESET_TEMPLATE.format(reset=exc.reset_at.strftime("%H:%M:%S UTC"))
        return RATE_LIMITED_MESSAGE
    return UPSTREAM_MESSAGE_TEMPLATE.format(message=str(exc) or exc.__class__.__name__)
