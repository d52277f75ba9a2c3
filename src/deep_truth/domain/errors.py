"""Error taxonomy. Only ArticleContentDefect is absorbed per article."""

from typing import Optional


class DeepTruthError(Exception):
    """Base class for every error the pipeline raises on purpose."""


class InvalidInput(DeepTruthError):
    """Bad query, bad article collection or bad configuration."""


class ArticleContentDefect(DeepTruthError):
    """Article text is missing or not a string; the article is skipped."""

    def __init__(self, index: int, title: Optional[str] = None):
        self.index = index
        self.title = title
        super().__init__(
            f"Article {index} ({title or 'Untitled'}) has missing or invalid content"
        )


class ModelInvocationError(DeepTruthError):
    """The model backend kept failing after the whole retry budget."""

    def __init__(self, attempts: int, index: Optional[int] = None, reason: str = ""):
        self.attempts = attempts
        self.index = index
        where = f" for article {index}" if index is not None else ""
        detail = f": {reason}" if reason else ""
        super().__init__(f"Model invocation failed after {attempts} attempts{where}{detail}")


class ExtractionError(DeepTruthError):
    """Unwrapped model output could not be parsed as JSON."""

    def __init__(self, message: str, excerpt: str = "", index: Optional[int] = None):
        self.excerpt = excerpt
        self.index = index
        super().__init__(message)


class CheckpointError(DeepTruthError):
    """Output location holds a record that cannot be read or would be overwritten."""
