"""
Output extraction – peel the answer out of whatever wrappers the model used.

Models do not reliably honour the requested <output> envelope: they nest it
inside ```json fences, swap angle brackets for square ones, or close an
<output> tag with </article>. The extractor keeps unwrapping until no known
delimiter is left, then optionally parses the rest as JSON.
"""

import json
import logging
import re
from typing import List, Optional

from deep_truth.domain.errors import ExtractionError
from deep_truth.domain.events import EventKind, PipelineEvent
from deep_truth.domain.models import Mode, Payload
from deep_truth.ports.interfaces import IPipelineObserver, NullObserver

logger = logging.getLogger(__name__)

# Order matters: the first pattern that matches wins, then the scan restarts.
OUTPUT_PATTERNS: List[re.Pattern] = [
    re.compile(r"<output>(.*?)</output>", re.DOTALL),
    re.compile(r"<output>(.*?)\[/output\]", re.DOTALL),
    re.compile(r"\[output\](.*?)\[/output\]", re.DOTALL),
    re.compile(r"<article>(.*?)</article>", re.DOTALL),
    re.compile(r"<article>(.*?)\[/article\]", re.DOTALL),
    re.compile(r"\[article\](.*?)\[/article\]", re.DOTALL),
    re.compile(r"<output>\n(.*?)</article>", re.DOTALL),
    re.compile(r"<output>\n(.*?)\[/article\]", re.DOTALL),
    re.compile(r"```output\n(.*?)```", re.DOTALL),
    re.compile(r"```json\n(.*?)```", re.DOTALL),
]

MAX_UNWRAP_PASSES = 2 * len(OUTPUT_PATTERNS)
EXCERPT_CHARS = 200


class OutputExtractor:
    """Unwraps delimiters (bounded) and parses the payload for the run's mode."""

    def __init__(
        self,
        patterns: Optional[List[re.Pattern]] = None,
        max_passes: int = MAX_UNWRAP_PASSES,
        observer: Optional[IPipelineObserver] = None,
    ):
        self.patterns = list(patterns) if patterns is not None else list(OUTPUT_PATTERNS)
        self.max_passes = max_passes
        self._observer = observer or NullObserver()

    def unwrap(self, response: str, index: Optional[int] = None) -> str:
        """Return the innermost delimited content, or the stripped response if nothing matched."""
        candidate = response.strip()
        unwrapped = 0
        while unwrapped < self.max_passes:
            inner = self._first_match(candidate)
            if inner is None:
                break
            candidate = inner
            unwrapped += 1
        else:
            if self._first_match(candidate) is not None:
                logger.warning(
                    "Stopped unwrapping article %s output after %d passes; delimiters remain",
                    index, self.max_passes,
                )

        if unwrapped == 0:
            logger.warning("No output or article tags found in response for article %s. Using full response.", index)
            self._observer.notify(PipelineEvent(
                EventKind.NO_DELIMITERS,
                index=index,
                detail={"excerpt": candidate[:EXCERPT_CHARS]},
            ))
        return candidate

    def extract(self, response: str, mode: Mode = Mode.JSON, index: Optional[int] = None) -> Payload:
        candidate = self.unwrap(response, index=index)
        if Mode(mode) is Mode.TEXT:
            return candidate
        return self._parse_json(candidate, index)

    def _first_match(self, candidate: str) -> Optional[str]:
        for pattern in self.patterns:
            match = pattern.search(candidate)
            if not match:
                continue
            inner = match.group(1).strip()
            # Each unwrap must change the candidate.
            if inner != candidate:
                return inner
        return None

    def _parse_json(self, candidate: str, index: Optional[int]) -> Payload:
        if not candidate:
            logger.info("Article %s output is empty; treating as no extracted paragraphs", index)
            return []
        try:
            payload = json.loads(candidate)
        except json.JSONDecodeError as exc:
            raise ExtractionError(
                f"Article {index} output is not valid JSON: {exc}",
                excerpt=candidate[:EXCERPT_CHARS],
                index=index,
            ) from exc
        if not isinstance(payload, (list, dict)):
            raise ExtractionError(
                f"Article {index} output must be a JSON array or object, got {type(payload).__name__}",
                excerpt=candidate[:EXCERPT_CHARS],
                index=index,
            )
        return payload
