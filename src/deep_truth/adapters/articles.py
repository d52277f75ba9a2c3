"""Article source: the crawler's JSONL output (one {text, metadata} object per line)."""

import json
from pathlib import Path
from typing import List, Union

from deep_truth.domain.errors import InvalidInput
from deep_truth.domain.models import Article


def load_articles(path: Union[str, Path]) -> List[Article]:
    path = Path(path)
    if not path.exists():
        raise InvalidInput(f"Article file not found: {path}")
    articles: List[Article] = []
    with path.open("r", encoding="utf-8") as f:
        for line_number, line in enumerate(f, 1):
            if not line.strip():
                continue
            try:
                articles.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise InvalidInput(f"{path}:{line_number} is not valid JSON: {exc}") from exc
    return articles
