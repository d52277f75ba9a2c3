"""
Checkpoint store – the output directory is the run's only durable state.

Layout:
  <output_dir>/<index>.json   one ProcessingRecord per processed article
  <output_dir>/current.json   aggregate {index: {response, url}} of non-empty results
  <output_dir>/<index>.skip.json   marker for an article that was skipped on purpose

Records are written through a temp file and os.replace, so a crashed run never
leaves a half-written <index>.json behind for the next run to trust.
"""

import json
import logging
import os
import re
import shutil
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Union

from deep_truth.domain.errors import CheckpointError
from deep_truth.domain.models import AggregateEntry, ProcessingRecord, is_empty_payload

logger = logging.getLogger(__name__)

AGGREGATE_FILENAME = "current.json"
_RECORD_NAME = re.compile(r"^(\d+)\.json$")
_SKIP_NAME = re.compile(r"^(\d+)\.skip\.json$")


def atomic_write_json(path: Path, data) -> None:
    tmp_path = path.with_name(path.name + ".tmp")
    with tmp_path.open("w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
        f.flush()
        os.fsync(f.fileno())
    os.replace(tmp_path, path)


class CheckpointStore:
    """Per-index records plus a rebuildable aggregate, all under one directory."""

    def __init__(self, output_dir: Union[str, Path] = "./outputs", keep_empty_results: bool = False):
        self.output_dir = Path(output_dir)
        self.keep_empty_results = keep_empty_results

    @property
    def aggregate_path(self) -> Path:
        return self.output_dir / AGGREGATE_FILENAME

    def record_path(self, index: int) -> Path:
        return self.output_dir / f"{index}.json"

    def prepare(self, fresh: bool) -> None:
        """Fresh start wipes and recreates the directory; resume only creates it if absent."""
        if fresh and self.output_dir.exists():
            logger.info("Removing previous outputs in %s", self.output_dir)
            shutil.rmtree(self.output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def skip_path(self, index: int) -> Path:
        return self.output_dir / f"{index}.skip.json"

    def _scan(self, name_pattern: re.Pattern) -> List[int]:
        if not self.output_dir.is_dir():
            return []
        indices = []
        for entry in self.output_dir.iterdir():
            match = name_pattern.match(entry.name)
            if match and entry.is_file():
                indices.append(int(match.group(1)))
        return sorted(indices)

    def record_indices(self) -> List[int]:
        return self._scan(_RECORD_NAME)

    def skip_indices(self) -> List[int]:
        return self._scan(_SKIP_NAME)

    def resume_index(self) -> int:
        """First index with neither a record nor a skip marker."""
        indices = self.record_indices() + self.skip_indices()
        if not indices:
            return 0
        return max(indices) + 1

    def persist_skip(self, index: int, reason: str, error_type: str) -> Path:
        """Record that an article was skipped so a resumed run does not retry it."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.skip_path(index)
        atomic_write_json(path, {"index": index, "reason": reason, "errorType": error_type})
        return path

    def persist_record(self, record: ProcessingRecord) -> Path:
        path = self.record_path(record["index"])
        if path.exists():
            raise CheckpointError(f"Record {path} already exists; refusing to overwrite it")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_json(path, record)
        return path

    def load_record(self, index: int) -> ProcessingRecord:
        path = self.record_path(index)
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CheckpointError(f"Cannot read record {path}: {exc}") from exc

    def iter_records(self) -> Iterator[ProcessingRecord]:
        for index in self.record_indices():
            yield self.load_record(index)

    def rebuild_aggregate(self) -> Dict[str, AggregateEntry]:
        """Recompute current.json from every record, in ascending index order."""
        aggregate: Dict[str, AggregateEntry] = {}
        for record in self.iter_records():
            response = record.get("response")
            if is_empty_payload(response) and not self.keep_empty_results:
                continue
            url = (record.get("processedArticle") or {}).get("url")
            aggregate[str(record["index"])] = {"response": response, "url": url}
        self.output_dir.mkdir(parents=True, exist_ok=True)
        atomic_write_json(self.aggregate_path, aggregate)
        logger.debug("Wrote aggregate with %d entries to %s", len(aggregate), self.aggregate_path)
        return aggregate

    def load_aggregate(self) -> Dict[str, AggregateEntry]:
        if not self.aggregate_path.exists():
            return {}
        try:
            with self.aggregate_path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise CheckpointError(f"Cannot read aggregate {self.aggregate_path}: {exc}") from exc

    def latest_text_payload(self) -> Optional[str]:
        """Most recent non-empty string response; restores the running answer on resume."""
        latest = None
        for record in self.iter_records():
            response = record.get("response")
            if isinstance(response, str) and response.strip():
                latest = response
        return latest
