"""
Deep Truth – resumable query-driven extraction over article collections.

Use from code:
  from deep_truth import ArticlePipeline, CheckpointStore
  from deep_truth.adapters import build_backend
  pipeline = ArticlePipeline(
      user_query="...",
      backend=build_backend(settings),
      store=CheckpointStore("./outputs"),
  )
  aggregate = pipeline.run_sync(articles)

Or from the shell:
  python -m deep_truth --articles train.jsonl --query "..."
"""

from deep_truth.application.checkpoint import CheckpointStore
from deep_truth.application.pipeline import ArticlePipeline, RunStatus

__version__ = "0.3.0"

__all__ = ["ArticlePipeline", "CheckpointStore", "RunStatus"]
