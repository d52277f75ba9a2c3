"""
CLI entrypoint:
  python -m deep_truth --articles dataset/train.jsonl --query "..." [--provider gemini]
  python -m deep_truth --articles dataset/train.jsonl --fresh      # wipe outputs first

Every option falls back to the matching environment variable (see config.py).
"""

import argparse
import logging
import sys
from typing import List, Optional

from deep_truth.adapters import LoggingObserver, build_backend, load_articles
from deep_truth.application.checkpoint import CheckpointStore
from deep_truth.application.pipeline import ArticlePipeline, summarize_aggregate
from deep_truth.config import PROVIDERS, Settings
from deep_truth.domain.errors import DeepTruthError, InvalidInput

logger = logging.getLogger("deep_truth")


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging for the command line run."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    # Set third-party loggers to WARNING to reduce noise
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deep-truth",
        description="Extract query-relevant content from a collection of articles with an LLM (resumable)",
    )
    parser.add_argument("--articles", required=True, help="JSONL file, one {text, metadata} object per line")
    parser.add_argument("--query", help="User query or topic (default: $DEEP_TRUTH_QUERY)")
    parser.add_argument("--provider", choices=PROVIDERS, help="Model provider (default: $DEEP_TRUTH_PROVIDER or ollama)")
    parser.add_argument("--model", help="Model name for the selected provider")
    parser.add_argument("--ollama-host", help="Ollama server URL")
    parser.add_argument("--output-dir", help="Where records and current.json are written")
    parser.add_argument("--mode", choices=["json", "text"], help="json: extract paragraphs; text: accumulate one answer")
    resume = parser.add_mutually_exclusive_group()
    resume.add_argument("--fresh", dest="continue_from_article", action="store_false", default=None,
                        help="Wipe the output directory and start from the first article")
    resume.add_argument("--resume", dest="continue_from_article", action="store_true",
                        help="Continue after the last recorded article (default)")
    parser.add_argument("--keep-empty", dest="keep_empty_results", action="store_true", default=None,
                        help="Keep articles with empty results in current.json")
    parser.add_argument("--skip-bad-output", dest="on_extraction_error", action="store_const", const="skip",
                        help="Skip articles whose output cannot be parsed instead of aborting")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR")
    return parser


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = dict(
        user_query=args.query,
        provider=args.provider,
        ollama_host=args.ollama_host,
        output_dir=args.output_dir,
        mode=args.mode,
        continue_from_article=args.continue_from_article,
        keep_empty_results=args.keep_empty_results,
        on_extraction_error=args.on_extraction_error,
        log_level=args.log_level,
    )
    settings = Settings.from_env(**overrides)
    if args.model:
        if settings.provider == "gemini":
            settings.gemini_model = args.model
        else:
            settings.ollama_model = args.model
    return settings


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = _settings_from_args(args)
        setup_logging(settings.log_level)
        if not settings.user_query:
            raise InvalidInput("A user query is required (--query or DEEP_TRUTH_QUERY)")

        articles = load_articles(args.articles)
        pipeline = ArticlePipeline(
            user_query=settings.user_query,
            backend=build_backend(settings),
            store=CheckpointStore(settings.output_dir, keep_empty_results=settings.keep_empty_results),
            mode=settings.mode,
            continue_from_article=settings.continue_from_article,
            observer=LoggingObserver(),
            max_attempts=settings.max_attempts,
            retry_delay=settings.retry_delay,
            on_extraction_error=settings.on_extraction_error,
        )
        aggregate = pipeline.run_sync(articles)
    except DeepTruthError as exc:
        logger.error("%s", exc)
        logger.error("Rerun to resume from the last recorded article, or pass --fresh to start over.")
        return 1

    logger.info("FINAL RESULTS (%d articles with content):", len(aggregate))
    for line in summarize_aggregate(aggregate):
        logger.info("  %s", line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
