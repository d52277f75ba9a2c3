"""End-to-end tests of the resumable pipeline against fake backends."""
import json

import pytest

from deep_truth.adapters.observers import RecordingObserver
from deep_truth.application.checkpoint import CheckpointStore
from deep_truth.application.pipeline import ArticlePipeline, RunStatus, accumulate
from deep_truth.domain.errors import ExtractionError, InvalidInput, ModelInvocationError
from deep_truth.domain.events import EventKind
from deep_truth.domain.models import Mode
from fakes import FakeBackend, by_article, make_articles

ANSWER_A = ['<output>[{"paragraph":"A"}]</output>']


def _pipeline(backend, output_dir, **kwargs):
    kwargs.setdefault("retry_delay", 0)
    return ArticlePipeline(
        user_query=kwargs.pop("user_query", "Q"),
        backend=backend,
        store=CheckpointStore(output_dir, keep_empty_results=kwargs.pop("keep_empty_results", False)),
        **kwargs,
    )


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.mark.asyncio
async def test_failing_article_aborts_run_after_persisting_predecessors(articles, output_dir):
    backend = FakeBackend(by_article({
        "alpha": ANSWER_A,
        "beta": ConnectionError("model went away"),
    }))
    observer = RecordingObserver()
    pipeline = _pipeline(backend, output_dir, observer=observer)

    with pytest.raises(ModelInvocationError) as excinfo:
        await pipeline.run(articles)

    assert excinfo.value.attempts == 3
    assert excinfo.value.index == 1
    assert pipeline.status == RunStatus.ABORTED
    assert sum("beta" in p for p in backend.prompts) == 3
    assert not any("gamma" in p for p in backend.prompts)

    assert (output_dir / "0.json").exists()
    assert not (output_dir / "1.json").exists()
    assert _read(output_dir / "current.json") == {
        "0": {"response": [{"paragraph": "A"}], "url": "https://example.com/0"},
    }
    assert observer.of_kind(EventKind.RUN_ABORTED)[0].index == 1


@pytest.mark.asyncio
async def test_record_file_layout(articles, output_dir):
    backend = FakeBackend(lambda prompt, n: ANSWER_A)
    await _pipeline(backend, output_dir).run(articles[:1])

    record = _read(output_dir / "0.json")
    assert record["index"] == 0
    assert record["userQuery"] == "Q"
    assert record["response"] == [{"paragraph": "A"}]
    assert record["processedArticle"] == {
        "text": "alpha article body",
        "title": "Alpha title",
        "url": "https://example.com/0",
    }
    assert record["prompt"] == backend.prompts[0]


@pytest.mark.asyncio
async def test_completed_run_is_idempotent_on_rerun(articles, output_dir):
    first = FakeBackend(lambda prompt, n: ANSWER_A)
    aggregate = await _pipeline(first, output_dir).run(articles)
    assert list(aggregate) == ["0", "1", "2"]

    second = FakeBackend(lambda prompt, n: ANSWER_A)
    pipeline = _pipeline(second, output_dir)
    assert await pipeline.run(articles) == aggregate
    assert second.prompts == []
    assert CheckpointStore(output_dir).resume_index() == len(articles)
    assert pipeline.status == RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_resume_processes_only_remaining_articles(output_dir):
    articles = make_articles(5)
    broken = FakeBackend(by_article({"gamma": TimeoutError("slow")}, default=ANSWER_A))
    with pytest.raises(ModelInvocationError):
        await _pipeline(broken, output_dir).run(articles)

    before = {i: (output_dir / f"{i}.json").read_bytes() for i in (0, 1)}

    healthy = FakeBackend(lambda prompt, n: ANSWER_A)
    await _pipeline(healthy, output_dir).run(articles)

    assert len(healthy.prompts) == 3
    for marker, prompt in zip(["gamma", "delta", "epsilon"], healthy.prompts):
        assert marker in prompt
    for i, content in before.items():
        assert (output_dir / f"{i}.json").read_bytes() == content
    assert CheckpointStore(output_dir).record_indices() == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
async def test_fresh_start_wipes_previous_outputs(articles, output_dir):
    await _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir).run(articles)
    (output_dir / "leftover.txt").write_text("old", encoding="utf-8")

    backend = FakeBackend(lambda p, n: ['<output>[{"paragraph":"B"}]</output>'])
    aggregate = await _pipeline(backend, output_dir, continue_from_article=False).run(articles[:1])

    assert len(backend.prompts) == 1
    assert aggregate == {"0": {"response": [{"paragraph": "B"}], "url": "https://example.com/0"}}
    assert sorted(p.name for p in output_dir.iterdir()) == ["0.json", "current.json"]


@pytest.mark.asyncio
async def test_article_without_text_is_skipped(output_dir):
    articles = make_articles(3)
    articles[1]["text"] = None
    observer = RecordingObserver()
    backend = FakeBackend(lambda p, n: ANSWER_A)

    aggregate = await _pipeline(backend, output_dir, observer=observer).run(articles)

    assert len(backend.prompts) == 2
    assert list(aggregate) == ["0", "2"]
    assert not (output_dir / "1.json").exists()
    skipped = observer.of_kind(EventKind.ARTICLE_SKIPPED)
    assert [e.index for e in skipped] == [1]


@pytest.mark.asyncio
async def test_extraction_error_aborts_by_default(articles, output_dir):
    backend = FakeBackend(by_article({"beta": ["<output>not json</output>"]}, default=ANSWER_A))
    with pytest.raises(ExtractionError):
        await _pipeline(backend, output_dir).run(articles)
    assert CheckpointStore(output_dir).record_indices() == [0]
    assert list(_read(output_dir / "current.json")) == ["0"]


@pytest.mark.asyncio
async def test_extraction_error_can_be_skipped(articles, output_dir):
    backend = FakeBackend(by_article({"beta": ["<output>not json</output>"]}, default=ANSWER_A))
    aggregate = await _pipeline(backend, output_dir, on_extraction_error="skip").run(articles)
    assert list(aggregate) == ["0", "2"]
    assert len(backend.prompts) == 3


@pytest.mark.asyncio
async def test_empty_payloads_left_out_of_aggregate_unless_kept(articles, output_dir):
    backend = FakeBackend(by_article({"beta": ["<output>[]</output>"]}, default=ANSWER_A))
    aggregate = await _pipeline(backend, output_dir).run(articles)
    assert list(aggregate) == ["0", "2"]
    assert (output_dir / "1.json").exists()

    kept = await _pipeline(
        FakeBackend(lambda p, n: ["<output>[]</output>"]),
        output_dir,
        continue_from_article=False,
        keep_empty_results=True,
    ).run(articles)
    assert list(kept) == ["0", "1", "2"]


@pytest.mark.asyncio
async def test_accumulation_mode_threads_answer_through_articles(articles, output_dir):
    backend = FakeBackend(lambda prompt, n: [f"<output>answer after {n}</output>"])
    aggregate = await _pipeline(backend, output_dir, mode=Mode.TEXT).run(articles)

    assert "(no answer yet)" in backend.prompts[0]
    assert "<current_answer>\nanswer after 1\n</current_answer>" in backend.prompts[1]
    assert "<current_answer>\nanswer after 2\n</current_answer>" in backend.prompts[2]
    assert aggregate["2"]["response"] == "answer after 3"


@pytest.mark.asyncio
async def test_accumulation_mode_restores_answer_on_resume(output_dir):
    articles = make_articles(3)
    broken = FakeBackend(by_article({"gamma": RuntimeError("down")}, default=["<output>partial answer</output>"]))
    with pytest.raises(ModelInvocationError):
        await _pipeline(broken, output_dir, mode=Mode.TEXT).run(articles)

    healthy = FakeBackend(lambda p, n: ["<output>final answer</output>"])
    await _pipeline(healthy, output_dir, mode=Mode.TEXT).run(articles)
    assert "<current_answer>\npartial answer\n</current_answer>" in healthy.prompts[0]


@pytest.mark.asyncio
async def test_progress_events(articles, output_dir):
    observer = RecordingObserver()
    await _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir, observer=observer).run(articles)
    persisted = observer.of_kind(EventKind.ARTICLE_PERSISTED)
    assert [e.detail["processed"] for e in persisted] == [1, 2, 3]
    assert observer.events[0].kind == EventKind.RUN_STARTED
    assert observer.events[-1].kind == EventKind.RUN_COMPLETED


@pytest.mark.asyncio
@pytest.mark.parametrize("bad", [[], None, "not a list", {"text": "x"}])
async def test_invalid_article_collection(bad, output_dir):
    pipeline = _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir)
    with pytest.raises(InvalidInput):
        await pipeline.run(bad)


def test_invalid_query_fails_at_construction(output_dir):
    with pytest.raises(InvalidInput):
        _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir, user_query="  ")


def test_run_sync(articles, output_dir):
    aggregate = _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir).run_sync(articles)
    assert len(aggregate) == 3


def test_accumulate_reducer():
    assert accumulate(None, "first") == "first"
    assert accumulate("first", "second") == "second"
    assert accumulate("first", "   ") == "first"
    assert accumulate("first", []) == "first"


@pytest.mark.asyncio
async def test_trailing_extraction_skip_is_not_retried_on_rerun(articles, output_dir):
    first = FakeBackend(by_article({"gamma": ["<output>not json</output>"]}, default=ANSWER_A))
    aggregate = await _pipeline(first, output_dir, on_extraction_error="skip").run(articles)
    assert list(aggregate) == ["0", "1"]
    assert (output_dir / "2.skip.json").exists()

    second = FakeBackend(lambda p, n: ANSWER_A)
    assert await _pipeline(second, output_dir, on_extraction_error="skip").run(articles) == aggregate
    assert second.prompts == []
    assert CheckpointStore(output_dir).resume_index() == len(articles)


@pytest.mark.asyncio
async def test_trailing_content_defect_leaves_skip_marker(output_dir):
    articles = make_articles(3)
    articles[2]["text"] = 123
    await _pipeline(FakeBackend(lambda p, n: ANSWER_A), output_dir).run(articles)

    assert CheckpointStore(output_dir).skip_indices() == [2]
    assert CheckpointStore(output_dir).resume_index() == 3


@pytest.mark.asyncio
async def test_empty_envelope_keeps_running_answer(articles, output_dir):
    replies = {"alpha": ["<output>first answer</output>"], "beta": ["<output></output>"]}
    backend = FakeBackend(by_article(replies, default=["<output>third answer</output>"]))
    await _pipeline(backend, output_dir, mode=Mode.TEXT).run(articles)

    assert "<current_answer>\nfirst answer\n</current_answer>" in backend.prompts[2]
