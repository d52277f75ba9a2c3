"""Fake model backends for tests."""

from typing import Callable, Dict, List, Sequence, Union

from deep_truth.ports.interfaces import IModelBackend

Reply = Union[Sequence[str], BaseException]


class FakeBackend(IModelBackend):
    """
    Replies come from responder(prompt, call_number). A list of strings is
    streamed fragment by fragment; an exception is raised when the stream opens.
    """

    def __init__(self, responder: Callable[[str, int], Reply]):
        self._responder = responder
        self.prompts: List[str] = []

    @property
    def name(self) -> str:
        return "fake"

    async def invoke(self, prompt: str):
        self.prompts.append(prompt)
        reply = self._responder(prompt, len(self.prompts))
        if isinstance(reply, BaseException):
            raise reply
        for fragment in reply:
            yield fragment


class BrokenStreamBackend(IModelBackend):
    """Yields a few fragments then dies mid-stream, failures times; afterwards streams ok."""

    def __init__(self, failures: int, ok: Sequence[str]):
        self.failures = failures
        self.ok = list(ok)
        self.calls = 0

    @property
    def name(self) -> str:
        return "broken-stream"

    async def invoke(self, prompt: str):
        self.calls += 1
        if self.calls <= self.failures:
            yield "partial "
            yield "garbage"
            raise ConnectionResetError("stream aborted")
        for fragment in self.ok:
            yield fragment


def by_article(replies: Dict[str, Reply], default: Reply = ("<output>[]</output>",)):
    """Responder that picks a reply by which article text appears in the prompt."""

    def responder(prompt: str, call_number: int) -> Reply:
        for marker, reply in replies.items():
            if marker in prompt:
                return reply
        return default

    return responder


def flaky(failures: int, reply: Sequence[str], error: BaseException = None):
    """Responder failing the first `failures` calls, then answering `reply`."""

    def responder(prompt: str, call_number: int) -> Reply:
        if call_number <= failures:
            return error or TimeoutError(f"timeout on call {call_number}")
        return reply

    return responder


def make_articles(count: int) -> List[Dict[str, object]]:
    names = ["alpha", "beta", "gamma", "delta", "epsilon", "zeta"]
    return [
        {
            "text": f"{names[i]} article body",
            "metadata": {
                "articleTitle": f"{names[i].title()} title",
                "url": f"https://example.com/{i}",
            },
        }
        for i in range(count)
    ]
