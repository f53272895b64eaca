"""Join per-token completion callbacks back into token order."""

from __future__ import annotations

from typing import Callable, Sequence

from exdocs.core.doc_reference import Candidate

FanOutDone = Callable[[list[list[Candidate]]], None]


class CompletionFanOut:
    """Collects one completion list per token and reports them together.

    Requests may answer in any order; ``on_done`` always receives the lists in
    slot (token) order once every slot has been delivered.
    """

    def __init__(self, count: int, on_done: FanOutDone) -> None:
        self._slots: list[list[Candidate] | None] = [None] * max(0, int(count))
        self._remaining = len(self._slots)
        self._on_done = on_done
        self._finished = False
        if self._remaining == 0:
            self._finish()

    @property
    def finished(self) -> bool:
        return self._finished

    def callback_for(self, index: int) -> Callable[[Sequence[Candidate]], None]:
        return lambda items: self.deliver(index, items)

    def deliver(self, index: int, candidates: Sequence[Candidate] | None) -> None:
        if self._finished or not 0 <= index < len(self._slots):
            return
        if self._slots[index] is not None:
            return
        self._slots[index] = list(candidates or ())
        self._remaining -= 1
        if self._remaining == 0:
            self._finish()

    def _finish(self) -> None:
        self._finished = True
        self._on_done([list(slot or ()) for slot in self._slots])
