from exdocs.core.doc_reference import Candidate
from exdocs.services.completion_fanout import CompletionFanOut


def test_results_are_reported_in_slot_order():
    results = []
    fan_out = CompletionFanOut(3, results.append)
    fan_out.callback_for(2)([Candidate("c")])
    fan_out.callback_for(0)([Candidate("a")])
    assert not fan_out.finished
    fan_out.callback_for(1)(None)
    assert fan_out.finished
    assert results == [[[Candidate("a")], [], [Candidate("c")]]]


def test_duplicate_and_late_deliveries_are_ignored():
    results = []
    fan_out = CompletionFanOut(1, results.append)
    fan_out.deliver(0, [Candidate("a")])
    fan_out.deliver(0, [Candidate("b")])
    fan_out.deliver(5, [Candidate("c")])
    assert results == [[[Candidate("a")]]]


def test_zero_slots_complete_immediately():
    results = []
    fan_out = CompletionFanOut(0, results.append)
    assert fan_out.finished
    assert results == [[]]
