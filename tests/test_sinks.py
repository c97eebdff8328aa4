import copy

from waywire.sinks import message_iterator


def test_messages_come_out_in_order():
    sink, messages = message_iterator()
    for msg in ("a", "b", "c"):
        sink.push(msg)
    assert list(messages) == ["a", "b", "c"]


def test_empty_iterator_yields_nothing():
    _, messages = message_iterator()
    assert next(messages, "none pending") == "none pending"


def test_iterator_resumes_after_exhaustion():
    sink, messages = message_iterator()
    sink.push(1)
    assert list(messages) == [1]
    assert list(messages) == []
    sink.push(2)
    assert list(messages) == [2]


def test_copied_sinks_feed_the_same_iterator():
    sink, messages = message_iterator()
    other = copy.copy(sink)
    sink.push("first")
    other.push("second")
    sink.push("third")
    assert list(messages) == ["first", "second", "third"]


def test_independent_iterators_do_not_share():
    sink_a, iter_a = message_iterator()
    sink_b, iter_b = message_iterator()
    sink_a.push("x")
    sink_b.push("y")
    assert list(iter_a) == ["x"]
    assert list(iter_b) == ["y"]


def test_iterator_is_its_own_iter():
    sink, messages = message_iterator()
    sink.push(5)
    assert iter(messages) is messages
    assert next(messages) == 5