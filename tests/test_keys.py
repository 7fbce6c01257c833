import pytest

from metricscope.keys import Key, Label


def test_from_name_has_no_labels():
    key = Key.from_name("login_attempts")
    assert key.name == "login_attempts"
    assert key.labels == ()


def test_tuples_become_labels():
    key = Key("login_attempts", [("service", "login_service")])
    assert key.labels == (Label("service", "login_service"),)


def test_with_labels_returns_new_key():
    key = Key.from_name("my_counter")
    labelled = key.with_labels([Label("user", "ferris")])
    assert labelled == Key("my_counter", (Label("user", "ferris"),))
    assert key.labels == ()


def test_label_order_matters_for_equality():
    first = Key("k", [("a", "1"), ("b", "2")])
    second = Key("k", [("b", "2"), ("a", "1")])
    assert not first == second
    assert first == Key("k", [Label("a", "1"), Label("b", "2")])


def test_keys_are_hashable():
    counts = {Key("k", [("a", "1")]): 1}
    counts[Key("k", [("a", "1")])] += 1
    assert counts == {Key("k", [("a", "1")]): 2}


def test_malformed_label_rejected():
    with pytest.raises(ValueError):
        Key("k", [("a", "1", "extra")])


def test_keys_are_immutable():
    key = Key.from_name("k")
    with pytest.raises(AttributeError):
        key.name = "other"
    assert key.name == "k"
    assert key == Key.from_name("k")