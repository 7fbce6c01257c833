import pytest

from metricscope.keys import Label
from metricscope.label_filter import Allowlist, IncludeAll, LabelFilter


def test_include_all_accepts_everything():
    flt = IncludeAll()
    assert flt.should_include_label("login_attempts", Label("user", "ferris")) is True
    assert flt.should_include_label("", Label("", "")) is True


def test_allowlist_only_listed_keys():
    flt = Allowlist(["env", "service"])
    assert flt.should_include_label("login_attempts", Label("service", "login_service"))
    assert flt.should_include_label("login_attempts", Label("env", "test"))
    assert not flt.should_include_label("login_attempts", Label("user", "ferris"))


def test_allowlist_ignores_metric_name():
    flt = Allowlist(["user"])
    label = Label("user", "ferris")
    assert flt.should_include_label("a", label) == flt.should_include_label("b", label)


def test_allowlist_from_generator_and_equality():
    from_gen = Allowlist(name for name in ["service", "env"])
    assert from_gen == Allowlist(["env", "service", "env"])
    assert from_gen.label_names == frozenset({"env", "service"})


def test_allowlist_rejects_single_string():
    with pytest.raises(TypeError):
        Allowlist("service")


def test_label_filter_is_abstract():
    with pytest.raises(TypeError):
        LabelFilter()


def test_custom_filter_subclass():
    class OnlyUser(LabelFilter):
        def should_include_label(self, name, label):
            return label.key == "user"

    flt = OnlyUser()
    allow = Allowlist(["user"])
    labels = [Label("user", "ferris"), Label("user.email", "user@example.com")]
    for label in labels:
        assert flt.should_include_label("x", label) == allow.should_include_label("x", label)
    assert allow.should_include_label("x", labels[0]) is True
    assert allow.should_include_label("x", labels[1]) is False


def test_include_all_equality():
    assert IncludeAll() == IncludeAll()
    assert len({IncludeAll(), IncludeAll()}) == 1