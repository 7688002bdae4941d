import re
from dataclasses import FrozenInstanceError

import pytest

from aclx import InvalidArgument
from aclx.core.model import Decision, Rule, literal_pattern, pattern_source


def test_rule_identity_ignores_action_order():
    a = Rule(literal_pattern("/x"), ("read", "write"), ("u",))
    b = Rule(literal_pattern("/x"), ("write", "read"), ("v",))
    assert a.identity == b.identity


def test_rule_applies_and_permits():
    r = Rule(literal_pattern("/x"), ("read",), ("admin",))
    assert r.applies_to("/x", "read") and r.applies_to("/x", "*")
    assert not r.applies_to("/x", "write")
    assert r.permits("admin") and not r.permits("guest")
    assert Rule(literal_pattern("/x"), ("read",), ("*",)).permits("guest")


def test_decision_defaults_and_immutability():
    d = Decision(False, "no_match")
    assert d.rule is None and d.rule_index is None
    assert d.effect == "deny"
    with pytest.raises(FrozenInstanceError):
        d.allowed = True  # type: ignore[misc]


@pytest.mark.parametrize(
    "resource, actions, roles",
    [
        (literal_pattern("/x"), (), ("u",)),
        (literal_pattern("/x"), ("read",), ()),
        (literal_pattern("/x"), ("read", 1), ("u",)),
        ("/x", ("read",), ("u",)),
        (re.compile(b"x"), ("read",), ("u",)),
    ],
)
def test_rule_rejects_invalid_fields(resource, actions, roles):
    with pytest.raises(InvalidArgument):
        Rule(resource, actions, roles)


def test_rule_normalizes_single_names_and_lists():
    r = Rule(literal_pattern("/x"), "read", ["a", "b"])
    assert r.actions == ("read",)
    assert r.roles == ("a", "b")


def test_pattern_source_spells_out_flags():
    assert pattern_source(re.compile("^/x$")) == "^/x$"
    assert pattern_source(re.compile("^/x$", re.IGNORECASE | re.MULTILINE)) == "(?im)^/x$"
    assert pattern_source(re.compile("(?i)^/x$")) == "(?i)^/x$"
    assert pattern_source(re.compile("^/x$", re.ASCII)) == "(?a)^/x$"
    verbose = re.compile(r"^/x  # comment (unbalanced", re.VERBOSE)
    assert pattern_source(verbose) == r"(?x)^/x  # comment (unbalanced"
