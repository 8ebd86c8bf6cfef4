"""Behavioral invariants of the binding engine.

Each test pins one rule of the resolution and error contract so a refactor
that changes precedence, required semantics, or traversal order fails loudly.
"""

from dataclasses import dataclass, field

from hypothesis import given, settings
from hypothesis import strategies as st
import pytest

from envbind import Binder
from envbind.errors import (
    FieldParseError,
    NotARecordError,
    NotAReferenceError,
    RequiredFieldError,
)
from envbind.parsers import Int32

pytestmark = pytest.mark.contract


@dataclass
class Keyed:
    value: str = field(default="", metadata={"env": "K", "default": "d"})


@dataclass
class Inner:
    level: int = field(default=0, metadata={"env": "LEVEL", "default": "1"})


@dataclass
class Outer:
    before: str = field(default="", metadata={"env": "BEFORE", "default": "b"})
    inner: Inner = field(default_factory=Inner)
    after: str = field(default="", metadata={"env": "AFTER", "default": "a"})


@dataclass
class Counter:
    count: Int32 = field(default=0, metadata={"env": "COUNT", "default": "5"})
    name: str = field(default="", metadata={"env": "NAME", "default": "n"})


class TestResolutionPrecedence:
    """Invariant: sources left to right, then environment, then default."""

    def test_first_map_containing_key_wins(self):
        target = Keyed()
        Binder(environ={"K": "c"}).bind(target, {"K": "a"}, {"K": "b"})
        assert target.value == "a"

    def test_explicit_empty_value_is_honored(self):
        target = Keyed()
        Binder(environ={"K": "c"}).bind(target, {"K": ""})
        assert target.value == ""

    def test_absent_key_falls_through(self):
        with_env = Keyed()
        Binder(environ={"K": "c"}).bind(with_env, {})
        assert with_env.value == "c"

        without_env = Keyed()
        Binder(environ={}).bind(without_env, {})
        assert without_env.value == "d"

    @given(
        layers=st.lists(
            st.one_of(
                st.none(),
                st.dictionaries(st.sampled_from(["K", "X"]), st.text()),
            ),
            max_size=4,
        ),
        env=st.one_of(st.none(), st.text()),
    )
    @settings(max_examples=50, deadline=None, derandomize=True)
    def test_precedence_property(self, layers, env):
        """Property: the bound value is the first layer that has the key."""
        environ = {} if env is None else {"K": env}
        expected = next(
            (layer["K"] for layer in layers if layer is not None and "K" in layer),
            environ.get("K", "d"),
        )
        target = Keyed()
        Binder(environ=environ).bind(target, *layers)
        assert target.value == expected


class TestRequiredContract:
    """Invariant: required-ness is judged on the parsed value."""

    def test_default_that_parses_to_zero_trips_required(self):
        @dataclass
        class Required:
            n: int = field(
                default=0, metadata={"env": "N", "default": "0", "required": "true"}
            )

        with pytest.raises(RequiredFieldError):
            Binder(environ={}).bind(Required())

    def test_zero_from_a_source_also_trips_required(self):
        @dataclass
        class Required:
            flag: bool = field(default=True, metadata={"env": "F", "required": "true"})

        with pytest.raises(RequiredFieldError):
            Binder(environ={}).bind(Required(), {"F": "false"})


class TestTraversalContract:
    """Invariant: depth-first pre-order, first error aborts, no rollback."""

    def test_nested_and_outer_fields_bind_together(self):
        target = Outer()
        Binder(environ={}).bind(target, {"LEVEL": "3"})
        assert (target.before, target.inner.level, target.after) == ("b", 3, "a")

    def test_nested_failure_surfaces_before_later_siblings(self):
        target = Outer()
        with pytest.raises(FieldParseError) as exc:
            Binder(environ={}).bind(target, {"LEVEL": "high", "AFTER": "z"})

        assert exc.value.field_name == "inner.level"
        assert target.before == "b"
        assert target.after == ""


class TestTargetPreconditions:
    """Invariant: only writable record instances are accepted."""

    def test_record_class_is_not_a_reference(self):
        with pytest.raises(NotAReferenceError):
            Binder(environ={}).bind(Keyed)

    def test_scalar_is_not_a_record(self):
        with pytest.raises(NotARecordError):
            Binder(environ={}).bind(42)


class TestIdempotence:
    """Invariant: identical inputs produce identical records."""

    @given(
        count=st.integers(min_value=-(2**31), max_value=2**31 - 1),
        name=st.text(),
    )
    @settings(max_examples=25, deadline=None, derandomize=True)
    def test_repeated_bind_is_stable(self, count, name):
        sources = {"COUNT": str(count), "NAME": name}
        binder = Binder(environ={})

        first, second = Counter(), Counter()
        binder.bind(first, sources)
        binder.bind(second, sources)

        assert first == second == Counter(count=count, name=name)
