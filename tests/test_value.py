"""Tests for value.py value views."""

import pytest

from layerconf.exceptions import ConversionError
from layerconf.provider import StaticProvider, ValueProvider, YAMLProvider
from layerconf.resolve import ROOT
from layerconf.value import Value


class TestValueState:
    """Tests for found, default and value()."""

    def test_found_value(self) -> None:
        """A found value has a value and is not a default."""
        value = StaticProvider({"a": 1}).get("a")
        assert value.found
        assert value.has_value()
        assert not value.is_default()
        assert value.value() == 1

    def test_missing_value(self) -> None:
        """A missing value has nothing."""
        value = StaticProvider({"a": 1}).get("b")
        assert not value.has_value()
        assert value.value() is None
        assert value.last_updated is None
        assert str(value) == ""

    def test_default_used_when_missing(self) -> None:
        """with_default supplies a value for missing keys."""
        value = StaticProvider({}).get("port").with_default(8080)
        assert value.has_value()
        assert value.is_default()
        assert value.value() == 8080
        assert value.as_int() == 8080

    def test_found_value_wins_over_default(self) -> None:
        """Defaults never replace found values."""
        value = StaticProvider({"port": 80}).get("port").with_default(8080)
        assert not value.is_default()
        assert value.value() == 80

    def test_with_default_returns_copy(self) -> None:
        """The original value is unchanged."""
        value = StaticProvider({}).get("a")
        value.with_default(1)
        assert not value.has_value()

    def test_default_applies_to_children(self) -> None:
        """A mapping default fills in children the provider lacks."""
        provider = StaticProvider({"db": {"host": "x"}})
        db = provider.get("db").with_default({"host": "localhost", "port": 5432})

        assert db.get("host").as_str() == "x"
        assert db.get("port").as_int() == 5432

    def test_source_and_repr(self) -> None:
        """Values know the provider they came from."""
        value = YAMLProvider.from_bytes(b"a: 1").get("a")
        assert value.source == "yaml"
        assert value.provider is not None
        assert "source='yaml'" in repr(value)

    def test_detached_value(self) -> None:
        """A value without provider has no source and no children."""
        value = Value(None, "a")
        assert value.source == ""
        assert not value.get("b").has_value()
        assert value.get("b").key == "a.b"


class TestNavigation:
    """Tests for get and child_keys."""

    def test_get_is_relative(self) -> None:
        """Keys are relative to the value."""
        provider = StaticProvider({"a": {"b": {"c": 1}}})
        value = provider.get("a").get("b").get("c")
        assert value.key == "a.b.c"
        assert value.as_int() == 1

    def test_get_root_returns_same_key(self) -> None:
        """get(ROOT) returns the value itself."""
        value = StaticProvider({"a": 1}).get("a").get(ROOT)
        assert value.key == "a"
        assert value.as_int() == 1

    def test_child_keys_of_mapping(self) -> None:
        """Mapping children are listed by key."""
        value = StaticProvider({"a": {"x": 1, "y": 2}}).get("a")
        assert value.child_keys() == ["x", "y"]

    def test_child_keys_of_sequence(self) -> None:
        """Sequence children are listed by index."""
        assert StaticProvider({"a": [5, 6, 7]}).get("a").child_keys() == ["0", "1", "2"]

    def test_child_keys_of_scalar(self) -> None:
        """Scalars have no children."""
        assert StaticProvider({"a": 1}).get("a").child_keys() == []


class TestConversions:
    """Tests for typed accessors."""

    def test_try_as(self) -> None:
        """try_as_* report success."""
        value = ValueProvider("12").get(ROOT)
        assert value.try_as_int() == (12, True)
        assert value.try_as_float() == (12.0, True)
        assert value.try_as_str() == ("12", True)
        assert value.try_as_bool() == (False, False)

    def test_try_as_on_container(self) -> None:
        """Containers never convert to scalars."""
        value = ValueProvider({"a": 1}).get(ROOT)
        assert value.try_as_int() == (0, False)
        assert value.try_as_str() == ("", False)

    def test_as_bool(self) -> None:
        """Text bools convert."""
        assert ValueProvider("true").get(ROOT).as_bool() is True

    def test_as_raises(self) -> None:
        """as_* raise ConversionError when the value does not convert."""
        value = StaticProvider({"port": "http"}).get("port")
        with pytest.raises(ConversionError, match='cannot convert "str" to "int"'):
            value.as_int()

    def test_as_missing(self) -> None:
        """Missing values do not convert."""
        with pytest.raises(ConversionError):
            StaticProvider({}).get("a").as_str()

    def test_str(self) -> None:
        """str() gives the text form."""
        assert str(StaticProvider({"a": True}).get("a")) == "true"
        assert str(StaticProvider({"a": 1.5}).get("a")) == "1.5"


class TestDecodeEntryPoints:
    """Tests for decode and populate on values."""

    def test_decode(self) -> None:
        """decode returns a new value of the requested shape."""
        provider = StaticProvider({"ports": ["80", "443"]})
        assert provider.get("ports").decode(list[int]) == [80, 443]

    def test_populate_rejects_plain_types(self) -> None:
        """Only records and hook types can be populated in place."""
        with pytest.raises(TypeError, match="can't populate"):
            StaticProvider({"a": 1}).get("a").populate(5)
