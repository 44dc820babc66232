"""
Tests for the coercion / key-stripping / transform stages.
"""

import uuid

import pytest
from typing_extensions import TypedDict

from fncontracts import (
    ArgsValidationError,
    ReturnValidationError,
    SchemaResolutionError,
    validated,
)


class User(TypedDict):
    name: str
    age: int


# =============================================================================
# Coercion
# =============================================================================

class TestCoercion:
    """coerce_args / coerce_ret convert toward the schema, best effort."""

    def test_coerce_args(self):
        @validated({"args": tuple[int, int], "ret": int}, coerce_args=True)
        def add(x, y):
            return x + y

        assert add("2", "3") == 5

    def test_without_coercion_text_is_rejected(self):
        @validated({"args": tuple[int, int], "ret": int})
        def add(x, y):
            return x + y

        with pytest.raises(ArgsValidationError):
            add("2", "3")

    def test_uncoercible_args_still_reported(self):
        calls = []

        @validated({"args": tuple[int]}, coerce_args=True)
        def record(x):
            calls.append(x)

        with pytest.raises(ArgsValidationError) as exc:
            record("abc")
        assert exc.value.value == ("abc",)
        assert calls == []

    def test_coerce_ret(self):
        @validated({"args": tuple[str], "ret": uuid.UUID}, coerce_ret=True)
        def make_id(text):
            return text

        result = make_id("12345678-1234-5678-1234-567812345678")
        assert isinstance(result, uuid.UUID)
        assert result == uuid.UUID("12345678-1234-5678-1234-567812345678")

    def test_ret_not_coerced_by_default(self):
        @validated({"args": tuple[str], "ret": uuid.UUID})
        def make_id(text):
            return text

        with pytest.raises(ReturnValidationError):
            make_id("12345678-1234-5678-1234-567812345678")

    def test_uncoercible_ret_reported(self):
        @validated({"args": tuple[str], "ret": uuid.UUID}, coerce_ret=True)
        def make_id(text):
            return text

        with pytest.raises(ReturnValidationError):
            make_id("not-a-uuid")


# =============================================================================
# Key stripping
# =============================================================================

class TestStripExtraKeys:
    """strip_extra_keys removes undeclared keys before the body sees them."""

    def test_body_receives_declared_keys_only(self):
        received = []

        @validated({"args": tuple[User]}, strip_extra_keys=True)
        def save(user):
            received.append(user)
            return user

        save({"name": "Alice", "age": 30, "extra": "x"})
        assert received == [{"name": "Alice", "age": 30}]

    def test_without_stripping_body_sees_extras(self):
        @validated({"args": tuple[User]})
        def save(user):
            return user

        assert save({"name": "Alice", "age": 30, "extra": "x"})["extra"] == "x"

    def test_result_stripped_with_ret_schema(self):
        @validated({"args": tuple[str], "ret": User}, strip_extra_keys=True)
        def load(name):
            return {"name": name, "age": 30, "password": "secret"}

        assert load("Alice") == {"name": "Alice", "age": 30}


# =============================================================================
# Transform
# =============================================================================

class TestTransform:
    """transform decodes with a built transformer."""

    def test_string_transform(self):
        @validated({"args": tuple[int], "ret": int}, transform='string')
        def inc(x):
            return x + 1

        assert inc("41") == 42

    def test_callable_transform_on_args_and_result(self):
        seen = []

        def record(value):
            seen.append(value)
            return value

        @validated({"args": tuple[int], "ret": int}, transform=record)
        def inc(x):
            return x + 1

        assert inc(1) == 2
        assert seen == [(1,), 2]

    def test_result_untouched_without_ret_schema(self):
        seen = []

        def record(value):
            seen.append(value)
            return value

        @validated({"args": tuple[int]}, transform=record)
        def inc(x):
            return x + 1

        inc(1)
        assert seen == [(1,)]

    def test_unknown_transform_fails_definition(self):
        with pytest.raises(SchemaResolutionError) as exc:
            @validated({"args": tuple[int]}, transform='nope')
            def inc(x):
                return x + 1
        assert exc.value.field == 'transform'

    def test_stages_need_a_schema(self):
        """Without a schema there is nothing to coerce or transform against."""
        @validated(coerce_args=True, transform=lambda v: "changed")
        def echo(x):
            return x

        assert echo("1") == "1"


# =============================================================================
# Composition order
# =============================================================================

class TestCompositionOrder:
    """coercion -> strip -> transform, each on the previous output."""

    def test_order_on_map_argument(self):
        seen = []
        received = []

        def tag(args):
            seen.append(args)
            (user,) = args
            return ({**user, "tagged": True},)

        @validated(
            {"args": tuple[User]},
            coerce_args=True,
            strip_extra_keys=True,
            transform=tag,
        )
        def save(user):
            received.append(user)
            return user

        save({"name": "Alice", "age": "30", "extra": "x"})

        # transform saw coerced, stripped input
        assert seen == [({"name": "Alice", "age": 30},)]
        # transform output is not stripped afterwards
        assert received == [{"name": "Alice", "age": 30, "tagged": True}]
