"""
Tests for the definition surface and the validated function registry.
"""

from typing import Any

import pytest

from fncontracts import (
    ArgsValidationError,
    PydanticEngine,
    SchemaResolutionError,
    ValidatedFunction,
    clear_registry,
    define,
    get_validated,
    list_validated,
    validated,
)

SCHEMA = {"args": tuple[int], "ret": int}


class TestDecorator:
    """@validated forms."""

    def test_bare_decorator(self):
        @validated
        def ident(x):
            """Return x."""
            return x

        assert isinstance(ident, ValidatedFunction)
        assert ident(1) == 1
        assert ident.__name__ == "ident"
        assert ident.__doc__ == "Return x."

    def test_wrapped_body_exposed(self):
        def ident(x):
            return x

        wrapped = validated(SCHEMA)(ident)
        assert wrapped.__wrapped__ is ident

    def test_schema_from_keyword(self):
        @validated(pydantic_schema=SCHEMA)
        def ident(x):
            return x

        with pytest.raises(ArgsValidationError):
            ident("1")

    def test_attrs_override_keywords(self):
        @validated(SCHEMA, attrs={"coerce_args": True}, coerce_args=False)
        def ident(x):
            return x

        assert ident.config.coerce_args is True
        assert ident("4") == 4

    def test_meta_exposed(self):
        @validated(SCHEMA, owner="billing", attrs={"debug": False})
        def ident(x):
            """Doc."""
            return x

        assert ident.meta["owner"] == "billing"
        assert ident.meta["pydantic_schema"] is SCHEMA
        assert ident.meta["doc"] == "Doc."
        assert ident.meta["debug"] is False

    def test_too_many_positional_schemas(self):
        with pytest.raises(SchemaResolutionError):
            validated(SCHEMA, SCHEMA)

    def test_non_schema_positional(self):
        with pytest.raises(SchemaResolutionError):
            validated(int)

    def test_malformed_schema_fails_definition(self):
        with pytest.raises(SchemaResolutionError):
            @validated({"arguments": tuple[int]})
            def ident(x):
                return x

    def test_custom_engine(self):
        class CountingEngine(PydanticEngine):
            checks = 0

            def validate(self, schema, value, *, strict=True):
                CountingEngine.checks += 1
                return super().validate(schema, value, strict=strict)

        @validated(SCHEMA, engine=CountingEngine(), cache=False)
        def ident(x):
            return x

        ident(1)
        assert CountingEngine.checks == 2


class TestMethods:
    """Validated functions bind like plain methods."""

    def test_instance_method(self):
        class Account:
            def __init__(self, balance):
                self.balance = balance

            @validated({"args": tuple[Any, int], "ret": int})
            def deposit(self, amount):
                self.balance += amount
                return self.balance

        account = Account(10)
        assert account.deposit(5) == 15
        with pytest.raises(ArgsValidationError):
            account.deposit("5")
        assert isinstance(Account.deposit, ValidatedFunction)


class TestDefine:
    """define(schema?, name, doc?, attrs?, params, body)."""

    def test_define_with_options(self):
        halve = define(
            SCHEMA,
            "halve",
            {"on_error": lambda kind, explanation, value: -1},
            ["x"],
            lambda x: x // 2,
        )
        assert halve(8) == 4
        assert halve("8") == -1

    def test_define_keyword_metadata(self):
        ident = define("ident", ["x"], lambda x: x, pydantic_schema=SCHEMA)
        with pytest.raises(ArgsValidationError):
            ident("x")


class TestRegistry:
    """Every built function is registered by module and qualname."""

    def test_registered(self):
        @validated(SCHEMA)
        def ident(x):
            return x

        key = f"{ident.__module__}.{ident.__qualname__}"
        assert get_validated(key) is ident
        assert key in list_validated()

    def test_define_registered_by_name(self):
        inc = define("inc_fn", ["x"], lambda x: x + 1)
        assert get_validated(f"{inc.__module__}.inc_fn") is inc

    def test_redefinition_replaces(self):
        first = define("twice", ["x"], lambda x: x * 2)
        second = define("twice", ["x"], lambda x: x + x)
        key = f"{second.__module__}.twice"
        assert get_validated(key) is second
        assert get_validated(key) is not first

    def test_clear(self):
        define("temp", ["x"], lambda x: x)
        clear_registry()
        assert list_validated() == []

    def test_unknown_key(self):
        assert get_validated("nowhere.nothing") is None
