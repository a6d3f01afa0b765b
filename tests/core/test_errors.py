"""Tests for Tumbler's custom exception types.

This module tests the exception hierarchy and the messages and attributes
each error carries.
"""

import pytest

from tumbler.core.errors import (
    CircularDependencyError,
    ConfigurationError,
    MissingMethodError,
    NotInstantiableError,
    RegistrationError,
    ResolutionError,
    SelfAliasedError,
    TargetNotFoundError,
    TumblerError,
    UnresolvablePrimitiveError,
)


@pytest.mark.unit
class TestHierarchy:
    """Test every error shares the Tumbler root."""

    @pytest.mark.parametrize(
        "error_type",
        [
            ResolutionError,
            NotInstantiableError,
            TargetNotFoundError,
            UnresolvablePrimitiveError,
            CircularDependencyError,
            RegistrationError,
            SelfAliasedError,
            MissingMethodError,
            ConfigurationError,
        ],
    )
    def test_subclass_of_tumbler_error(self, error_type):
        """Test each error derives from TumblerError."""
        assert issubclass(error_type, TumblerError)

    def test_resolution_errors(self):
        """Test resolution failures share ResolutionError."""
        for error_type in (
            NotInstantiableError,
            UnresolvablePrimitiveError,
            CircularDependencyError,
        ):
            assert issubclass(error_type, ResolutionError)

    def test_builtin_bases(self):
        """Test errors usable with standard except clauses."""
        assert issubclass(SelfAliasedError, LookupError)
        assert issubclass(MissingMethodError, ValueError)
        assert issubclass(TargetNotFoundError, NotInstantiableError)


@pytest.mark.unit
class TestResolutionError:
    """Test the ResolutionError base."""

    def test_attributes(self):
        """Test service key and cause."""
        cause = ValueError("inner")
        error = ResolutionError("Service not found", service_key="cache", cause=cause)

        assert str(error) == "Service not found"
        assert error.service_key == "cache"
        assert error.cause is cause

    def test_defaults(self):
        """Test optional attributes default to None."""
        error = ResolutionError("Service not found")
        assert error.service_key is None
        assert error.cause is None


@pytest.mark.unit
class TestMessages:
    """Test the message of each error."""

    def test_not_instantiable(self):
        """Test the message without a build chain."""
        error = NotInstantiableError("app.Transport")
        assert str(error) == "Target [app.Transport] is not instantiable."
        assert error.target == "app.Transport"
        assert error.build_stack == []
        assert error.service_key == "app.Transport"

    def test_not_instantiable_with_chain(self):
        """Test the message lists the build chain."""
        error = NotInstantiableError("app.Transport", ["app.Report", "app.Mailer"])
        assert str(error) == (
            "Target [app.Transport] is not instantiable while building [app.Report, app.Mailer]."
        )

    def test_build_stack_is_copied(self):
        """Test later stack changes do not alter the error."""
        stack = ["app.Mailer"]
        error = NotInstantiableError("app.Transport", stack)
        stack.pop()
        assert error.build_stack == ["app.Mailer"]

    def test_target_not_found(self):
        """Test the missing class message."""
        error = TargetNotFoundError("app.Missing")
        assert str(error) == "Target class [app.Missing] does not exist."
        assert error.target == "app.Missing"

    def test_unresolvable_primitive(self):
        """Test typed and untyped parameters."""
        typed = UnresolvablePrimitiveError("app.Mailer", "retries", int)
        untyped = UnresolvablePrimitiveError("app.Mailer", "retries")

        assert str(typed) == "Unresolvable dependency resolving [retries: int] in class app.Mailer"
        assert str(untyped) == "Unresolvable dependency resolving [$retries] in class app.Mailer"
        assert typed.parameter_name == "retries"
        assert typed.class_name == "app.Mailer"

    def test_circular_dependency(self):
        """Test the cycle is rendered in order."""
        error = CircularDependencyError(["A", "B", "A"])
        assert str(error) == "Circular dependency detected: A → B → A"
        assert error.cycle == ["A", "B", "A"]
        assert error.service_key == "A"

    def test_self_aliased(self):
        """Test the alias is named."""
        error = SelfAliasedError("cache")
        assert str(error) == "[cache] is aliased to itself."
        assert error.alias == "cache"

    def test_missing_method(self):
        """Test the callback is kept."""
        error = MissingMethodError("app.Job@a@b")
        assert str(error) == "Method not provided."
        assert error.callback == "app.Job@a@b"
