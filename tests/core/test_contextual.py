"""Tests for contextual bindings.

This module tests when().needs().give() for class, alias, instance,
factory and primitive implementations.
"""

from abc import ABC, abstractmethod

import pytest

from tumbler.core.contextual import ContextualBindingBuilder
from tumbler.core.errors import RegistrationError


class IContainerContextContractStub(ABC):
    @abstractmethod
    def handle(self):
        ...


class ContainerContextImplementationStub(IContainerContextContractStub):
    def handle(self):
        return "one"


class ContainerContextImplementationStubTwo(IContainerContextContractStub):
    def handle(self):
        return "two"


class ContainerTestContextInjectOne:
    def __init__(self, impl: IContainerContextContractStub):
        self.impl = impl


class ContainerTestContextInjectTwo:
    def __init__(self, impl: IContainerContextContractStub):
        self.impl = impl


class ContainerTestContextInjectNested:
    def __init__(self, inner: ContainerTestContextInjectOne):
        self.inner = inner


class ContainerContextPrimitiveStub:
    def __init__(self, first: int, last: int = 10):
        self.first = first
        self.last = last


@pytest.mark.unit
class TestContextualBindings:
    """Test per-consumer implementation overrides."""

    def test_contextual_scoping(self, container):
        """Test the rule applies only to its consumer."""
        container.bind(IContainerContextContractStub, ContainerContextImplementationStub)
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)

        one = container.make(ContainerTestContextInjectOne)
        two = container.make(ContainerTestContextInjectTwo)

        assert isinstance(one.impl, ContainerContextImplementationStubTwo)
        assert isinstance(two.impl, ContainerContextImplementationStub)

    def test_rule_without_default_binding(self, container):
        """Test a rule for an otherwise unbound interface."""
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStub)

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl, ContainerContextImplementationStub
        )

    def test_only_innermost_consumer_matches(self, container):
        """Test rules for an outer consumer do not leak into inner builds."""
        container.bind(IContainerContextContractStub, ContainerContextImplementationStub)
        container.when(ContainerTestContextInjectNested).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)

        nested = container.make(ContainerTestContextInjectNested)
        assert isinstance(nested.inner.impl, ContainerContextImplementationStub)

    def test_existing_instance_is_overridden(self, container):
        """Test rules win over a shared instance."""
        container.instance(IContainerContextContractStub, ContainerContextImplementationStub())
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl,
            ContainerContextImplementationStubTwo,
        )

    def test_instance_registered_after_rule(self, container):
        """Test rules win over instances registered later."""
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)
        container.instance(IContainerContextContractStub, ContainerContextImplementationStub())

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl,
            ContainerContextImplementationStubTwo,
        )

    def test_rule_through_existing_alias(self, container):
        """Test rules declared on an alias match the aliased abstract."""
        container.instance("stub", ContainerContextImplementationStub())
        container.alias("stub", IContainerContextContractStub)
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl,
            ContainerContextImplementationStubTwo,
        )

    def test_rule_before_alias(self, container):
        """Test rules keep matching after the dependency becomes an alias."""
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)
        container.instance("stub", ContainerContextImplementationStub())
        container.alias("stub", IContainerContextContractStub)

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl,
            ContainerContextImplementationStubTwo,
        )

    def test_factory_implementation(self, container):
        """Test a factory as the implementation."""
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(lambda c: c.make(ContainerContextImplementationStubTwo))

        assert isinstance(
            container.make(ContainerTestContextInjectOne).impl,
            ContainerContextImplementationStubTwo,
        )

    def test_instance_implementation_is_not_recreated(self, container):
        """Test a literal instance is handed out as is."""
        implementation = ContainerContextImplementationStubTwo()
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(implementation)

        assert container.make(ContainerTestContextInjectOne).impl is implementation
        assert container.make(ContainerTestContextInjectOne).impl is implementation

    def test_shared_binding_is_not_replaced(self, container):
        """Test contextual builds never populate the shared cache."""
        container.singleton(IContainerContextContractStub, ContainerContextImplementationStub)
        container.when(ContainerTestContextInjectOne).needs(
            IContainerContextContractStub
        ).give(ContainerContextImplementationStubTwo)

        shared = container.make(IContainerContextContractStub)
        one = container.make(ContainerTestContextInjectOne)

        assert isinstance(one.impl, ContainerContextImplementationStubTwo)
        assert container.make(IContainerContextContractStub) is shared

    def test_string_keys(self, container):
        """Test rules between string keys."""
        container.bind("consumer", lambda c: c.make("dependency"))
        container.bind("dependency", lambda: "default")

        container.when(ContainerTestContextInjectOne).needs("dependency").give(lambda: "special")
        assert container.make("consumer") == "default"


@pytest.mark.unit
class TestPrimitiveContextualBindings:
    """Test "$name" rules for primitive parameters."""

    def test_literal_primitive(self, container):
        """Test a literal value for a primitive."""
        container.when(ContainerContextPrimitiveStub).needs("$first").give(5)

        instance = container.make(ContainerContextPrimitiveStub)
        assert instance.first == 5
        assert instance.last == 10

    def test_factory_primitive(self, container):
        """Test a factory for a primitive is called with the container."""
        container.instance("config.first", 7)
        container.when(ContainerContextPrimitiveStub).needs("$first").give(
            lambda c: c.make("config.first")
        )

        assert container.make(ContainerContextPrimitiveStub).first == 7

    def test_rule_beats_default(self, container):
        """Test rules win over defaults."""
        container.when(ContainerContextPrimitiveStub).needs("$first").give(1)
        container.when(ContainerContextPrimitiveStub).needs("$last").give(2)

        instance = container.make(ContainerContextPrimitiveStub)
        assert (instance.first, instance.last) == (1, 2)

    def test_override_beats_rule(self, container):
        """Test explicit parameters win over rules."""
        container.when(ContainerContextPrimitiveStub).needs("$first").give(1)
        assert container.make_with(ContainerContextPrimitiveStub, {"first": 9}).first == 9


@pytest.mark.unit
class TestContextualBindingBuilder:
    """Test the fluent builder itself."""

    def test_needs_is_chainable(self, container):
        """Test needs() returns the builder."""
        builder = container.when(ContainerTestContextInjectOne)
        assert isinstance(builder, ContextualBindingBuilder)
        assert builder.needs(IContainerContextContractStub) is builder

    def test_give_without_needs(self, container):
        """Test give() before needs()."""
        with pytest.raises(RegistrationError, match="needs"):
            container.when(ContainerTestContextInjectOne).give(ContainerContextImplementationStub)

    def test_rule_is_logged(self, container, debug_logs):
        """Test contextual rules are logged at DEBUG."""
        container.when(ContainerTestContextInjectOne).needs("$first").give(1)
        assert "Contextual binding" in debug_logs.text
