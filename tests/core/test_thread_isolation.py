"""Test that concurrent resolutions keep separate resolution stacks.

Threads share one container's bindings and shared instances, but every
thread sees only its own build stack and parameter overrides.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from tumbler.core.container import get_current_container


class Transport:
    pass


class ReportMailer:
    def __init__(self, transport: Transport):
        self.transport = transport


class InvoiceMailer:
    def __init__(self, transport: Transport):
        self.transport = transport


def key(cls):
    return f"{cls.__module__}.{cls.__qualname__}"


@pytest.mark.unit
class TestThreadIsolation:
    """Test per-thread stacks."""

    def test_parameter_overrides_are_per_thread(self, container):
        """Test each thread's factory sees only its own overrides."""
        barrier = threading.Barrier(2)

        def echo(c, parameters):
            barrier.wait(timeout=5)
            return parameters, list(c._with)

        container.bind("echo", echo)

        with ThreadPoolExecutor(max_workers=2) as executor:
            futures = {
                name: executor.submit(container.make_with, "echo", {"who": name})
                for name in ("a", "b")
            }
            results = {name: future.result(timeout=10) for name, future in futures.items()}

        for name, (parameters, stack) in results.items():
            assert parameters == {"who": name}
            assert stack == [{"who": name}]

    def test_build_stacks_are_per_thread(self, container):
        """Test contextual lookups see each thread's own consumer."""
        barrier = threading.Barrier(2)

        def snapshot(c):
            barrier.wait(timeout=5)
            return list(c._build_stack)

        container.when(ReportMailer).needs(Transport).give(snapshot)
        container.when(InvoiceMailer).needs(Transport).give(snapshot)

        with ThreadPoolExecutor(max_workers=2) as executor:
            report = executor.submit(container.make, ReportMailer)
            invoice = executor.submit(container.make, InvoiceMailer)

            assert report.result(timeout=10).transport == [key(ReportMailer)]
            assert invoice.result(timeout=10).transport == [key(InvoiceMailer)]

    def test_shared_instances_are_shared_across_threads(self, container):
        """Test the instance cache is common to all threads."""
        shared = Transport()
        container.instance(Transport, shared)

        with ThreadPoolExecutor(max_workers=2) as executor:
            results = list(executor.map(lambda _: container.make(Transport), range(4)))

        assert all(result is shared for result in results)
        assert container._build_stack == []
        assert container._with == []

    def test_overlapping_with_blocks_in_threads(self, container):
        """Test threads entering and leaving the container out of order."""
        a_entered = threading.Event()
        b_entered = threading.Event()
        a_exited = threading.Event()
        seen = {}
        errors = []

        def first():
            try:
                with container:
                    a_entered.set()
                    b_entered.wait(timeout=5)
                    seen["a"] = get_current_container()
            except Exception as exc:
                errors.append(exc)
            finally:
                a_entered.set()
                a_exited.set()

        def second():
            try:
                a_entered.wait(timeout=5)
                with container:
                    b_entered.set()
                    a_exited.wait(timeout=5)
                    seen["b"] = get_current_container()
                seen["b_after"] = get_current_container()
            except Exception as exc:
                errors.append(exc)
            finally:
                b_entered.set()

        threads = [threading.Thread(target=first), threading.Thread(target=second)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert errors == []
        assert seen == {"a": container, "b": container, "b_after": None}
