import threading
import time
import unittest
from unittest.mock import MagicMock

import pytest

from tagbind import Lifetime, Registry
from tagbind._registry import Registration


class TestLifetimeControl(unittest.TestCase):
    reg: Registry

    def setUp(self):
        self.reg = Registry()

    def test_resolve_register_singleton_returns_same_instance(self):
        class A: ...

        factory = MagicMock(side_effect=lambda r: A())
        self.reg.register_singleton(A, factory)
        a1 = self.reg.resolve(A)
        a2 = self.reg.resolve(A)
        assert a2 is a1, "SINGLETON should return the cached instance"
        assert factory.call_count == 1

    def test_resolve_register_transient_returns_new_instances(self):
        class A: ...

        factory = MagicMock(side_effect=lambda r: A())
        self.reg.register_transient(A, factory)
        a1 = self.reg.resolve(A)
        a2 = self.reg.resolve(A)
        assert a2 is not a1, "TRANSIENT should return new instances"
        assert factory.call_count == 2

    def test_register_instance_is_always_singleton(self):
        class A: ...

        inst = A()
        self.reg.register_instance(A, inst)
        a = self.reg.resolve(A)
        b = self.reg.resolve(A)
        assert a is inst
        assert b is inst

    def test_singleton_factory_is_not_called_before_first_resolve(self):
        factory = MagicMock(return_value=object())
        self.reg.register_singleton("lazy", factory)
        factory.assert_not_called()

        self.reg.resolve("lazy")
        factory.assert_called_once_with(self.reg)

    def test_singleton_factory_returning_none_is_cached(self):
        factory = MagicMock(return_value=None)
        self.reg.register_singleton("nothing", factory)

        assert self.reg.resolve("nothing") is None
        assert self.reg.resolve("nothing") is None
        assert factory.call_count == 1

    def test_failed_singleton_factory_is_retried_on_next_resolve(self):
        class A: ...

        factory = MagicMock(side_effect=[ValueError("boom"), A()])
        self.reg.register_singleton(A, factory)

        with self.assertRaises(ValueError):
            self.reg.resolve(A)

        first = self.reg.resolve(A)
        assert isinstance(first, A)
        assert self.reg.resolve(A) is first
        assert factory.call_count == 2

    def test_transient_factory_receives_resolving_registry(self):
        seen = []
        self.reg.register_transient("probe", lambda r: seen.append(r))
        self.reg.resolve("probe")
        assert seen == [self.reg]

    def test_singleton_build_is_logged(self):
        self.reg.register_singleton("value", lambda _: 1)
        with self.assertLogs("tagbind._registry", level="DEBUG") as logs:
            self.reg.resolve("value")
        assert any("Built singleton" in line for line in logs.output)


def test_singleton_factory_runs_once_when_threads_race():
    reg = Registry()
    workers = 8
    start = threading.Barrier(workers)

    class A: ...

    def slow(_):
        time.sleep(0.05)
        return A()

    factory = MagicMock(side_effect=slow)
    reg.register_singleton(A, factory)
    results = []

    def worker():
        start.wait(timeout=5)
        results.append(reg.resolve(A))

    threads = [threading.Thread(target=worker, daemon=True) for _ in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=5)

    assert len(results) == workers
    assert factory.call_count == 1
    assert all(r is results[0] for r in results)


def test_registration_shape_is_checked():
    with pytest.raises(ValueError, match="need a cell"):
        Registration(factory=lambda _: None, lifetime=Lifetime.SINGLETON)
    with pytest.raises(ValueError, match="need a factory"):
        Registration(factory=None, lifetime=Lifetime.TRANSIENT)
