"""Tests for compute-once values."""

import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from fixturedb.core.lazy import Lazy


class TestLazy:
    """Test Lazy."""

    def test_computes_on_first_get(self):
        calls = []
        lazy = Lazy(lambda: calls.append(1) or "value")

        assert not lazy.realized
        assert calls == []
        assert lazy.get() == "value"
        assert lazy.get() == "value"
        assert calls == [1]
        assert lazy.realized

    def test_concurrent_readers_share_one_computation(self):
        calls = []

        def factory():
            calls.append(1)
            time.sleep(0.05)
            return object()

        lazy = Lazy(factory)
        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: lazy.get(), range(16)))

        assert len(calls) == 1
        assert all(result is results[0] for result in results)

    def test_failure_is_not_cached(self):
        attempts = []

        def factory():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return 42

        lazy = Lazy(factory)
        with pytest.raises(RuntimeError):
            lazy.get()
        assert not lazy.realized

        assert lazy.get() == 42
        assert len(attempts) == 2

    def test_repr(self):
        lazy = Lazy(lambda: 1)
        assert repr(lazy) == "<Lazy pending>"
        lazy.get()
        assert repr(lazy) == "<Lazy 1>"
