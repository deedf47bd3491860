"""Unit tests for fetcher-driven resources."""

import asyncio

import pytest

from resynx import (
    ConfigurationError,
    InvalidStateError,
    Resource,
    ResourceError,
    ResourceLoading,
    ResourceOptions,
    ResourceReady,
    ResourceUnresolved,
    create_resource,
)
from tests.utils import Recorder, flush


class TestResourceConstruction:
    """Driver validation at construction."""

    @pytest.mark.unit
    @pytest.mark.resource
    def test_new_resource_is_unresolved(self, fetcher):
        resource = create_resource(fetcher=fetcher)

        assert isinstance(resource, Resource)
        assert resource.state == ResourceUnresolved()
        assert fetcher.calls == 0

    @pytest.mark.unit
    @pytest.mark.resource
    def test_missing_driver_raises_configuration_error(self):
        with pytest.raises(ConfigurationError):
            create_resource()

    @pytest.mark.unit
    @pytest.mark.resource
    def test_both_drivers_raise_configuration_error(self, fetcher, controller):
        with pytest.raises(ConfigurationError):
            create_resource(fetcher=fetcher, stream=controller.stream)

    @pytest.mark.unit
    @pytest.mark.resource
    def test_name_option_appears_in_repr(self, fetcher):
        resource = create_resource(fetcher=fetcher, options=ResourceOptions(name="user"))

        assert repr(resource) == "Resource('user', state=ResourceUnresolved(), previous=None)"


class TestResourceResolve:
    """First fetch via resolve()."""

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_resolve_transitions_to_loading_synchronously(self, fetcher):
        resource = create_resource(fetcher=fetcher)

        pending = resource.resolve()

        assert resource.state == ResourceLoading()
        assert fetcher.calls == 1
        fetcher.complete(1)
        await pending

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_resolve_with_value_becomes_ready(self, fetcher):
        resource = create_resource(fetcher=fetcher)

        pending = resource.resolve()
        fetcher.complete(42)
        await pending

        assert resource.state == ResourceReady(42, refreshing=False)
        assert resource.state.value == 42

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_resolve_with_failure_becomes_error(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        boom = RuntimeError("boom")

        pending = resource.resolve()
        fetcher.fail(boom)
        await pending

        assert resource.state.has_error
        assert resource.state.error is boom
        assert resource.state.as_error.stack_trace is not None
        with pytest.raises(RuntimeError, match="boom"):
            resource.state.value

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_coroutine_fetcher_is_awaited(self):
        async def fetch():
            await asyncio.sleep(0)
            return "done"

        resource = create_resource(fetcher=fetch)
        await resource.resolve()

        assert resource.state == ResourceReady("done")

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_fetcher_raising_synchronously_is_captured(self):
        def fetch():
            raise ValueError("sync failure")

        resource = create_resource(fetcher=fetch)
        await resource.resolve()

        assert isinstance(resource.state, ResourceError)
        assert str(resource.state.error) == "sync failure"

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_resolve_twice_raises_invalid_state_error(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending

        with pytest.raises(InvalidStateError):
            resource.resolve()
        assert fetcher.calls == 1

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_resolve_while_loading_raises_invalid_state_error(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()

        with pytest.raises(InvalidStateError):
            resource.resolve()

        fetcher.complete(1)
        await pending

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_listeners_see_loading_then_ready(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        received = Recorder()
        resource.add_listener(received)

        pending = resource.resolve()
        fetcher.complete("x")
        await pending

        assert received.values == [ResourceLoading(), ResourceReady("x")]


    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.edge_case
    def test_resolve_without_running_loop_leaves_resource_unresolved(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        received = Recorder()
        resource.add_listener(received)

        with pytest.raises(RuntimeError):
            resource.resolve()

        assert resource.state == ResourceUnresolved()
        assert fetcher.calls == 0
        assert received.values == []


class TestResourceRefetch:
    """Stale-while-revalidate refetching."""

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_refetch_from_ready_keeps_value_while_refreshing(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending

        pending = resource.refetch()

        assert resource.state == ResourceReady(1, refreshing=True)
        fetcher.complete(2)
        await pending
        assert resource.state == ResourceReady(2, refreshing=False)

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_refetch_from_error_goes_through_loading(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()
        fetcher.fail(RuntimeError("first"))
        await pending

        pending = resource.refetch()

        assert resource.state == ResourceLoading()
        fetcher.complete("recovered")
        await pending
        assert resource.state == ResourceReady("recovered")

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_refetch_failure_discards_previous_value(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending

        pending = resource.refetch()
        fetcher.fail(RuntimeError("later"))
        await pending

        assert resource.state.has_error
        assert resource.state.as_ready is None

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_refetch_before_resolve_settles_does_not_corrupt_state(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        first = resource.resolve()

        second = resource.refetch()
        assert resource.state == ResourceLoading()

        fetcher.complete("newest", index=1)
        fetcher.complete("oldest", index=0)
        await asyncio.gather(first, second)

        assert resource.state == ResourceReady("newest")

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_stale_fetch_is_dropped_by_default(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        pending = resource.resolve()
        fetcher.complete(0)
        await pending

        slow = resource.refetch()
        fast = resource.refetch()
        fetcher.complete("fast", index=2)
        await fast
        fetcher.complete("slow", index=1)
        await slow

        assert resource.state == ResourceReady("fast")

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_last_settlement_wins_without_guard(self, fetcher):
        resource = create_resource(
            fetcher=fetcher, options=ResourceOptions(guard_stale_fetches=False)
        )
        pending = resource.resolve()
        fetcher.complete(0)
        await pending

        slow = resource.refetch()
        fast = resource.refetch()
        fetcher.complete("fast", index=2)
        await fast
        fetcher.complete("slow", index=1)
        await slow

        assert resource.state == ResourceReady("slow")


    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.edge_case
    def test_refetch_without_running_loop_keeps_state(self, fetcher):
        resource = create_resource(fetcher=fetcher)

        with pytest.raises(RuntimeError):
            resource.refetch()

        assert resource.state == ResourceUnresolved()
        assert fetcher.calls == 0


class TestResourceSource:
    """Refetching driven by a source observable."""

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_source_is_subscribed_after_first_fetch(self, fetcher, source):
        resource = create_resource(fetcher=fetcher, source=source)

        pending = resource.resolve()
        assert not source.has_listeners
        fetcher.complete(1)
        await pending

        assert source.listener_count == 1

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_each_source_change_triggers_one_refetch(self, fetcher, source):
        resource = create_resource(fetcher=fetcher, source=source)
        pending = resource.resolve()
        fetcher.complete("user-1")
        await pending

        source.value = 2

        assert fetcher.calls == 2
        assert resource.state == ResourceReady("user-1", refreshing=True)

        fetcher.complete("user-2")
        await flush()
        assert resource.state == ResourceReady("user-2")

        source.value = 3
        source.value = 4
        assert fetcher.calls == 4

        fetcher.complete("user-3", index=2)
        fetcher.complete("user-4", index=3)
        await flush()
        assert resource.state == ResourceReady("user-4")

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_dispose_unregisters_from_source(self, fetcher, source):
        resource = create_resource(fetcher=fetcher, source=source)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending

        resource.dispose()
        source.value = 2

        assert not source.has_listeners
        assert fetcher.calls == 1

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_source_change_after_dispose_is_ignored(self, fetcher, source):
        resource = create_resource(fetcher=fetcher, source=source)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending
        assert source.listener_count == 1

        resource.dispose()
        source.value = 2
        source.value = 3

        assert source.listener_count == 0
        assert fetcher.calls == 1
        assert resource.state == ResourceReady(1)

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_source_dispose_releases_refetch_listener(self, fetcher, source):
        resource = create_resource(fetcher=fetcher, source=source)
        pending = resource.resolve()
        fetcher.complete(1)
        await pending

        source.dispose()

        assert not source.has_listeners
        assert resource.state == ResourceReady(1)


class TestResourceDispose:
    """Disposal of fetcher-driven resources."""

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_fetch_settling_after_dispose_is_dropped(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        received = Recorder()
        pending = resource.resolve()
        resource.add_listener(received)

        resource.dispose()
        fetcher.complete(1)
        await pending

        assert received.values == []
        assert resource.state == ResourceLoading()

    @pytest.mark.unit
    @pytest.mark.resource
    @pytest.mark.asyncio
    async def test_operations_after_dispose_raise(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        resource.dispose()

        with pytest.raises(InvalidStateError):
            resource.resolve()
        with pytest.raises(InvalidStateError):
            resource.refetch()

    @pytest.mark.unit
    @pytest.mark.resource
    def test_dispose_is_idempotent(self, fetcher):
        resource = create_resource(fetcher=fetcher)
        calls = []
        resource.on_dispose(lambda: calls.append(1))

        resource.dispose()
        resource.dispose()

        assert calls == [1]
        assert resource.disposed
