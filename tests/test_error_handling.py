"""
Tests for error policies and the error handling proxy.

Plugin reconciliation runs after the primary write has landed, so the
engine routes it through an ErrorHandlingProxy whose policy decides
whether a registry failure reaches the caller.
"""

import logging
from unittest.mock import AsyncMock, Mock

import pytest

from contenttreelib.aio import (
    CollectErrorsPolicy,
    ContentNode,
    ContentTreeEngine,
    ContinueOnErrorsPolicy,
    ErrorHandlingProxy,
    FailFastPolicy,
    PluginRegistry,
    PluginUsageReconciler,
    ThresholdPolicy,
    create_resilient_proxy,
)
from contenttreelib.config import EngineConfig


NODE = ContentNode(id='b1', type='block', course_id='c1')


class Flaky:
    """Collaborator whose async method always fails."""

    label = 'flaky'

    async def reconcile(self, node):
        raise ValueError(f"cannot reconcile {node.id}")

    async def ok(self, node):
        return node.id

    def sync_call(self, value):
        return value * 2


def _broken_registry():
    registry = Mock(spec=PluginRegistry)
    registry.list_extensions = AsyncMock(side_effect=RuntimeError('registry down'))
    return registry


class TestPolicies:

    @pytest.mark.asyncio
    async def test_fail_fast_reraises(self):
        proxy = ErrorHandlingProxy(Flaky(), FailFastPolicy())
        with pytest.raises(ValueError, match='cannot reconcile b1'):
            await proxy.reconcile(NODE)

    @pytest.mark.asyncio
    async def test_default_policy_is_fail_fast(self):
        assert isinstance(ErrorHandlingProxy(Flaky()).get_policy(), FailFastPolicy)

    @pytest.mark.asyncio
    async def test_collect_errors(self):
        policy = CollectErrorsPolicy()
        proxy = ErrorHandlingProxy(Flaky(), policy)

        assert await proxy.reconcile(NODE) is None
        assert await proxy.reconcile(NODE) is None

        assert len(policy.errors) == 2
        assert policy.errors[0]['node_id'] == 'b1'
        assert policy.errors[0]['operation'] == 'reconcile'
        assert policy.errors[0]['error_type'] == 'ValueError'

    @pytest.mark.asyncio
    async def test_continue_logs_and_counts(self, caplog):
        policy = ContinueOnErrorsPolicy()
        proxy = ErrorHandlingProxy(Flaky(), policy)

        with caplog.at_level(logging.WARNING, logger='contenttreelib.aio.error_policies'):
            await proxy.reconcile(NODE)

        assert 'Error in reconcile' in caplog.text
        stats = policy.get_statistics()
        assert stats['total_errors'] == 1
        assert stats['by_type'] == {'ValueError': 1}

    @pytest.mark.asyncio
    async def test_threshold(self):
        policy = ThresholdPolicy(max_errors=1, verbose=False)
        proxy = ErrorHandlingProxy(Flaky(), policy)

        assert await proxy.reconcile(NODE) is None
        with pytest.raises(RuntimeError, match='Error threshold exceeded'):
            await proxy.reconcile(NODE)
        assert policy.error_count == 2


class TestProxy:

    @pytest.mark.asyncio
    async def test_successful_calls_pass_through(self):
        proxy = ErrorHandlingProxy(Flaky(), CollectErrorsPolicy())
        assert await proxy.ok(NODE) == 'b1'
        assert proxy.sync_call(21) == 42
        assert proxy.label == 'flaky'

    def test_introspection(self):
        target = Flaky()
        inner = ErrorHandlingProxy(target)
        outer = ErrorHandlingProxy(inner, CollectErrorsPolicy())

        assert outer.get_target() is inner
        assert outer.get_chain() == ['ErrorHandlingProxy', 'ErrorHandlingProxy', 'Flaky']
        assert 'CollectErrorsPolicy' in repr(outer)

    def test_set_policy(self):
        proxy = ErrorHandlingProxy(Flaky())
        policy = CollectErrorsPolicy()
        proxy.set_policy(policy)
        assert proxy.get_policy() is policy

    def test_create_resilient_proxy(self):
        assert isinstance(create_resilient_proxy(Flaky(), strict=True).get_policy(), FailFastPolicy)
        assert isinstance(create_resilient_proxy(Flaky()).get_policy(), ContinueOnErrorsPolicy)

    def test_wraps_reconciler_attributes(self, store, registry):
        proxy = ErrorHandlingProxy(PluginUsageReconciler(store, registry, reapply_defaults=False))
        assert proxy.reapply_defaults is False


class TestEngineReconcileFailures:

    ROWS = [('course', 'm05'), ('page', 'co-05'), ('article', 'a-05'), ('block', 'b-05')]

    @pytest.mark.asyncio
    async def test_failure_surfaces_after_write(self, store, translator, builder):
        engine = ContentTreeEngine(store, _broken_registry(), translator)
        await builder.build(self.ROWS)
        count = len(store)

        with pytest.raises(RuntimeError, match='registry down'):
            await engine.insert({'_type': 'block', '_parentId': builder.lookup('a-05').id})

        # The primary write is not undone
        assert len(store) == count + 1

    @pytest.mark.asyncio
    async def test_collected_failure_lets_insert_finish(self, store, translator, builder):
        policy = CollectErrorsPolicy()
        engine = ContentTreeEngine(
            store, _broken_registry(), translator, config=EngineConfig(reconcile_error_policy=policy)
        )
        await builder.build(self.ROWS)

        block = await engine.insert({'_type': 'block', '_parentId': builder.lookup('a-05').id})

        assert block.sort_order == 2
        assert len(policy.errors) == 1
        assert policy.errors[0]['operation'] == 'update_enabled_plugins'
        assert policy.errors[0]['node_id'] == block.id
