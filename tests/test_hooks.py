"""Tests for hooks/ - ordered dispatch, payload typing and failure isolation."""

import pytest
from conftest import make_result

from perf_audit.hooks import (
    AfterPersist,
    AfterScan,
    BeforePersist,
    HookEvent,
    HookRegistry,
    OnError,
)


class TestRegistry:
    def test_handlers_run_in_registration_order(self):
        registry = HookRegistry()
        calls = []
        registry.register(HookEvent.AFTER_SCAN, lambda ctx, p: calls.append("first"))
        registry.register(HookEvent.AFTER_SCAN, lambda ctx, p: calls.append("second"), plugin="other")

        failures = registry.emit(HookEvent.AFTER_SCAN, AfterScan(artifacts=()))

        assert failures == 0
        assert calls == ["first", "second"]

    def test_failing_handler_is_isolated(self):
        registry = HookRegistry()
        calls = []

        def boom(ctx, payload):
            raise RuntimeError("plugin bug")

        registry.register(HookEvent.BEFORE_PERSIST, boom, plugin="broken")
        registry.register(HookEvent.BEFORE_PERSIST, lambda ctx, p: calls.append(p.result))

        result = make_result(("main.js", 1))
        failures = registry.emit(HookEvent.BEFORE_PERSIST, BeforePersist(result=result))

        assert failures == 1
        assert calls == [result]

    def test_payload_type_is_checked(self):
        registry = HookRegistry()
        with pytest.raises(TypeError):
            registry.emit(HookEvent.AFTER_SCAN, BeforePersist(result=make_result()))

    def test_event_without_handlers(self):
        assert HookRegistry().emit(HookEvent.ON_ERROR, OnError(ValueError("x"), "scan")) == 0

    def test_string_event_names(self):
        registry = HookRegistry()
        registry.register("after_persist", lambda ctx, p: None)
        assert registry.handler_count(HookEvent.AFTER_PERSIST) == 1


class TestPlugins:
    def test_register_plugin_and_store(self):
        registry = HookRegistry()

        def count_saves(ctx, payload):
            ctx.store["saves"] = ctx.store.get("saves", 0) + 1

        registry.register_plugin("tracker", {HookEvent.AFTER_PERSIST: count_saves})

        payload = AfterPersist(result=make_result(), build_id=1)
        registry.emit(HookEvent.AFTER_PERSIST, payload)
        registry.emit(HookEvent.AFTER_PERSIST, payload)

        assert registry.store("tracker") == {"saves": 2}
        assert "tracker" in registry.plugins

    def test_context_names_the_plugin(self):
        registry = HookRegistry()
        seen = []
        registry.register(HookEvent.AFTER_SCAN, lambda ctx, p: seen.append(ctx.plugin), plugin="ci")
        registry.emit(HookEvent.AFTER_SCAN, AfterScan(artifacts=()))
        assert seen == ["ci"]

    def test_unregister_plugin(self):
        registry = HookRegistry()
        registry.register_plugin("a", {HookEvent.AFTER_SCAN: lambda ctx, p: None})
        registry.register_plugin("b", {HookEvent.AFTER_SCAN: lambda ctx, p: None})

        registry.unregister_plugin("a")

        assert registry.handler_count(HookEvent.AFTER_SCAN) == 1
        assert registry.plugins == ["b"]

    def test_payloads_are_read_only(self):
        payload = AfterScan(artifacts=())
        with pytest.raises(AttributeError):
            payload.artifacts = ("x",)
