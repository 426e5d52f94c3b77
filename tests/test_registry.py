"""Tests for the control registry and the module resolver."""

import asyncio

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp import test_utils

from mu_sys import EResolutionFailure
from mu_ctrl_custom import TControl
from mu_registry import (CONTROL_REGISTRY, TFileModuleSource, THttpModuleSource, TModuleResolver,
                         control_class, declared_bases, module_source_for, register_control)


class CountingSource(TFileModuleSource):
    def __init__(self, path):
        super().__init__(path)
        self.calls = []

    async def fetch(self, type_name):
        self.calls.append(type_name)
        await asyncio.sleep(0.01)
        return await super().fetch(type_name)


class TestRegistry:
    def test_register_sets_control_type(self):
        class Gauge(TControl):
            pass

        register_control(Gauge)
        assert CONTROL_REGISTRY.get("Gauge") is Gauge
        assert Gauge().controlType == "Gauge"

    def test_register_with_name_and_decorator(self):
        @register_control(name="Meter")
        class TMeter(TControl):
            pass

        assert CONTROL_REGISTRY.has("Meter")
        assert TMeter().controlType == "Meter"

    def test_subclass_of_registered_type_reports_own_name(self):
        class Gauge2(TControl):
            pass

        class Unregistered(Gauge2):
            pass

        register_control(Gauge2)
        assert Unregistered().controlType == "Unregistered"

    def test_register_rejects_non_controls(self):
        with pytest.raises(TypeError):
            register_control(object)

    def test_register_rejects_bad_names(self):
        class Gauge3(TControl):
            pass

        with pytest.raises(ValueError):
            register_control(Gauge3, name="bad-name")

    def test_reset_keeps_builtins(self):
        class Gauge4(TControl):
            pass

        register_control(Gauge4)
        CONTROL_REGISTRY.reset()
        assert CONTROL_REGISTRY.names() == ["TControl"]

    def test_control_class_of_missing_type(self):
        with pytest.raises(EResolutionFailure):
            control_class("Nope")

    def test_declared_bases(self):
        src = 'class A(control_class("B"), control_class( \'C\' )):\n    x = control_class("B")\n'
        assert declared_bases(src) == ["B", "C"]

    def test_module_source_for(self, controls_dir):
        assert isinstance(module_source_for(str(controls_dir)), TFileModuleSource)
        assert isinstance(module_source_for("https://example.com/controls"), THttpModuleSource)


class TestResolver:
    @pytest.mark.asyncio
    async def test_resolves_from_directory(self, controls_dir):
        resolver = TModuleResolver(controls_dir)
        assert await resolver.resolve("TextLabel") is True
        assert CONTROL_REGISTRY.has("TextLabel")
        assert resolver.loaded == ["TextLabel"]

    @pytest.mark.asyncio
    async def test_cached_type_is_not_fetched(self, controls_dir):
        source = CountingSource(controls_dir)
        resolver = TModuleResolver(source)
        assert await resolver.resolve("TextLabel")
        assert await resolver.resolve("TextLabel")
        assert await resolver.resolve("TControl")
        assert source.calls == ["TextLabel"]

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_load(self, controls_dir):
        source = CountingSource(controls_dir)
        resolver = TModuleResolver(source)
        results = await asyncio.gather(*(resolver.resolve("Item") for _ in range(3)))
        assert results == [True, True, True]
        assert source.calls == ["Item"]
        assert resolver.pending == set()

    @pytest.mark.asyncio
    async def test_bases_load_first(self, controls_dir):
        resolver = TModuleResolver(controls_dir)
        assert await resolver.resolve("Leaf")
        assert resolver.loaded == ["BaseA", "BaseB", "Leaf"]
        assert issubclass(CONTROL_REGISTRY.get("Leaf"), CONTROL_REGISTRY.get("BaseA"))
        leaf = CONTROL_REGISTRY.get("Leaf")()
        assert (leaf.a, leaf.b, leaf.leaf) == ("a", "b", 1)

    @pytest.mark.asyncio
    async def test_all_bases_must_load(self, controls_dir):
        resolver = TModuleResolver(controls_dir)
        assert await resolver.resolve("Pair")
        assert resolver.loaded[-1] == "Pair"
        assert resolver.loaded.index("BaseA") < resolver.loaded.index("BaseB")
        assert "Extra" in resolver.loaded

    @pytest.mark.asyncio
    async def test_missing_base_fails(self, controls_dir, warned):
        resolver = TModuleResolver(controls_dir)
        assert await resolver.resolve("Orphan") is False
        assert not CONTROL_REGISTRY.has("Orphan")
        assert warned("ResolutionFailure")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Missing", "Broken", "Silent", "../Item", ""])
    async def test_failures_resolve_false(self, controls_dir, name):
        resolver = TModuleResolver(controls_dir)
        assert await resolver.resolve(name) is False
        assert resolver.pending == set()

    @pytest.mark.asyncio
    async def test_failed_type_can_be_retried(self, tmp_path):
        resolver = TModuleResolver(tmp_path)
        assert await resolver.resolve("Later") is False
        (tmp_path / "Later.py").write_text(
            "from mu_ctrl_custom import TControl\n"
            "from mu_registry import register_control\n\n\n"
            "class Later(TControl):\n    pass\n\n\n"
            "register_control(Later)\n",
            encoding="utf-8",
        )
        assert await resolver.resolve("Later") is True

    @pytest.mark.asyncio
    async def test_circular_bases_fail(self, tmp_path):
        for name, base in (("CycA", "CycB"), ("CycB", "CycA")):
            (tmp_path / f"{name}.py").write_text(
                "from mu_registry import register_control, control_class\n\n\n"
                f"class {name}(control_class(\"{base}\")):\n    pass\n\n\n"
                f"register_control({name})\n",
                encoding="utf-8",
            )
        resolver = TModuleResolver(tmp_path)
        assert await asyncio.wait_for(resolver.resolve("CycA"), 2) is False


class TestHttpSource:
    @pytest_asyncio.fixture
    async def server(self, controls_dir):
        async def handler(request):
            file = controls_dir / request.match_info["name"]
            if not file.exists():
                raise web.HTTPNotFound()
            return web.Response(text=file.read_text(encoding="utf-8"))

        app = web.Application()
        app.router.add_get("/controls/{name}", handler)
        server = test_utils.TestServer(app)
        await server.start_server()
        yield server
        await server.close()

    @pytest.mark.asyncio
    async def test_resolves_over_http(self, server):
        resolver = TModuleResolver(str(server.make_url("/controls")))
        assert isinstance(resolver.source, THttpModuleSource)
        assert await resolver.resolve("Leaf")
        assert resolver.loaded == ["BaseA", "BaseB", "Leaf"]

    @pytest.mark.asyncio
    async def test_http_404_fails(self, server, warned):
        resolver = TModuleResolver(str(server.make_url("/controls")))
        assert await resolver.resolve("Missing") is False
        assert warned("ResolutionFailure")
