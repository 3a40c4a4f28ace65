"""
Unit tests for buildscripts.config.executor module.

Tests the module-loading primitives, export extraction, the temporary artifact
lifecycle and diagnostic rewriting of ModuleExecutor.
"""

from __future__ import annotations

import asyncio
import traceback
import types

import pytest

from buildscripts.config.base import ModuleSystem
from buildscripts.config.exceptions import ConfigExecutionError, ErrorKind
from buildscripts.config.executor import (
    ModuleExecutor,
    artifact_path,
    export_value,
    import_module_async,
    load_module_sync,
    module_exports,
    temporary_artifact,
)
from buildscripts.config.registry import ModuleRegistry


@pytest.fixture
def registry():
    return ModuleRegistry()


@pytest.fixture
def executor(registry):
    return ModuleExecutor(registry)


class TestArtifactPath:
    """Tests for artifact_path function."""

    def test_async_suffix(self, tmp_path):
        """Async artifacts get a .mpy suffix appended."""
        source = tmp_path / "build.config.pyt"
        assert artifact_path(source, ModuleSystem.ASYNC) == tmp_path / "build.config.pyt.mpy"

    def test_sync_suffix(self, tmp_path):
        """Sync artifacts get a .cpy suffix appended."""
        source = tmp_path / "build.config.pyt"
        assert artifact_path(source, ModuleSystem.SYNC) == tmp_path / "build.config.pyt.cpy"


class TestTemporaryArtifact:
    """Tests for temporary_artifact context manager."""

    def test_artifact_exists_inside_block(self, tmp_path):
        """The artifact holds the code while the block runs."""
        source = tmp_path / "cfg.pyt"
        with temporary_artifact("a = 1\n", source, ModuleSystem.SYNC) as artifact:
            assert artifact.read_text() == "a = 1\n"
        assert not artifact.exists()

    def test_artifact_removed_on_error(self, tmp_path):
        """The artifact is removed when the block raises."""
        source = tmp_path / "cfg.pyt"
        with pytest.raises(RuntimeError):
            with temporary_artifact("a = 1\n", source, ModuleSystem.ASYNC):
                raise RuntimeError("boom")
        assert list(tmp_path.iterdir()) == []


class TestModuleExports:
    """Tests for module_exports and export_value functions."""

    def _module(self, **names):
        module = types.ModuleType("cfg")
        vars(module).update(names)
        return module

    def test_public_names_only(self):
        """Private names and modules are not exported."""
        module = self._module(a=1, _private=2, os=types.ModuleType("os"))
        assert module_exports(module) == {"a": 1}

    def test_dunder_all_restricts_exports(self):
        """__all__ selects the exported names."""
        module = self._module(a=1, b=2, __all__=["b"])
        assert module_exports(module) == {"b": 2}

    def test_export_value_prefers_default(self):
        """export_value returns the default name when present."""
        module = self._module(default={"a": 1}, other=2)
        assert export_value(module) == {"a": 1}

    def test_export_value_falls_back_to_exports(self):
        """export_value returns all exports without a default name."""
        module = self._module(a=1)
        assert export_value(module) == {"a": 1}


class TestModuleLoading:
    """Tests for load_module_sync and import_module_async functions."""

    def test_load_module_sync(self, tmp_path, registry):
        """load_module_sync runs the script and registers the module."""
        script = tmp_path / "cfg.py"
        script.write_text("plugins = ['a']\n")

        module = load_module_sync(script, registry)
        assert module.plugins == ["a"]
        assert module.__file__ == str(script)
        assert registry.is_registered(script)

    def test_load_module_sync_uses_registry(self, tmp_path, registry):
        """A registered module is returned without reading the file."""
        script = tmp_path / "cfg.py"
        cached = types.ModuleType("cached")
        registry.register(script, cached)
        assert load_module_sync(script, registry) is cached

    def test_load_module_sync_failure_not_registered(self, tmp_path, registry):
        """A module that raises while loading is not registered."""
        script = tmp_path / "cfg.py"
        script.write_text("raise ValueError('bad')\n")

        with pytest.raises(ValueError, match="bad"):
            load_module_sync(script, registry)
        assert not registry.is_registered(script)

    def test_import_module_async_top_level_await(self, tmp_path, registry):
        """import_module_async awaits a module body using top-level await."""
        script = tmp_path / "cfg.mpy"
        script.write_text(
            "import asyncio\n"
            "await asyncio.sleep(0)\n"
            "default = {'a': 1}\n"
        )

        module = asyncio.run(import_module_async(script, registry))
        assert module.default == {"a": 1}
        assert registry.is_registered(script)

    def test_top_level_await_rejected_by_sync_loader(self, tmp_path, registry):
        """The sync module system does not allow top-level await."""
        script = tmp_path / "cfg.py"
        script.write_text("import asyncio\nawait asyncio.sleep(0)\n")

        with pytest.raises(SyntaxError):
            load_module_sync(script, registry)


class TestModuleExecutor:
    """Tests for ModuleExecutor class."""

    def test_execute_sync(self, tmp_path, executor):
        """Sync code yields its whole exports."""
        source = tmp_path / "cfg.pyt"
        result = asyncio.run(executor.execute("a = 1\n", source, ModuleSystem.SYNC))
        assert result == {"a": 1}

    def test_execute_async(self, tmp_path, executor):
        """Async code yields its default export."""
        source = tmp_path / "cfg.pyt"
        code = "import asyncio\nawait asyncio.sleep(0)\ndefault = {'a': 1}\n"
        result = asyncio.run(executor.execute(code, source, ModuleSystem.ASYNC))
        assert result == {"a": 1}

    def test_sync_default_export_preferred(self, tmp_path, executor):
        """Sync code defining default yields the default export."""
        source = tmp_path / "cfg.pyt"
        code = "default = {'a': 1}\nother = 2\n"
        result = asyncio.run(executor.execute(code, source, ModuleSystem.SYNC))
        assert result == {"a": 1}

    @pytest.mark.parametrize("module_system", list(ModuleSystem))
    def test_no_artifact_left_after_success(self, tmp_path, executor, module_system):
        """The artifact is removed after a successful execution."""
        source = tmp_path / "cfg.pyt"
        asyncio.run(executor.execute("default = 1\n", source, module_system))
        assert not artifact_path(source, module_system).exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("module_system", list(ModuleSystem))
    def test_no_artifact_left_after_failure(self, tmp_path, executor, module_system):
        """The artifact is removed when the code raises."""
        source = tmp_path / "cfg.pyt"
        with pytest.raises(ConfigExecutionError):
            asyncio.run(
                executor.execute("raise RuntimeError('boom')\n", source, module_system)
            )
        assert not artifact_path(source, module_system).exists()
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.parametrize("module_system", list(ModuleSystem))
    def test_error_references_original_path(self, tmp_path, executor, module_system):
        """Rendered diagnostics mention the source path, never the artifact."""
        source = tmp_path / "cfg.pyt"
        temp = str(artifact_path(source, module_system))
        code = "raise RuntimeError(f'bad config in {__file__}')\n"

        with pytest.raises(ConfigExecutionError) as exc_info:
            asyncio.run(executor.execute(code, source, module_system))

        err = exc_info.value
        assert temp in str(err.cause)
        assert temp not in str(err)
        assert str(source) in str(err)
        trace = err.format_trace()
        assert temp not in trace
        assert str(source) in trace

    @pytest.mark.parametrize("module_system", list(ModuleSystem))
    def test_default_traceback_names_source(self, tmp_path, executor, module_system):
        """Standard traceback rendering never shows the artifact path."""
        source = tmp_path / "cfg.pyt"
        temp = str(artifact_path(source, module_system))
        code = "raise RuntimeError(f'bad config in {__file__}')\n"

        with pytest.raises(ConfigExecutionError) as exc_info:
            asyncio.run(executor.execute(code, source, module_system))

        rendered = "".join(traceback.format_exception(exc_info.value))
        assert temp not in rendered
        assert f"bad config in {source}" in rendered

    def test_error_carries_structure(self, tmp_path, executor):
        """The raised error records kind, paths and cause."""
        source = tmp_path / "cfg.pyt"
        with pytest.raises(ConfigExecutionError) as exc_info:
            asyncio.run(
                executor.execute("raise KeyError('x')\n", source, ModuleSystem.SYNC)
            )

        err = exc_info.value
        assert err.kind is ErrorKind.EXECUTION_FAILURE
        assert err.original_path == source
        assert err.temp_path == artifact_path(source, ModuleSystem.SYNC)
        assert isinstance(err.cause, KeyError)
        assert err.__cause__ is None
        assert err.__suppress_context__

    def test_syntax_error_rewritten(self, tmp_path, executor):
        """Syntax errors in compiled code name the source file."""
        source = tmp_path / "cfg.pyt"
        with pytest.raises(ConfigExecutionError) as exc_info:
            asyncio.run(executor.execute("a = (\n", source, ModuleSystem.SYNC))

        err = exc_info.value
        assert isinstance(err.cause, SyntaxError)
        assert "cfg.pyt.cpy" not in err.format_trace()
        assert "cfg.pyt" in err.format_trace()

    def test_stale_module_invalidated(self, tmp_path, registry, executor):
        """A module cached for the artifact path is not reused."""
        source = tmp_path / "cfg.pyt"
        stale = types.ModuleType("stale")
        stale.default = "stale"
        registry.register(artifact_path(source, ModuleSystem.SYNC), stale)

        result = asyncio.run(
            executor.execute("default = 'fresh'\n", source, ModuleSystem.SYNC)
        )
        assert result == "fresh"

    def test_loaded_module_stays_registered(self, tmp_path, registry, executor):
        """Successful executions leave their module in the registry."""
        source = tmp_path / "cfg.pyt"
        asyncio.run(executor.execute("default = 1\n", source, ModuleSystem.ASYNC))
        assert registry.is_registered(artifact_path(source, ModuleSystem.ASYNC))

    def test_repeated_execution_uses_new_code(self, tmp_path, executor):
        """Executing again for the same source runs the new code."""
        source = tmp_path / "cfg.pyt"
        first = asyncio.run(executor.execute("default = 1\n", source, ModuleSystem.SYNC))
        second = asyncio.run(executor.execute("default = 2\n", source, ModuleSystem.SYNC))
        assert (first, second) == (1, 2)
