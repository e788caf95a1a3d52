"""Tests for compiler backend discovery and selection."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeCompiler
from webbuild.exceptions import PluginError
from webbuild.plugins.esbuild import EsbuildCompiler
from webbuild.plugins.manager import ENTRY_POINT_GROUP, PluginManager
from webbuild.plugins.tsc import TscTypeChecker


def _entry_point(name: str, factory=None, error: Exception | None = None) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    if error is not None:
        ep.load.side_effect = error
    else:
        ep.load.return_value = factory
    return ep


class TestBuiltins:
    def test_esbuild_is_builtin(self) -> None:
        manager = PluginManager()
        assert manager.list_compilers() == ["esbuild"]
        assert isinstance(manager.get_compiler("esbuild"), EsbuildCompiler)

    def test_esbuild_needs_no_entry_point(self) -> None:
        with patch("importlib.metadata.entry_points", return_value=[]):
            manager = PluginManager()
            assert manager.discover() == []
        assert isinstance(manager.get_compiler("esbuild"), EsbuildCompiler)

    def test_type_checker(self) -> None:
        assert isinstance(PluginManager().get_type_checker(), TscTypeChecker)

    def test_unknown_compiler(self) -> None:
        with pytest.raises(PluginError, match="Unknown compiler 'swc'.*esbuild"):
            PluginManager().get_compiler("swc")


class TestRegister:
    def test_register_and_get(self) -> None:
        manager = PluginManager()
        manager.register("fake", FakeCompiler)
        assert manager.list_compilers() == ["esbuild", "fake"]
        assert isinstance(manager.get_compiler("fake"), FakeCompiler)

    def test_duplicate(self) -> None:
        with pytest.raises(PluginError, match="already registered"):
            PluginManager().register("esbuild", FakeCompiler)

    def test_factory_failure(self) -> None:
        def broken():
            raise RuntimeError("no binary")

        manager = PluginManager()
        manager.register("broken", broken)
        with pytest.raises(PluginError, match="failed to initialise: no binary"):
            manager.get_compiler("broken")


class TestDiscover:
    def test_loads_entry_points(self) -> None:
        eps = [_entry_point("fake", FakeCompiler)]
        with patch("importlib.metadata.entry_points", return_value=eps) as mock_eps:
            manager = PluginManager()
            assert manager.discover() == ["fake"]
        mock_eps.assert_called_once_with(group=ENTRY_POINT_GROUP)
        assert "fake" in manager.list_compilers()

    def test_builtin_not_replaced(self) -> None:
        eps = [_entry_point("esbuild", FakeCompiler)]
        with patch("importlib.metadata.entry_points", return_value=eps):
            manager = PluginManager()
            assert manager.discover() == []
        assert isinstance(manager.get_compiler("esbuild"), EsbuildCompiler)

    def test_load_failure_is_skipped(self) -> None:
        eps = [_entry_point("bad", error=ImportError("missing module")), _entry_point("fake", FakeCompiler)]
        with patch("importlib.metadata.entry_points", return_value=eps):
            manager = PluginManager()
            assert manager.discover() == ["fake"]
        assert "bad" not in manager.list_compilers()
