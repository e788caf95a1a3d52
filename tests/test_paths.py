"""Tests for served dependency paths and import rewriting."""

from __future__ import annotations

from pathlib import Path

from webbuild.paths import (
    build_path_table,
    package_name,
    rewrite_bundle_file,
    rewrite_imports,
    served_path,
    unbundled_imports,
)


class TestPathTable:
    def test_maps_every_key_in_order(self) -> None:
        manifest = {"lib-b": Path("/x/b.js"), "lib-a": Path("/x/a.js")}
        table = build_path_table(manifest)
        assert list(table) == ["lib-b", "lib-a"]
        assert table["lib-a"] == "./dependencies/lib-a.js"

    def test_empty_manifest(self) -> None:
        assert build_path_table({}) == {}

    def test_scoped_package(self) -> None:
        assert served_path("@scope/pkg") == "./dependencies/@scope/pkg.js"


class TestRewriteImports:
    TABLE = {"lib-a": "./dependencies/lib-a.js", "preact": "./dependencies/preact.js"}

    def test_static_import(self) -> None:
        source = 'import { a } from "lib-a";'
        assert rewrite_imports(source, self.TABLE) == 'import { a } from "./dependencies/lib-a.js";'

    def test_single_quotes_preserved(self) -> None:
        source = "import { h } from 'preact';"
        assert rewrite_imports(source, self.TABLE) == "import { h } from './dependencies/preact.js';"

    def test_minified_from(self) -> None:
        source = 'import{h as e}from"preact";'
        assert rewrite_imports(source, self.TABLE) == 'import{h as e}from"./dependencies/preact.js";'

    def test_side_effect_and_dynamic_import(self) -> None:
        source = 'import "lib-a";\nconst m = await import("preact");'
        result = rewrite_imports(source, self.TABLE)
        assert 'import "./dependencies/lib-a.js"' in result
        assert 'import("./dependencies/preact.js")' in result

    def test_reexport(self) -> None:
        source = 'export { a } from "lib-a";'
        assert "./dependencies/lib-a.js" in rewrite_imports(source, self.TABLE)

    def test_prebundled_subpath(self) -> None:
        table = {**self.TABLE, "preact/hooks": served_path("preact/hooks")}
        source = 'import { useState } from "preact/hooks";'
        assert rewrite_imports(source, table) == 'import { useState } from "./dependencies/preact/hooks.js";'

    def test_unknown_untouched(self) -> None:
        source = 'import x from "preact/debug";\nimport y from "./local";\nimport z from "other";'
        assert rewrite_imports(source, self.TABLE) == source

    def test_plain_strings_untouched(self) -> None:
        source = 'const s = "lib-a";'
        assert rewrite_imports(source, self.TABLE) == source

    def test_empty_table(self) -> None:
        source = 'import { a } from "lib-a";'
        assert rewrite_imports(source, {}) == source


class TestRewriteBundleFile:
    def test_rewrites_in_place(self, tmp_path: Path) -> None:
        bundle = tmp_path / "bundle.js"
        bundle.write_text('import { a } from "lib-a";\n')
        assert rewrite_bundle_file(bundle, {"lib-a": "./dependencies/lib-a.js"}) is True
        assert bundle.read_text() == 'import { a } from "./dependencies/lib-a.js";\n'

    def test_unchanged_file(self, tmp_path: Path) -> None:
        bundle = tmp_path / "bundle.js"
        bundle.write_text("console.log(1);\n")
        assert rewrite_bundle_file(bundle, {"lib-a": "./dependencies/lib-a.js"}) is False


class TestPackageName:
    def test_plain(self) -> None:
        assert package_name("preact") == "preact"

    def test_subpath(self) -> None:
        assert package_name("preact/hooks") == "preact"

    def test_scoped(self) -> None:
        assert package_name("@scope/pkg/sub/path") == "@scope/pkg"


class TestUnbundledImports:
    TABLE = {"preact": "./dependencies/preact.js", "preact/hooks": "./dependencies/preact/hooks.js"}

    def test_subpath_without_prebundle(self) -> None:
        source = 'import "./dependencies/preact.js";\nimport d from "preact/debug";\nimport e from "preact/debug";'
        assert unbundled_imports(source, self.TABLE) == ["preact/debug"]

    def test_served_and_unrelated_imports(self) -> None:
        source = 'import { h } from "./dependencies/preact.js";\nimport x from "other/sub";\nimport "./local";'
        assert unbundled_imports(source, self.TABLE) == []

    def test_rewritten_bundle_is_clean(self) -> None:
        source = 'import { h } from "preact";\nimport { useState } from "preact/hooks";'
        assert unbundled_imports(rewrite_imports(source, self.TABLE), self.TABLE) == []
