"""Tests for the Tree-sitter import graph parser."""

import os
from pathlib import Path

import pytest

from sherlock_cli.models import Skipped
from sherlock_cli.parser import (
    ModuleGraphParser,
    discover_source_files,
    parse_module_graph,
    resolve_import_path,
)


@pytest.fixture(scope="module")
def parser() -> ModuleGraphParser:
    return ModuleGraphParser()


def relative_edges(graph, root: Path):
    root = str(root.resolve())
    return {
        (
            os.path.relpath(imp.from_file, root).replace(os.sep, "/"),
            os.path.relpath(imp.to_file, root).replace(os.sep, "/"),
            imp.specifier,
        )
        for imp in graph.imports
    }


def test_sample_repo_graph(sample_repo_path: Path):
    graph = parse_module_graph(sample_repo_path)

    names = [os.path.relpath(f, sample_repo_path.resolve()).replace(os.sep, "/") for f in graph.files]
    assert names == [
        "src/auth/login.ts",
        "src/components/Button.tsx",
        "src/index.ts",
        "src/models/user.ts",
        "src/payment/process.ts",
        "src/theme.js",
        "src/utils/format.ts",
    ]
    assert relative_edges(graph, sample_repo_path) == {
        ("src/index.ts", "src/payment/process.ts", "processPayment"),
        ("src/index.ts", "src/auth/login.ts", "*"),
        ("src/auth/login.ts", "src/models/user.ts", "User"),
        ("src/payment/process.ts", "src/utils/format.ts", "formatAmount"),
        ("src/payment/process.ts", "src/models/user.ts", "User"),
        ("src/components/Button.tsx", "src/theme.js", "Theme"),
        ("src/components/Button.tsx", "src/utils/format.ts", "money"),
    }


def test_package_imports_produce_no_edges(temp_dir: Path, write_tree):
    write_tree(temp_dir, {"src/app.ts": 'import React from "react";\nimport { z } from "zod";\n'})

    graph = parse_module_graph(temp_dir)

    assert len(graph.files) == 1
    assert graph.imports == []


def test_extensionless_specifier_resolves(temp_dir: Path, write_tree):
    write_tree(
        temp_dir,
        {
            "a.ts": 'import { foo } from "./foo";\n',
            "foo.ts": "export const foo = 1;\n",
        },
    )

    graph = parse_module_graph(temp_dir)

    assert relative_edges(graph, temp_dir) == {("a.ts", "foo.ts", "foo")}


def test_unresolvable_import_is_dropped(temp_dir: Path, write_tree):
    write_tree(temp_dir, {"a.ts": 'import { gone } from "./missing";\n'})
    assert parse_module_graph(temp_dir).imports == []


def test_only_top_level_imports_are_read(temp_dir: Path, write_tree):
    write_tree(
        temp_dir,
        {
            "a.js": (
                "async function load() {\n"
                '  const mod = await import("./b");\n'
                "  return mod;\n"
                "}\n"
                'const c = require("./c");\n'
            ),
            "b.js": "export default 1;\n",
            "c.js": "module.exports = 2;\n",
        },
    )
    assert parse_module_graph(temp_dir).imports == []


def test_ignored_directories_are_not_scanned(temp_dir: Path, write_tree):
    write_tree(
        temp_dir,
        {
            ".gitignore": "generated\n",
            "src/a.ts": 'import "./b";\n',
            "src/b.ts": "export {};\n",
            "generated/c.ts": "export {};\n",
            "node_modules/pkg/index.js": "export {};\n",
            "vendor/d.js": "export {};\n",
        },
    )

    graph = parse_module_graph(temp_dir, exclude=["vendor"])

    names = sorted(os.path.basename(f) for f in graph.files)
    assert names == ["a.ts", "b.ts"]
    assert relative_edges(graph, temp_dir) == {("src/a.ts", "src/b.ts", "*")}


def test_typescript_generics_and_assertions(parser: ModuleGraphParser):
    source = (
        'import { Box } from "./box";\n'
        "const n = <number>value;\n"
        "export function wrap<T>(x: T): Box<T> { return new Box(x); }\n"
    )
    assert list(parser.iter_import_specifiers("/p/a.ts", source)) == [("./box", "Box")]


def test_jsx_in_js_file(parser: ModuleGraphParser):
    source = 'import Card from "./Card";\nexport const App = () => <Card title="x" />;\n'
    assert list(parser.iter_import_specifiers("/p/App.jsx", source)) == [("./Card", "Card")]


def test_named_import_list(parser: ModuleGraphParser):
    source = 'import { a, b as c } from "./lib";\n'
    assert list(parser.iter_import_specifiers("/p/x.ts", source)) == [("./lib", "a, c")]


def test_parse_file_reports_unreadable(parser: ModuleGraphParser, temp_dir: Path):
    missing = str(temp_dir / "gone.ts")
    outcome = parser.parse_file(missing, [missing], {missing})
    assert isinstance(outcome, Skipped)


class TestResolveImportPath:
    files = [
        os.path.normpath("/repo/src/index.ts"),
        os.path.normpath("/repo/src/util.js"),
        os.path.normpath("/repo/src/styles.css.ts"),
        os.path.normpath("/repo/lib/helpers.tsx"),
    ]

    def test_exact_path(self):
        assert resolve_import_path("/repo/src/index.ts", "./util.js", self.files) == self.files[1]

    def test_appends_extension(self):
        assert resolve_import_path("/repo/src/index.ts", "../lib/helpers", self.files) == self.files[3]

    def test_same_basename_in_target_directory(self):
        assert resolve_import_path("/repo/src/index.ts", "./util.mjs", self.files) == self.files[1]

    def test_no_match(self):
        assert resolve_import_path("/repo/src/index.ts", "./nothing", self.files) is None


def test_discover_source_files_in_name_order(temp_dir: Path, write_tree):
    write_tree(temp_dir, {"b.tsx": "", "a.js": "", "notes.md": "", "z/y.jsx": ""})
    found = discover_source_files(temp_dir, [])
    assert [os.path.relpath(f, temp_dir) for f in found] == ["a.js", "b.tsx", os.path.join("z", "y.jsx")]
