"""Tests for switching import maps between local paths and registry specifiers."""

import json

import pytest

from depshift.common import jsonc
from depshift.constants import Constants
from depshift.errors import DepshiftError
from depshift.fs import LocalFileSystem, MemoryFileSystem
from depshift.projects.imports_sync import ImportsSyncMode, discover_local_packages, sync_imports
from depshift.projects.resolver import ProjectResolver

WEB_MANIFEST = (
    '{\n'
    '  // web runtime\n'
    '  "name": "@t/web",\n'
    '  "exports": { ".": "./main.ts" },\n'
    '  "imports": {\n'
    '    "@t/utils": "jsr:@t/utils@1.0.0",\n'
    '    "@t/utils/fmt": "jsr:@t/utils@1.0.0/fmt",\n'
    '    "preact": "npm:preact@10.19.2"\n'
    '  },\n'
    '  "tasks": { "dev": "deno run -A dev.ts" }\n'
    '}\n'
)

UTILS_MANIFEST = (
    '{\n'
    '  "name": "@t/utils",\n'
    '  "exports": {\n'
    '    ".": "./src/.exports.ts",\n'
    '    "./fmt": "./src/fmt.ts"\n'
    '  },\n'
    '  "imports": {\n'
    '    "@std/path": "jsr:@std/path@1.0.8"\n'
    '  }\n'
    '}\n'
)

WORKSPACE = {
    "apps/web/deno.jsonc": WEB_MANIFEST,
    "apps/web/main.ts": "",
    "apps/web/dev.ts": "",
    "apps/web/DOCKERFILE": "",
    "packages/utils/deno.jsonc": UTILS_MANIFEST,
    "packages/utils/src/fmt.deps.ts": (
        'export * from "jsr:@t/core@0.3.0/types";\n'
        'export * from "jsr:@std/path@1.0.8";\n'
    ),
    "packages/core/deno.jsonc": json.dumps(
        {"name": "@t/core", "exports": {".": "./mod.ts", "./types": "./types.ts"}}, indent=2,
    ),
    "tools/cli/deno.jsonc": json.dumps({"name": "@t/cli", "exports": "./cli.ts"}),
    "tools/cli/.cli.json": "{}",
    "legacy/deno.json": json.dumps({"name": "@t/legacy", "exports": {".": "./mod.ts"}}),
    "notes/deno.jsonc": json.dumps({"name": "@t/notes"}),
}


@pytest.fixture
def fs():
    return MemoryFileSystem(WORKSPACE)


@pytest.fixture
def resolver(fs):
    return ProjectResolver(fs)


def imports_of(text):
    return jsonc.loads(text)["imports"]


class TestDiscoverLocalPackages:
    """Only named projects with exports are local packages."""

    def test_classifies_runtimes_and_libraries(self, resolver):
        packages = discover_local_packages(resolver)

        assert [(p.name, p.kind) for p in packages] == [
            ("@t/web", "runtime"),
            ("@t/legacy", "library"),
            ("@t/core", "library"),
            ("@t/utils", "library"),
            ("@t/cli", "runtime"),
        ]

    def test_string_exports_become_root_export(self, resolver):
        cli = [p for p in discover_local_packages(resolver) if p.name == "@t/cli"][0]

        assert cli.exports == {".": "./cli.ts"}
        assert cli.package_dir == "tools/cli"
        assert cli.config_path == "tools/cli/deno.jsonc"


class TestLocalMode:
    """Imports of workspace packages are pointed at their source files."""

    def test_runtime_target(self, fs, resolver):
        result = sync_imports("local", "@t/web", resolver)

        assert result.target_configs == ["apps/web/deno.jsonc"]
        assert result.updated == ["apps/web/deno.jsonc"]
        assert result.failed == []
        assert imports_of(fs.files["apps/web/deno.jsonc"]) == {
            "@t/utils": "../../packages/utils/src/.exports.ts",
            "@t/utils/fmt": "../../packages/utils/src/fmt.ts",
            "preact": "npm:preact@10.19.2",
        }

    def test_keeps_original_block_between_markers(self, fs, resolver):
        sync_imports(ImportsSyncMode.LOCAL, "@t/web", resolver)

        text = fs.files["apps/web/deno.jsonc"]
        assert Constants.SYNC_IMPORTS_BEGIN in text
        assert Constants.SYNC_IMPORTS_END in text
        assert '//     "@t/utils": "jsr:@t/utils@1.0.0",' in text
        assert jsonc.loads(text)["tasks"] == {"dev": "deno run -A dev.ts"}

    def test_library_maps_dependency_file_specifiers(self, fs, resolver):
        sync_imports("local", "packages/utils", resolver)

        assert imports_of(fs.files["packages/utils/deno.jsonc"]) == {
            "@std/path": "jsr:@std/path@1.0.8",
            "jsr:@t/core@0.3.0/types": "../core/types.ts",
        }

    def test_runtime_inherits_library_overrides(self, fs, resolver):
        sync_imports("local", "packages/utils", resolver)
        sync_imports("local", "@t/web", resolver)

        imports = imports_of(fs.files["apps/web/deno.jsonc"])
        assert imports["jsr:@t/core@0.3.0/types"] == "../../packages/core/types.ts"

    def test_repeated_local_run_is_stable(self, fs, resolver):
        sync_imports("local", "@t/web", resolver)
        first = fs.files["apps/web/deno.jsonc"]

        result = sync_imports("local", "@t/web", resolver)

        assert result.updated == []
        assert fs.files["apps/web/deno.jsonc"] == first
        assert fs.writes["apps/web/deno.jsonc"] == 1

    def test_manifest_without_imports_is_left_alone(self, fs, resolver):
        result = sync_imports("local", "@t/core", resolver)

        assert result.updated == []
        assert "packages/core/deno.jsonc" not in fs.writes


class TestRoundTrip:
    """Remote mode restores exactly what local mode replaced."""

    @pytest.mark.parametrize("target", ["@t/web", "packages/utils", "apps,packages"])
    def test_local_then_remote_restores_manifests(self, fs, resolver, target):
        before = dict(fs.files)

        sync_imports("local", target, resolver)
        assert fs.files != before
        sync_imports("remote", target, resolver)

        assert fs.files == before

    def test_split_key_and_crlf(self):
        crlf = (
            '{\r\n'
            '  "name": "@t/crlf",\r\n'
            '  "imports":\r\n'
            '  {\r\n'
            '    "@t/utils": "jsr:@t/utils@1.0.0"\r\n'
            '  }\r\n'
            '}\r\n'
        )
        fs = MemoryFileSystem(dict(WORKSPACE, **{"apps/crlf/deno.jsonc": crlf}))
        resolver = ProjectResolver(fs)

        sync_imports("local", "apps/crlf", resolver)
        local = fs.files["apps/crlf/deno.jsonc"]
        sync_imports("remote", "apps/crlf", resolver)

        assert local.count('"imports"') == 2  # rendered block plus its commented original
        assert imports_of(local)["@t/utils"] == "../../packages/utils/src/.exports.ts"
        assert fs.files["apps/crlf/deno.jsonc"] == crlf

    def test_restores_wrapped_marker_block(self):
        wrapped = (
            '{\n'
            '  "name": "@t/old",\n'
            '  "imports": {\n'
            '    "@t/utils": "../../packages/utils/src/.exports.ts"\n'
            '  }\n'
            '/**\n'
            '// @sync-imports BEGIN ORIGINAL IMPORTS\n'
            '//   "imports": {\n'
            '//     "@t/utils": "jsr:@t/utils@1.0.0"\n'
            '//   }\n'
            '// @sync-imports END ORIGINAL IMPORTS\n'
            '*/\n'
            '}\n'
        )
        fs = MemoryFileSystem({"apps/old/deno.jsonc": wrapped})

        sync_imports("remote", "apps/old", ProjectResolver(fs))

        assert fs.files["apps/old/deno.jsonc"] == (
            '{\n'
            '  "name": "@t/old",\n'
            '  "imports": {\n'
            '    "@t/utils": "jsr:@t/utils@1.0.0"\n'
            '  }\n'
            '}\n'
        )

    def test_remote_without_markers_writes_nothing(self, fs, resolver):
        result = sync_imports("remote", "@t/web", resolver)

        assert result.updated == []
        assert fs.writes == {}

    def test_round_trip_on_disk(self, tmp_path):
        for path, content in WORKSPACE.items():
            target = tmp_path / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(content.encode("utf-8"))
        resolver = ProjectResolver(LocalFileSystem(str(tmp_path)))

        sync_imports("local", "@t/web", resolver)
        assert b"@sync-imports" in (tmp_path / "apps/web/deno.jsonc").read_bytes()
        sync_imports("remote", "@t/web", resolver)

        assert (tmp_path / "apps/web/deno.jsonc").read_bytes() == WEB_MANIFEST.encode("utf-8")


class TestTargets:
    """Target resolution."""

    def test_json_manifests_cannot_be_targets(self, resolver):
        with pytest.raises(DepshiftError, match="No usable deno.jsonc targets"):
            sync_imports("local", "@t/legacy", resolver)

    def test_unknown_target(self, resolver):
        with pytest.raises(DepshiftError):
            sync_imports("remote", "@t/missing", resolver)

    def test_unknown_mode(self, resolver):
        with pytest.raises(ValueError):
            sync_imports("sideways", "@t/web", resolver)
