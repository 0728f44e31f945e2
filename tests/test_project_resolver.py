"""Tests for project discovery and resolution."""

import json
from unittest.mock import Mock

import pytest

from depshift.errors import MultipleProjectsError
from depshift.fs import LocalFileSystem, MemoryFileSystem
from depshift.projects.resolver import ProjectResolver


def manifest(**fields):
    return json.dumps(fields, indent=2)


WORKSPACE = {
    "projects/a/deno.json": manifest(name="@t/a", tasks={"dev": "deno run -A main.ts", "bad": 1}),
    "projects/b/deno.jsonc": '{\n  // the b project\n  "name": "@t/b",\n  "tasks": {"build": "deno task x"},\n}\n',
    "projects/broken/deno.json": "{ not json",
    "projects/nameless/deno.json": manifest(tasks={}),
    "projects/covered/deno.json": manifest(name="@t/covered"),
    "node_modules/dep/deno.json": manifest(name="@t/hidden"),
    "cov/deno.json": manifest(name="@t/cov"),
    ".git/deno.json": manifest(name="@t/git"),
    "README.md": "# workspace\n",
}


@pytest.fixture
def fs():
    return MemoryFileSystem(WORKSPACE)


@pytest.fixture
def resolver(fs):
    return ProjectResolver(fs)


def names(projects):
    return [p.name for p in projects]


class TestDiscovery:
    """Resolving without a reference discovers every project."""

    def test_discovers_all_projects(self, resolver):
        assert names(resolver.resolve()) == ["@t/a", "@t/b", "@t/covered", None]

    def test_exclude_nameless(self, resolver):
        assert names(resolver.resolve(include_nameless=False)) == ["@t/a", "@t/b", "@t/covered"]

    def test_skip_dirs(self, resolver):
        found = names(resolver.resolve())
        assert "@t/hidden" not in found
        assert "@t/cov" not in found
        assert "@t/git" not in found

    def test_project_fields(self, resolver):
        a = resolver.resolve("@t/a")[0]
        assert a.dir == "projects/a"
        assert a.config_path == "projects/a/deno.json"
        assert a.has_dev
        assert a.tasks == {"dev": "deno run -A main.ts"}

        b = resolver.resolve("@t/b")[0]
        assert not b.has_dev
        assert b.tasks == {"build": "deno task x"}

    def test_broken_manifest_recorded_in_diagnostics(self, resolver):
        diagnostics = []
        resolver.resolve(diagnostics=diagnostics)

        assert [(d.path, d.reason) for d in diagnostics] == [("projects/broken/deno.json", "invalid_manifest")]

    def test_non_object_manifest(self):
        resolver = ProjectResolver(MemoryFileSystem({"x/deno.json": "[1, 2]"}))
        diagnostics = []
        assert resolver.resolve(diagnostics=diagnostics) == []
        assert diagnostics[0].reason == "not_an_object"

    def test_root_manifest(self):
        resolver = ProjectResolver(MemoryFileSystem({"deno.json": manifest(name="root")}))
        project = resolver.resolve()[0]
        assert project.dir == "."
        assert project.config_path == "deno.json"

    def test_empty_workspace(self):
        assert ProjectResolver(MemoryFileSystem()).resolve() == []


class TestResolveModes:
    """Manifest paths, directories and package names."""

    @pytest.mark.parametrize("ref", [
        "projects/a/deno.json",
        "./projects/a/deno.json",
        "/projects/a/deno.json",
        "projects\\a\\deno.json",
    ])
    def test_manifest_path(self, resolver, ref):
        projects = resolver.resolve(ref)
        assert names(projects) == ["@t/a"]
        assert projects[0].config_path == "projects/a/deno.json"

    def test_directory_with_manifest(self, resolver):
        assert names(resolver.resolve("projects/b")) == ["@t/b"]
        assert names(resolver.resolve("projects/b/")) == ["@t/b"]

    def test_directory_tree(self, resolver):
        assert names(resolver.resolve("projects")) == ["@t/a", "@t/b", "@t/covered", None]

    def test_jsonc_preferred_over_json(self):
        fs = MemoryFileSystem({
            "x/deno.json": manifest(name="plain"),
            "x/deno.jsonc": manifest(name="commented"),
        })
        assert names(ProjectResolver(fs).resolve("x")) == ["commented"]

    def test_package_name(self, resolver):
        assert names(resolver.resolve("@t/b")) == ["@t/b"]

    def test_unknown_name(self, resolver):
        assert resolver.resolve("@t/missing") == []

    def test_name_lookup_never_walks_skipped_dirs(self, fs):
        visited = []
        walk = fs.walk

        def recording_walk(match=None, skip=None):
            for entry in walk(match=match, skip=skip):
                visited.append(entry.path)
                yield entry

        fs.walk = recording_walk

        assert names(ProjectResolver(fs).resolve("@t/b")) == ["@t/b"]
        assert visited
        assert not any(p.startswith(("node_modules", ".git", "cov")) for p in visited)

    def test_nameless_manifest_path_respects_filter(self, resolver):
        assert len(resolver.resolve("projects/nameless")) == 1
        assert resolver.resolve("projects/nameless", include_nameless=False) == []


class TestMultipleRefs:
    """Comma-separated references and ambiguity handling."""

    def test_comma_list_in_first_seen_order(self, resolver):
        assert names(resolver.resolve("@t/b,@t/a")) == ["@t/b", "@t/a"]
        assert names(resolver.resolve("@t/a, @t/b")) == ["@t/a", "@t/b"]

    def test_deduplicates_by_config_path(self, resolver):
        assert names(resolver.resolve("@t/a,projects/a,projects/a/deno.json")) == ["@t/a"]

    def test_single_only_raises(self, resolver):
        with pytest.raises(MultipleProjectsError) as exc_info:
            resolver.resolve("@t/a,@t/b", single_only=True)
        assert exc_info.value.count == 2
        assert exc_info.value.ref == "@t/a,@t/b"

    def test_single_only_with_one_match(self, resolver):
        assert names(resolver.resolve("@t/a", single_only=True)) == ["@t/a"]

    def test_use_first_wins_over_single_only(self, resolver):
        assert names(resolver.resolve("@t/a,@t/b", single_only=True, use_first=True)) == ["@t/a"]

    def test_use_first_short_circuits(self, fs, resolver):
        fs.get_file_info = Mock(wraps=fs.get_file_info)

        projects = resolver.resolve(use_first=True)

        assert names(projects) == ["@t/a"]
        assert fs.get_file_info.call_count == 1


class TestLocalFileSystem:
    """The resolver works the same against a real directory."""

    def test_resolve_on_disk(self, tmp_path):
        for path, content in WORKSPACE.items():
            target = tmp_path / path
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        resolver = ProjectResolver(LocalFileSystem(str(tmp_path)))

        assert names(resolver.resolve()) == ["@t/a", "@t/b", "@t/covered", None]
        assert resolver.resolve("projects/b")[0].config_path == "projects/b/deno.jsonc"
