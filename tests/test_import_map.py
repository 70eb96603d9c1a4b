"""Tests for import map resolution and scopes."""

import json

import pytest

from errors import ConfigError, UnmappedSpecifier
from resolution import ImportMap, LocalSpecifier, RegistrySpecifier, UrlSpecifier


@pytest.fixture
def scoped_map():
    """Root mapping plus one scope overriding 'a' for ./vendor/."""
    return ImportMap(
        imports={"a": "./root_a.ts", "b": "./root_b.ts"},
        scopes={"./vendor/": {"a": "./vendor_a.ts"}},
        base_dir="/proj",
    )


class TestImportMapLookup:
    """Exact keys and prefix keys in the root mapping."""

    def test_exact_key_to_registry(self):
        import_map = ImportMap(imports={"lodash": "npm:lodash@^4"}, base_dir="/proj")
        spec = import_map.resolve("lodash")
        assert isinstance(spec, RegistrySpecifier)
        assert spec.requested == "npm:lodash@^4"

    def test_prefix_key(self):
        import_map = ImportMap(imports={"std/": "https://deno.land/std/"}, base_dir="/proj")
        spec = import_map.resolve("std/path/mod.ts")
        assert spec == UrlSpecifier(url="https://deno.land/std/path/mod.ts")

    def test_longest_prefix_wins(self):
        import_map = ImportMap(
            imports={"a/": "https://x.test/a/", "a/b/": "https://y.test/"},
            base_dir="/proj",
        )
        assert str(import_map.resolve("a/b/c.ts")) == "https://y.test/c.ts"
        assert str(import_map.resolve("a/c.ts")) == "https://x.test/a/c.ts"

    def test_relative_target_resolves_against_map_directory(self):
        import_map = ImportMap(imports={"utils": "./src/utils.ts"}, base_dir="/proj")
        assert import_map.resolve("utils") == LocalSpecifier(path="/proj/src/utils.ts")

    def test_prefix_key_requires_prefix_target(self):
        """A '/' key whose target lacks a trailing '/' is ignored."""
        import_map = ImportMap(imports={"x/": "./lib"}, base_dir="/proj")
        assert not import_map.matches("x/y.ts")
        assert len(import_map) == 0

    def test_unmapped_name(self):
        import_map = ImportMap(imports={"a": "./a.ts"}, base_dir="/proj")
        with pytest.raises(UnmappedSpecifier):
            import_map.resolve("b", referrer="/proj/main.ts")


class TestImportMapScopes:
    """Scope selection by referrer."""

    def test_scope_preferred_over_root(self, scoped_map):
        spec = scoped_map.resolve("a", referrer="/proj/vendor/lib.ts")
        assert spec == LocalSpecifier(path="/proj/vendor_a.ts")

    def test_root_used_outside_scope(self, scoped_map):
        spec = scoped_map.resolve("a", referrer="/proj/src/main.ts")
        assert spec == LocalSpecifier(path="/proj/root_a.ts")

    def test_root_fallback_inside_scope(self, scoped_map):
        """Names absent from the matching scope fall back to the root mapping."""
        spec = scoped_map.resolve("b", referrer="/proj/vendor/lib.ts")
        assert spec == LocalSpecifier(path="/proj/root_b.ts")

    def test_most_specific_scope_wins(self):
        import_map = ImportMap(
            imports={},
            scopes={
                "./vendor/": {"a": "./outer.ts"},
                "./vendor/deep/": {"a": "./inner.ts"},
            },
            base_dir="/proj",
        )
        assert import_map.resolve("a", referrer="/proj/vendor/deep/x.ts") == LocalSpecifier(
            path="/proj/inner.ts"
        )
        assert import_map.resolve("a", referrer="/proj/vendor/x.ts") == LocalSpecifier(
            path="/proj/outer.ts"
        )

    def test_url_scope(self):
        import_map = ImportMap(
            imports={"dep": "https://cdn.test/dep@1.ts"},
            scopes={"https://deno.land/x/old/": {"dep": "https://cdn.test/dep@0.ts"}},
            base_dir="/proj",
        )
        spec = import_map.resolve("dep", referrer="https://deno.land/x/old/mod.ts")
        assert str(spec) == "https://cdn.test/dep@0.ts"


class TestImportMapLoading:
    """Validation of import map documents."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "import_map.json"
        path.write_text(json.dumps({"imports": {"app/": "./src/"}}), encoding="utf-8")
        import_map = ImportMap.load(str(path))
        assert import_map.resolve("app/main.ts") == LocalSpecifier(
            path=str(tmp_path / "src" / "main.ts")
        )

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            ImportMap.load(str(tmp_path / "missing.json"))

    def test_non_string_target(self):
        with pytest.raises(ConfigError):
            ImportMap.from_dict({"imports": {"a": 1}}, "/proj")

    def test_invalid_scope(self):
        with pytest.raises(ConfigError):
            ImportMap.from_dict({"scopes": {"./x/": "nope"}}, "/proj")
