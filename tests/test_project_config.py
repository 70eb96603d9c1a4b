"""Tests for deno.json / deno.jsonc discovery and loading."""

import json
import os

import pytest

from errors import ConfigError
from project import ProjectConfig, discover_config, load_config
from project.jsonc import _strip_jsonc_comments, loads
from resolution import LocalSpecifier, UrlSpecifier


class TestJsonc:
    """JSON with comments and trailing commas."""

    def test_comments_and_trailing_commas(self):
        text = """{
  // line comment
  "imports": {
    "std/": "https://deno.land/std@0.200.0/", /* block */
  },
}"""
        assert loads(text) == {"imports": {"std/": "https://deno.land/std@0.200.0/"}}

    def test_comment_markers_inside_strings_are_kept(self):
        text = '{"a": "x // y", "b": "/* z */"}'
        assert _strip_jsonc_comments(text) == text


class TestDiscoverConfig:
    def test_walks_up(self, tmp_path):
        (tmp_path / "deno.json").write_text("{}", encoding="utf-8")
        nested = tmp_path / "src" / "lib"
        nested.mkdir(parents=True)
        assert discover_config(str(nested)) == str(tmp_path / "deno.json")

    def test_prefers_deno_json(self, tmp_path):
        (tmp_path / "deno.json").write_text("{}", encoding="utf-8")
        (tmp_path / "deno.jsonc").write_text("{}", encoding="utf-8")
        assert discover_config(str(tmp_path)).endswith("deno.json")

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setattr("project.config.os.path.isfile", lambda _path: False)
        assert discover_config(str(tmp_path)) is None


class TestLoadConfig:
    """Key handling."""

    def test_defaults(self, tmp_path):
        path = tmp_path / "deno.json"
        path.write_text("{}", encoding="utf-8")
        config = load_config(str(path))
        assert config.lock_enabled
        assert not config.lock_frozen
        assert not config.vendor
        assert config.lock_path == str(tmp_path / "deno.lock")
        assert config.vendor_dir == str(tmp_path / "vendor")

    def test_inline_import_map(self, tmp_path):
        path = tmp_path / "deno.jsonc"
        path.write_text(
            '{\n  // deps\n  "imports": {"@/": "./src/", "oak": "https://deno.land/x/oak/mod.ts"},\n}',
            encoding="utf-8",
        )
        import_map = load_config(str(path)).import_map()
        assert import_map.resolve("@/app.ts") == LocalSpecifier(path=str(tmp_path / "src" / "app.ts"))
        assert import_map.resolve("oak") == UrlSpecifier(url="https://deno.land/x/oak/mod.ts")

    def test_external_import_map(self, tmp_path):
        (tmp_path / "maps").mkdir()
        (tmp_path / "maps" / "import_map.json").write_text(
            json.dumps({"imports": {"lib": "./lib.ts"}}), encoding="utf-8"
        )
        path = tmp_path / "deno.json"
        path.write_text(json.dumps({"importMap": "./maps/import_map.json"}), encoding="utf-8")
        import_map = load_config(str(path)).import_map()
        assert import_map.resolve("lib") == LocalSpecifier(path=str(tmp_path / "maps" / "lib.ts"))

    @pytest.mark.parametrize(
        "lock,enabled,file,frozen",
        [
            (False, False, None, False),
            ("locks/app.lock", True, "locks/app.lock", False),
            ({"path": "x.lock", "frozen": True}, True, "x.lock", True),
            ({"frozen": True}, True, None, True),
        ],
    )
    def test_lock_forms(self, tmp_path, lock, enabled, file, frozen):
        path = tmp_path / "deno.json"
        path.write_text(json.dumps({"lock": lock}), encoding="utf-8")
        config = load_config(str(path))
        assert config.lock_enabled == enabled
        assert config.lock_file == file
        assert config.lock_frozen == frozen

    def test_custom_lock_path_is_relative_to_config(self, tmp_path):
        path = tmp_path / "deno.json"
        path.write_text(json.dumps({"lock": "locks/app.lock"}), encoding="utf-8")
        assert load_config(str(path)).lock_path == str(tmp_path / "locks" / "app.lock")

    @pytest.mark.parametrize(
        "body",
        [
            "[]",
            "{not json",
            '{"vendor": "yes"}',
            '{"lock": 3}',
            '{"lock": {"frozen": "no"}}',
            '{"importMap": 1}',
            '{"imports": {"a": 1}}',
        ],
    )
    def test_invalid(self, tmp_path, body):
        path = tmp_path / "deno.json"
        path.write_text(body, encoding="utf-8")
        with pytest.raises(ConfigError) as exc:
            load_config(str(path))
        assert str(path) in str(exc.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(str(tmp_path / "deno.json"))

    def test_no_config_defaults_to_cwd(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = ProjectConfig()
        assert config.root_dir == str(tmp_path)
        assert len(config.import_map()) == 0
