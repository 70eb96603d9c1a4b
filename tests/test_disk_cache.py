"""Tests for the disk cache and the vendor directory."""

import json
import os

import pytest

from common.fs_utils import integrity_hash
from fetch import DiskCache, VendorStore
from fetch.vendor import MANIFEST_FILE


@pytest.fixture
def cache(tmp_path):
    return DiskCache(str(tmp_path / "cache"))


class TestDiskCache:
    """Content-addressable storage keyed by specifier."""

    def test_put_and_get(self, cache):
        entry = cache.put("https://x.test/a.ts", "https://x.test/a.ts", b"export {};")
        assert entry.integrity == integrity_hash(b"export {};")
        loaded = cache.get("https://x.test/a.ts")
        assert loaded is not None
        assert loaded.content == b"export {};"
        assert loaded.url == "https://x.test/a.ts"
        assert cache.contains("https://x.test/a.ts")

    def test_missing_key(self, cache):
        assert cache.get("https://x.test/none.ts") is None

    def test_redirected_url_is_recorded(self, cache):
        cache.put("https://x.test/latest.ts", "https://x.test/v2/mod.ts", b"v2")
        assert cache.get("https://x.test/latest.ts").url == "https://x.test/v2/mod.ts"

    def test_replace_entry(self, cache):
        cache.put("k", "https://x.test/k", b"one")
        cache.put("k", "https://x.test/k", b"two")
        assert cache.get("k").content == b"two"

    def test_corrupt_blob_is_ignored(self, cache):
        entry = cache.put("k", "https://x.test/k", b"good")
        with open(cache._blob_path(entry.integrity), "wb") as fh:
            fh.write(b"bad")
        assert cache.get("k") is None

    def test_corrupt_index_is_ignored(self, cache):
        cache.put("k", "https://x.test/k", b"good")
        with open(cache._index_path("k"), "w", encoding="utf-8") as fh:
            fh.write("{broken")
        assert cache.get("k") is None

    def test_identical_content_shares_blob(self, cache):
        cache.put("a", "https://x.test/a", b"same")
        cache.put("b", "https://x.test/b", b"same")
        stats = cache.stats()
        assert stats["entries"] == 2
        assert stats["blob_bytes"] == len(b"same")

    def test_no_temp_files_left(self, cache):
        cache.put("a", "https://x.test/a", b"x")
        for dirpath, _, files in os.walk(cache.root):
            assert not [name for name in files if name.startswith(".tmp-")], dirpath


class TestVendorStore:
    """Project-local copies of remote modules."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://deno.land/std@0.200.0/path/mod.ts", "deno.land/std@0.200.0/path/mod.ts"),
            ("http://localhost:8000/a.ts", "localhost_8000/a.ts"),
            ("https://esm.test/", "esm.test/index"),
            ("https://Esm.Test/lib/", "esm.test/lib/index"),
        ],
    )
    def test_relative_path_for(self, tmp_path, url, expected):
        assert VendorStore(str(tmp_path)).relative_path_for(url) == expected

    def test_query_string_is_digested(self, tmp_path):
        store = VendorStore(str(tmp_path))
        first = store.relative_path_for("https://esm.test/a.js?target=deno")
        second = store.relative_path_for("https://esm.test/a.js?target=node")
        assert first.startswith("esm.test/a.js#")
        assert first != second

    def test_put_get_and_manifest(self, tmp_path):
        root = tmp_path / "vendor"
        store = VendorStore(str(root))
        store.put("jsr:@x/y@1.3.0", "https://jsr.io/@x/y/1.3.0/mod.ts", b"export {};")
        assert (root / "jsr.io" / "@x" / "y" / "1.3.0" / "mod.ts").read_bytes() == b"export {};"
        assert store.save()
        assert not store.save()

        manifest = json.loads((root / MANIFEST_FILE).read_text(encoding="utf-8"))
        assert manifest["modules"]["jsr:@x/y@1.3.0"]["path"] == "jsr.io/@x/y/1.3.0/mod.ts"

        reopened = VendorStore(str(root))
        entry = reopened.get("jsr:@x/y@1.3.0")
        assert entry.content == b"export {};"
        assert entry.url == "https://jsr.io/@x/y/1.3.0/mod.ts"

    def test_missing_file_is_a_miss(self, tmp_path):
        store = VendorStore(str(tmp_path))
        store.put("k", "https://x.test/k.ts", b"x")
        os.unlink(tmp_path / "x.test" / "k.ts")
        assert store.get("k") is None

    def test_unreadable_manifest(self, tmp_path):
        (tmp_path / MANIFEST_FILE).write_text("not json", encoding="utf-8")
        assert len(VendorStore(str(tmp_path))) == 0
