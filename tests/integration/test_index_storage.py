"""
Integration tests for on-disk persistence of the index and selector registry.
"""

import json

import pytest

from grounding.bm25.index import BM25Index
from grounding.engine import GroundingEngine
from grounding.selectors import SelectorRegistry
from grounding.storage import IndexStorage

pytestmark = pytest.mark.integration


@pytest.fixture
def storage(tmp_path):
    return IndexStorage(tmp_path / "index")


class TestIndexStorage:
    """Test index and registry files"""

    def test_save_creates_directory(self, storage, make_chunk):
        """Test save creates the directory and leaves no temp file"""
        index = BM25Index()
        index.add_chunks([make_chunk("a.js", "login button")])

        path = storage.save_index(index)

        assert path == storage.index_path
        assert path.exists()
        assert not path.with_suffix(".json.tmp").exists()

    def test_index_round_trip(self, storage, make_chunk):
        """Test index parameters and chunks survive a reload"""
        index = BM25Index(k1=1.2, b=0.5)
        index.add_chunks([make_chunk("a.js", "login button"), make_chunk("b.js", "cart total")])
        storage.save_index(index)

        restored = storage.load_index()

        assert restored.k1 == 1.2
        assert restored.b == 0.5
        assert restored.built
        assert restored.build_timestamp is not None
        assert [c.chunk.id for c in restored.chunks] == ["a.js:1-1", "b.js:1-1"]

    def test_registry_round_trip(self, storage, login_page_source):
        """Test registry entries survive a reload with custom scores"""
        registry = SelectorRegistry()
        registry.build_from_page_objects([(login_page_source, "pages/LoginPage.js")])
        storage.save_registry(registry)

        restored = storage.load_registry(reliability_scores={"xpath": 0.1})

        assert restored.entries == registry.entries
        assert restored.reliability_scores["xpath"] == 0.1

    def test_missing_files(self, storage):
        """Test missing files are cache misses"""
        assert storage.load_index() is None
        assert storage.load_registry() is None

    def test_unreadable_files(self, storage):
        """Test undecodable or wrongly shaped files are cache misses"""
        storage.index_dir.mkdir(parents=True)
        storage.index_path.write_bytes(b"\xff\xfe\x00garbage")
        storage.registry_path.write_text('"just a string"')

        assert storage.load_index() is None
        assert storage.load_registry() is None


class TestCorruptIndexFile:
    """Test that a malformed index file is a cache miss instead of a later search failure"""

    @pytest.fixture
    def saved_payload(self, storage, make_chunk):
        index = BM25Index()
        index.add_chunks([make_chunk("pages/LoginPage.js", "login button\nsubmit form")])
        storage.save_index(index)
        return json.loads(storage.index_path.read_text())

    def _write(self, storage, payload):
        storage.index_path.write_text(json.dumps(payload))

    @pytest.mark.parametrize("field,value", [
        ("k1", None),
        ("k1", "abc"),
        ("k1", 0),
        ("b", None),
        ("b", "abc"),
        ("b", 2.0),
        ("stemmer", None),
    ])
    def test_bad_scoring_header(self, storage, saved_payload, field, value):
        """Test that non-numeric, null or out-of-range parameters are rejected on load"""
        saved_payload[field] = value
        self._write(storage, saved_payload)

        assert storage.load_index() is None

    def test_engine_treats_bad_header_as_cache_miss(self, storage, saved_payload):
        """Test that the engine falls back to an empty, queryable index"""
        saved_payload["k1"] = "abc"
        self._write(storage, saved_payload)
        engine = GroundingEngine(index_dir=storage.index_dir)

        assert engine.load() is False
        assert engine.query("login button") == []

    def test_inverted_line_range(self, storage, saved_payload):
        """Test that a stored chunk ending before it starts is rejected"""
        chunk = saved_payload["chunks"][0]
        chunk["startLine"], chunk["endLine"] = 2, 1
        chunk["id"] = "pages/LoginPage.js:2-1"
        self._write(storage, saved_payload)

        assert storage.load_index() is None

    def test_id_not_matching_range(self, storage, saved_payload):
        """Test that a stored chunk whose id disagrees with its lines is rejected"""
        saved_payload["chunks"][0]["id"] = "pages/LoginPage.js:1-9"
        self._write(storage, saved_payload)

        assert storage.load_index() is None

    def test_untouched_payload_loads(self, storage, saved_payload):
        """Test that a rewritten but unchanged payload still loads"""
        self._write(storage, saved_payload)

        restored = storage.load_index()

        assert restored is not None
        assert [c.chunk.id for c in restored.chunks] == ["pages/LoginPage.js:1-2"]
