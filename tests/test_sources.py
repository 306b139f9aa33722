import json

import pytest

from topic_index.exceptions import SourceError
from topic_index.sources import load_into, load_records, read_file

from conftest import DNS, HASH_INDEX, MUTEX


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_single_topic_file(tmp_path):
    path = _write(tmp_path / "dns.json", DNS)

    assert read_file(path) == [DNS]


def test_list_file(tmp_path):
    path = _write(tmp_path / "topics.json", [MUTEX, HASH_INDEX])

    assert [r["id"] for r in read_file(path)] == ["mutex-vs-semaphore", "hash-index"]


def test_category_bundle_applies_category(tmp_path):
    bundle = {
        "category": "dbms",
        "name": "Database Management Systems",
        "topics": [HASH_INDEX, {**MUTEX, "category": "os"}],
    }
    records = read_file(_write(tmp_path / "dbms.json", bundle))

    assert [r["category"] for r in records] == ["dbms", "os"]
    assert "category" not in HASH_INDEX


def test_directory_is_read_in_sorted_order(tmp_path):
    (tmp_path / "nested").mkdir()
    _write(tmp_path / "b.json", HASH_INDEX)
    _write(tmp_path / "a.json", MUTEX)
    _write(tmp_path / "nested" / "c.json", DNS)
    (tmp_path / "notes.txt").write_text("ignored", encoding="utf-8")

    records = load_records(tmp_path)

    assert [r["id"] for r in records] == ["mutex-vs-semaphore", "hash-index", "dns-working"]


def test_malformed_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text('{"id": "x", ', encoding="utf-8")

    with pytest.raises(SourceError) as excinfo:
        load_records(path)

    assert "Malformed JSON" in str(excinfo.value)


def test_unsupported_shape(tmp_path):
    with pytest.raises(SourceError):
        read_file(_write(tmp_path / "n.json", 42))


def test_bundle_without_topic_list(tmp_path):
    with pytest.raises(SourceError):
        read_file(_write(tmp_path / "b.json", {"category": "os", "topics": "nope"}))


def test_missing_path(tmp_path):
    with pytest.raises(SourceError):
        load_records(tmp_path / "does-not-exist")


def test_load_into_rebuilds_index(tmp_path, index):
    _write(tmp_path / "os.json", {"category": "os", "topics": [MUTEX]})
    _write(tmp_path / "storage.json", [HASH_INDEX])

    assert load_into(index, tmp_path) == 2
    assert index.search("", {"category": ["os"]}).topic_ids == ["mutex-vs-semaphore"]
