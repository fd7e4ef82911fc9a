"""Tests for the reference corpus loaders."""

import asyncio
import json

from promptevo.corpus import CorpusLoader, JsonFileCorpusLoader, StaticCorpusLoader


def test_json_loader_reads_records(tmp_path):
    path = tmp_path / "corpus.json"
    path.write_text(
        json.dumps([{"title": "Review", "content": "Review Python code", "source": "repo-a"}]),
        encoding="utf-8",
    )

    records = asyncio.run(JsonFileCorpusLoader(path).fetch())

    assert [r.source for r in records] == ["repo-a"]
    assert records[0].category == "General"


def test_json_loader_tolerates_missing_and_malformed_files(tmp_path):
    assert asyncio.run(JsonFileCorpusLoader(tmp_path / "absent.json").fetch()) == []

    broken = tmp_path / "broken.json"
    broken.write_text("[{", encoding="utf-8")
    assert asyncio.run(JsonFileCorpusLoader(broken).fetch()) == []

    wrong_shape = tmp_path / "wrong.json"
    wrong_shape.write_text(json.dumps([{"title": "no body"}]), encoding="utf-8")
    assert asyncio.run(JsonFileCorpusLoader(wrong_shape).fetch()) == []


def test_json_loader_does_not_block_the_loop(tmp_path, monkeypatch):
    import promptevo.corpus as corpus

    seen = {}

    def fake_load(path):
        try:
            asyncio.get_running_loop()
            seen["on_loop"] = True
        except RuntimeError:
            seen["on_loop"] = False
        return []

    monkeypatch.setattr(corpus, "load_records", fake_load)
    asyncio.run(JsonFileCorpusLoader(tmp_path / "corpus.json").fetch())

    assert seen["on_loop"] is False


def test_static_loader_returns_copy(records):
    loader = StaticCorpusLoader(records)
    fetched = asyncio.run(loader.fetch())
    fetched.clear()

    assert len(asyncio.run(loader.fetch())) == 3
    assert isinstance(loader, CorpusLoader)
