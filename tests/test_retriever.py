"""Tests for the lexical reference retriever."""

from promptevo.corpus import ReferenceRecord
from promptevo.optimizer.retriever import extract_patterns, find_similar, tokenize


def test_tokenize_drops_short_words_and_punctuation():
    assert tokenize("Fix my Python code, please!") == {"python", "code", "please"}


def test_find_similar_ranks_by_query_overlap(records):
    found = find_similar("Review my Python code for bugs", records)
    assert [r.source for r in found] == ["repo-a", "repo-c"]


def test_find_similar_respects_max_results_and_threshold(records):
    query = "Review my Python code for bugs"
    assert [r.source for r in find_similar(query, records, max_results=1)] == ["repo-a"]
    # repo-c only shares 2 of 4 query words
    assert [r.source for r in find_similar(query, records, threshold=0.6)] == ["repo-a"]


def test_find_similar_ties_keep_corpus_order():
    corpus = [
        ReferenceRecord(title="one", content="python testing", source="first"),
        ReferenceRecord(title="two", content="python testing", source="second"),
    ]
    found = find_similar("python testing", corpus)
    assert [r.source for r in found] == ["first", "second"]


def test_find_similar_empty_inputs(records):
    assert find_similar("", records) == []
    # only words of three letters or fewer
    assert find_similar("fix the bug", records) == []
    assert find_similar("Review Python code", []) == []


def test_similarity_is_normalized_by_query_size():
    long_ref = ReferenceRecord(
        title="Huge reference",
        content="python " + " ".join(f"word{i}" for i in range(500)),
        source="long",
    )
    # A one-word query fully covered by a long record is a perfect match
    assert find_similar("python", [long_ref], threshold=1.0) == [long_ref]


def test_extract_patterns_deduplicates_in_first_seen_order():
    refs = [
        ReferenceRecord(title="a", content="You are a reviewer. You must check ```code```", source="x"),
        ReferenceRecord(title="b", content="## Usage\nYou are a tester, e.g. for APIs.", source="y"),
    ]
    assert extract_patterns(refs) == [
        "role-definition",
        "code-blocks",
        "constraints",
        "sections",
    ]


def test_extract_patterns_empty():
    assert extract_patterns([]) == []
