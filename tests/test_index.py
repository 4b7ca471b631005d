"""Tests for the in-memory search index."""

import threading

import pytest

from src.catalog.errors import IndexWriteError, QueryError
from src.catalog.models import Item
from src.search.index import MAX_RESULTS, SearchIndex


def _pairs(hits):
    return [hit.as_pair() for hit in hits]


def test_example_queries(index, pets) -> None:
    index.rebuild(pets)

    assert _pairs(index.search("cat")) == [("u1", "happy, cat")]
    assert _pairs(index.search("u2")) == [("u2", "sad, dog")]
    assert index.search("u3") == []


def test_empty_index_returns_nothing(index) -> None:
    assert index.search("cat") == []
    assert index.num_docs == 0
    assert index.generation == 0


@pytest.mark.parametrize("query", ["", "   ", "\n"])
def test_blank_query_is_an_error(index, pets, query) -> None:
    index.rebuild(pets)
    with pytest.raises(QueryError):
        index.search(query)


def test_malformed_query_is_an_error(index, pets) -> None:
    index.rebuild(pets)
    with pytest.raises(QueryError):
        index.search("nofield:cat")


def test_exact_url_source_is_found(index) -> None:
    items = [
        Item.create("https://tenor.com/view/nub-cat-silly-gif-1", ["silly", "nub"]),
        Item.create("https://tenor.com/view/nub-cat-silly-gif-2", ["sleepy", "nub"]),
    ]
    index.rebuild(items)

    hits = index.search("https://tenor.com/view/nub-cat-silly-gif-2")
    assert hits[0].source == "https://tenor.com/view/nub-cat-silly-gif-2"
    assert hits[0].tags == "sleepy, nub"


def test_every_source_finds_its_item(index) -> None:
    items = [Item.create(f"src-{i}", ["shared", f"kw{i % 3}"]) for i in range(25)]
    index.rebuild(items)

    for item in items:
        hits = index.search(item.source)
        assert (item.source, item.keywords()) in _pairs(hits)


def test_source_is_returned_verbatim(index) -> None:
    source = "https://Example.com/A%20B/Cat.GIF?x=1&y=2"
    index.rebuild([Item.create(source, ["Mixed", "CASE"])])

    hits = index.search("mixed")
    assert hits[0].source == source
    assert hits[0].tags == "Mixed, CASE"


def test_results_are_capped_and_ranked(index) -> None:
    items = [Item.create(f"u{i}", ["cat"] + ["filler"] * i) for i in range(30)]
    index.rebuild(items)

    hits = index.search("cat")
    assert len(hits) == MAX_RESULTS
    scores = [hit.score for hit in hits]
    assert scores == sorted(scores, reverse=True)
    # Shorter documents score higher for the same term.
    assert hits[0].source == "u0"


def test_limit_is_never_above_ten(index) -> None:
    index.rebuild([Item.create(f"u{i}", ["cat"]) for i in range(20)])
    assert len(index.search("cat", limit=50)) == MAX_RESULTS
    assert len(index.search("cat", limit=3)) == 3


def test_ties_keep_input_order(index) -> None:
    items = [Item.create(f"s{i}", ["same"]) for i in range(5)]

    index.rebuild(items)
    assert [h.source for h in index.search("same")] == ["s0", "s1", "s2", "s3", "s4"]

    index.rebuild(list(reversed(items)))
    assert [h.source for h in index.search("same")] == ["s4", "s3", "s2", "s1", "s0"]


def test_rebuild_replaces_whole_corpus(index) -> None:
    a = [Item.create("only-a", ["cat"]), Item.create("both", ["cat"])]
    b = [Item.create("both", ["cat"]), Item.create("only-b", ["cat"])]

    index.rebuild(a)
    index.rebuild(b)

    sources = {h.source for h in index.search("cat")}
    assert sources == {"both", "only-b"}
    assert index.search("only-a") == []
    assert index.num_docs == 2
    assert index.generation == 2


def test_rebuild_with_empty_snapshot_clears_index(index, pets) -> None:
    index.rebuild(pets)
    index.rebuild([])
    assert index.search("cat") == []
    assert index.num_docs == 0


def test_duplicate_sources_are_kept(index) -> None:
    index.rebuild([Item.create("u1", ["cat"]), Item.create("u1", ["kitten"])])
    assert sorted(_pairs(index.search("u1"))) == [("u1", "cat"), ("u1", "kitten")]


def test_failed_rebuild_keeps_previous_corpus(index, pets) -> None:
    index.rebuild(pets)
    broken = [Item.create("u9", ["fresh"]), Item(source=None, tags=("x",))]  # type: ignore[arg-type]

    with pytest.raises(IndexWriteError):
        index.rebuild(broken)

    assert _pairs(index.search("cat")) == [("u1", "happy, cat")]
    assert index.search("fresh") == []
    assert index.generation == 1

    index.rebuild([Item.create("u9", ["fresh"])])
    assert _pairs(index.search("fresh")) == [("u9", "fresh")]


def test_search_during_rebuilds_sees_one_generation(index) -> None:
    size = 6
    gen_a = [Item.create(f"a{i}", ["common", "alpha"]) for i in range(size)]
    gen_b = [Item.create(f"b{i}", ["common", "beta", "extra"]) for i in range(size)]
    index.rebuild(gen_a)

    stop = threading.Event()
    errors = []

    def writer() -> None:
        try:
            for n in range(40):
                index.rebuild(gen_b if n % 2 == 0 else gen_a)
        except Exception as e:  # surfaced through the errors list
            errors.append(e)
        finally:
            stop.set()

    def reader() -> None:
        try:
            while not stop.is_set():
                hits = index.search("common")
                prefixes = {h.source[0] for h in hits}
                assert len(hits) == size, hits
                assert len(prefixes) == 1, hits
                tags = {h.tags for h in hits}
                assert len(tags) == 1, hits
                scores = {round(h.score, 6) for h in hits}
                assert len(scores) == 1, hits
        except Exception as e:
            errors.append(e)
            stop.set()

    threads = [threading.Thread(target=writer)] + [threading.Thread(target=reader) for _ in range(3)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
