from folio.search.spelling import edit_distance, merge_vocabularies, suggest


def test_edit_distance_within_band() -> None:
    assert edit_distance("index", "index") == 0
    assert edit_distance("index", "indx") == 1
    assert edit_distance("flaw", "lawn") == 2


def test_edit_distance_is_capped() -> None:
    assert edit_distance("kitten", "sitting", max_d=2) == 3
    assert edit_distance("a", "abcdef", max_d=2) == 3


def test_suggest_prefers_distance_then_frequency_then_alphabet() -> None:
    assert suggest("hat", {"cat": 1, "bat": 5, "chart": 9}) == "bat"
    assert suggest("hat", {"cat": 2, "bat": 2}) == "bat"
    assert suggest("indez", {"index": 1, "indexes": 30}) == "index"


def test_suggest_returns_none_without_candidates() -> None:
    assert suggest("zzzz", {"index": 1}) is None
    assert suggest("index", {"index": 3}) is None
    assert suggest("indx", {"index": 1}, max_distance=0) is None


def test_merge_vocabularies_sums_frequencies() -> None:
    merged = merge_vocabularies([{"a": 1, "b": 2}, {"b": 3}])
    assert merged == {"a": 1, "b": 5}
