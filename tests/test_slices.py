from wavecommon.slices import map_index, no_change, to_map


def test_map_index_passes_positions():
    assert map_index(["a", "b", "c"], lambda i, s: f"{i}{s}") == ["0a", "1b", "2c"]


def test_map_index_empty():
    assert map_index([], lambda i, s: s) == []


def test_to_map_builds_pairs():
    words = ["apple", "banana"]
    assert to_map(words, lambda w: w[0], len) == {"a": 5, "b": 6}


def test_to_map_last_wins():
    pairs = [("k", 1), ("k", 2)]
    assert to_map(pairs, lambda p: p[0], lambda p: p[1]) == {"k": 2}


def test_no_change_is_identity():
    obj = object()
    assert no_change()(obj) is obj
    assert to_map([1, 2], no_change(), no_change()) == {1: 1, 2: 2}