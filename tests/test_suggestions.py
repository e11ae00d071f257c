from screenbook.suggestions import find_best_match, find_similar, format_suggestions, levenshtein_distance


def test_levenshtein_distance_counts_edits() -> None:
    assert levenshtein_distance("kitten", "sitting") == 3
    assert levenshtein_distance("", "abc") == 3
    assert levenshtein_distance("abc", "") == 3
    assert levenshtein_distance("settings", "settings") == 0


def test_levenshtein_distance_is_symmetric() -> None:
    pairs = [("billing.invoices", "billing.invoice"), ("home", "hmoe"), ("a", "xyz")]
    for left, right in pairs:
        assert levenshtein_distance(left, right) == levenshtein_distance(right, left)


def test_find_similar_applies_threshold_and_orders_by_distance() -> None:
    candidates = ["dash", "settings", "dashboard"]

    assert find_similar("dashbord", candidates) == ["dashboard", "dash"]


def test_find_similar_keeps_candidate_order_for_ties() -> None:
    assert find_similar("abcd", ["abce", "abcf", "abcg", "abch"]) == ["abce", "abcf", "abcg"]
    assert find_similar("abcd", ["abce", "abcf"], max_suggestions=1) == ["abce"]


def test_find_best_match_returns_none_when_nothing_is_close() -> None:
    assert find_best_match("xyz", ["abc"]) is None
    assert find_best_match("settngs", ["home", "settings", "profile"]) == "settings"
    assert find_best_match("anything", []) is None


def test_format_suggestions() -> None:
    assert format_suggestions([]) == ""
    assert format_suggestions(["home", "help"]) == "Did you mean one of these?\n  - home\n  - help"
