from monitor_match.search.expression import MATCH_NOTHING, And, FieldFilter, Not, Or, Phrase, Term
from monitor_match.search.parser import (
    keywords_to_query,
    parse_search_query,
    search_syntax_help,
    validate_search_query,
)


def test_adjacent_words_are_and_ed() -> None:
    parsed = parse_search_query("monitoring tools")
    assert parsed.expression == And((Term("monitoring"), Term("tools")))
    assert parsed.is_valid


def test_explicit_and_is_the_default() -> None:
    assert parse_search_query("monitoring AND tools").expression == And(
        (Term("monitoring"), Term("tools"))
    )


def test_quoted_text_is_a_phrase() -> None:
    assert parse_search_query('"social listening"').expression == Phrase("social listening")


def test_or_binds_only_its_neighbours() -> None:
    parsed = parse_search_query("a b OR c d")
    assert parsed.expression == And((Term("a"), Or((Term("b"), Term("c"))), Term("d")))


def test_or_is_case_insensitive() -> None:
    assert parse_search_query("a or b").expression == Or((Term("a"), Term("b")))


def test_parentheses_widen_or_scope() -> None:
    parsed = parse_search_query("(a b) OR c")
    assert parsed.expression == Or((And((Term("a"), Term("b"))), Term("c")))


def test_not_word_and_dash_negate() -> None:
    assert parse_search_query("monitoring NOT spam").expression == And(
        (Term("monitoring"), Not(Term("spam")))
    )
    assert parse_search_query("monitoring -spam").expression == And(
        (Term("monitoring"), Not(Term("spam")))
    )
    assert parse_search_query('monitoring - "spam bot"').expression == And(
        (Term("monitoring"), Not(Phrase("spam bot")))
    )


def test_hyphen_inside_word_is_literal() -> None:
    assert parse_search_query("e-mail").expression == Term("e-mail")


def test_field_filters() -> None:
    parsed = parse_search_query('title:bug author:john platform:Reddit body:"slow sync"')
    assert parsed.expression == And(
        (
            FieldFilter("title", "bug"),
            FieldFilter("author", "john"),
            FieldFilter("platform", "Reddit"),
            FieldFilter("body", "slow sync"),
        )
    )


def test_repeated_field_filters_are_alternatives() -> None:
    parsed = parse_search_query("pricing author:alice platform:reddit author:bob")
    assert parsed.expression == And(
        (
            Term("pricing"),
            Or((FieldFilter("author", "alice"), FieldFilter("author", "bob"))),
            FieldFilter("platform", "reddit"),
        )
    )
    assert parsed.explanation == "pricing AND (author:alice OR author:bob) AND platform:reddit"
    assert parse_search_query("author:a author:b").expression == Or(
        (FieldFilter("author", "a"), FieldFilter("author", "b"))
    )


def test_unterminated_quote_fails_closed() -> None:
    parsed = parse_search_query('"pricing feedback')
    assert parsed.expression == MATCH_NOTHING
    assert parsed.error == "unmatched quote"
    assert parsed.explanation.startswith("Invalid search query")


def test_unbalanced_parentheses_fail_closed() -> None:
    for query in ("(a OR b", "a OR b)", "()", "a ) (b"):
        parsed = parse_search_query(query)
        assert parsed.expression == MATCH_NOTHING, query
        assert not parsed.is_valid


def test_dangling_operators_fail_closed() -> None:
    for query in ("OR", "a OR", "OR a", "NOT", "a AND", "a -", "title:"):
        assert not parse_search_query(query).is_valid, query


def test_length_and_depth_limits_fail_closed() -> None:
    assert not parse_search_query("a " * 300).is_valid
    assert not parse_search_query("x" * 250).is_valid
    assert not parse_search_query("(" * 12 + "a" + ")" * 12).is_valid
    assert not parse_search_query(" ".join(f"t{i}" for i in range(80))).is_valid
    assert parse_search_query("((a OR b) c)").is_valid


def test_blank_query_matches_all() -> None:
    parsed = parse_search_query("   ")
    assert parsed.expression == And(())
    assert parsed.explanation == "Empty query matches all"


def test_parse_is_memoized_per_query() -> None:
    assert parse_search_query("alpha OR beta") is parse_search_query("alpha OR beta")


def test_explanation_renders_expression() -> None:
    parsed = parse_search_query('"exact phrase" (a OR b) -spam')
    assert parsed.explanation == '"exact phrase" AND (a OR b) AND NOT spam'


def test_validate_search_query() -> None:
    assert validate_search_query("monitoring OR listening") == (True, None)
    valid, error = validate_search_query('"unterminated')
    assert not valid
    assert error == "unmatched quote"


def test_keywords_to_query_round_trips_through_parser() -> None:
    query = keywords_to_query(["alternatives to X", "pricing", "  "])
    assert query == '"alternatives to X" OR "pricing"'
    assert parse_search_query(query).expression == Or(
        (Phrase("alternatives to X"), Phrase("pricing"))
    )


def test_syntax_help_lists_operators() -> None:
    help_text = search_syntax_help()
    assert "OR" in help_text
    assert "title:" in help_text
