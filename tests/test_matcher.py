from monitor_match.matcher import match_content
from monitor_match.models import ContentItem, MatchConfig


def test_search_query_takes_precedence_over_company_and_keywords() -> None:
    item = ContentItem(title="Acme is great", body="pricing talk")
    config = MatchConfig(company_name="Acme", keywords=("pricing",), search_query="refund")
    result = match_content(item, config)
    assert result.match_type == "boolean_search"
    assert not result.matches
    assert result.matched_terms == []


def test_invalid_search_query_does_not_fall_back() -> None:
    item = ContentItem(title="Acme pricing")
    config = MatchConfig(company_name="Acme", keywords=("pricing",), search_query='"broken')
    result = match_content(item, config)
    assert result.match_type == "boolean_search"
    assert not result.matches
    assert result.explanation.startswith("Invalid search query")


def test_search_query_match_explains_terms() -> None:
    item = ContentItem(title="Looking for alternatives", body="pricing is insane")
    result = match_content(item, MatchConfig(search_query="alternatives OR competitor"))
    assert result.matches
    assert result.match_type == "boolean_search"
    assert result.matched_terms == ["alternatives"]
    assert result.explanation == "Matched: alternatives"


def test_search_query_with_only_filters_still_explains_match() -> None:
    item = ContentItem(title="Anything", platform="reddit")
    result = match_content(item, MatchConfig(search_query="platform:reddit"))
    assert result.matches
    assert result.matched_terms == []
    assert result.explanation == "Matched: all criteria"


def test_blank_search_query_uses_legacy_matching() -> None:
    item = ContentItem(title="We switched to Acme last week")
    result = match_content(item, MatchConfig(company_name="Acme", search_query="   "))
    assert result.match_type == "company"


def test_company_mention_in_title_or_body() -> None:
    result = match_content(ContentItem(title="x", body="ACME support rocks"), MatchConfig(company_name="Acme"))
    assert result.matches
    assert result.match_type == "company"
    assert result.matched_terms == ["Acme"]
    assert result.explanation == "Direct company name mention: Acme"


def test_company_mention_wins_over_keywords() -> None:
    item = ContentItem(title="Acme review", body="honest review of pricing")
    result = match_content(item, MatchConfig(company_name="Acme", keywords=("review", "pricing")))
    assert result.match_type == "company"
    assert result.matched_terms == ["Acme"]


def test_loose_company_mention_needs_keyword_and_first_keyword_wins() -> None:
    item = ContentItem(title="super-widget: thoughts on b", body="and also a")
    config = MatchConfig(company_name="Super Widget", keywords=("b", "a"))
    result = match_content(item, config)
    assert result.matches
    assert result.match_type == "company_keyword"
    assert result.matched_terms == ["Super Widget", "b"]


def test_loose_company_mention_without_keyword_is_not_enough() -> None:
    item = ContentItem(title="superwidget launch")
    result = match_content(item, MatchConfig(company_name="Super Widget", keywords=("pricing",)))
    assert not result.matches


def test_company_letters_spread_across_words_are_not_a_mention() -> None:
    item = ContentItem(title="bac meat pricing")
    result = match_content(item, MatchConfig(company_name="Acme", keywords=("pricing",)))
    assert result.matches
    assert result.match_type == "keyword"
    assert result.matched_terms == ["pricing"]


def test_keyword_substring_is_case_insensitive() -> None:
    result = match_content(ContentItem(title="I love SuperWidget"), MatchConfig(keywords=("superwidget",)))
    assert result.matches
    assert result.match_type == "keyword"


def test_keyword_branch_reports_all_matching_keywords_in_order() -> None:
    item = ContentItem(title="pricing and support", body="support is slow, pricing too")
    config = MatchConfig(keywords=("support", "refund", "pricing", "  "))
    result = match_content(item, config)
    assert result.matched_terms == ["support", "pricing"]
    assert result.explanation == "Keyword match: support, pricing"


def test_competitor_alternatives_scenario() -> None:
    item = ContentItem(
        title="Looking for alternatives to Competitor X, pricing is insane",
        platform="reddit",
    )
    result = match_content(item, MatchConfig(keywords=("alternatives to Competitor X",)))
    assert result.matches
    assert result.match_type == "keyword"
    assert result.matched_terms == ["alternatives to Competitor X"]


def test_empty_config_is_a_negative_match() -> None:
    result = match_content(ContentItem(title="hello"), MatchConfig())
    assert not result.matches
    assert result.matched_terms == []
    assert result.explanation == "No matches found"


def test_company_absent_and_no_keywords() -> None:
    result = match_content(ContentItem(title="nothing relevant"), MatchConfig(company_name="Acme"))
    assert not result.matches
