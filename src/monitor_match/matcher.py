"""Cascading relevance check for one content item against one monitor.

The order of the branches is product policy:

1. a non-blank boolean search query decides alone, even when it is invalid;
2. a direct company mention;
3. a loose company mention backed by a co-occurring keyword (first keyword wins);
4. any keyword, reporting every keyword found;
5. no match.
"""

from __future__ import annotations

from monitor_match.keywords import (
    first_matching_keyword,
    loosely_mentions_company,
    matching_keywords,
    mentions_company,
)
from monitor_match.models import ContentItem, MatchConfig, MatchResult
from monitor_match.search.evaluator import evaluate
from monitor_match.search.parser import parse_search_query

NO_MATCH_EXPLANATION = "No matches found"


def _match_search_query(content: ContentItem, query: str) -> MatchResult:
    parsed = parse_search_query(query)
    if not parsed.is_valid:
        return MatchResult(
            matches=False,
            matched_terms=[],
            match_type="boolean_search",
            explanation=parsed.explanation,
        )

    evaluation = evaluate(parsed.expression, content)
    terms = list(evaluation.matched_terms)
    if evaluation.matches:
        explanation = f"Matched: {', '.join(terms) or 'all criteria'}"
    else:
        explanation = f"Did not match: {parsed.explanation}"
    return MatchResult(
        matches=evaluation.matches,
        matched_terms=terms,
        match_type="boolean_search",
        explanation=explanation,
    )


def match_content(content: ContentItem, config: MatchConfig) -> MatchResult:
    if config.search_query and config.search_query.strip():
        return _match_search_query(content, config.search_query)

    text = content.searchable_text()
    company = config.company_name or ""
    keywords = config.keywords or ()

    if company.strip() and mentions_company(text, company):
        return MatchResult(
            matches=True,
            matched_terms=[company],
            match_type="company",
            explanation=f"Direct company name mention: {company}",
        )

    if company.strip() and keywords and loosely_mentions_company(text, company):
        keyword = first_matching_keyword(text, keywords)
        if keyword is not None:
            return MatchResult(
                matches=True,
                matched_terms=[company, keyword],
                match_type="company_keyword",
                explanation=f"Company + keyword match: {company} + {keyword}",
            )

    found = matching_keywords(text, keywords)
    if found:
        return MatchResult(
            matches=True,
            matched_terms=found,
            match_type="keyword",
            explanation=f"Keyword match: {', '.join(found)}",
        )

    return MatchResult(
        matches=False,
        matched_terms=[],
        match_type="keyword",
        explanation=NO_MATCH_EXPLANATION,
    )
