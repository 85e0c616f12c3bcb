from __future__ import annotations

from typing import Iterable

from request_approval.core.exceptions import errors
from request_approval.core.logging import get_logger
from request_approval.domain.schemas import Markup, MarkupSearchResult, ProductRequest
from request_approval.libs.gateway import GatewayError, RequestSource

logger = get_logger(__name__)


def collect_search_terms(records: Iterable[ProductRequest]) -> list[str]:
    """Unique non-empty brand and supplier names of pending requests, in first-seen order."""
    terms: list[str] = []
    seen: set[str] = set()
    for record in records:
        if not record.is_pending:
            continue
        for value in (record.brand, record.primary_supplier):
            term = value.strip()
            if term and term.casefold() not in seen:
                seen.add(term.casefold())
                terms.append(term)
    return terms


def match_markups(terms: Iterable[str], markups: Iterable[Markup]) -> dict[str, list[Markup]]:
    """Markups whose brand contains each term, ignoring case."""
    markups = list(markups)
    return {term: [markup for markup in markups if term.casefold() in markup.brand.casefold()] for term in terms}


class MarkupService:
    """Service for looking up the pricing markups that apply to pending requests."""

    def __init__(self, source: RequestSource):
        self.source = source

    async def search(self, records: Iterable[ProductRequest]) -> MarkupSearchResult:
        """
        Find markups for the brands and suppliers of `records`.

        The markup list is fetched once per search.

        Args:
            records (Iterable[ProductRequest]): Requests to collect search terms from

        Returns:
            MarkupSearchResult: Matches per term

        Raises:
            errors.RequestSourceError: If the markups cannot be fetched
        """
        terms = collect_search_terms(records)
        if not terms:
            return MarkupSearchResult()

        try:
            markups = await self.source.fetch_markups()
        except GatewayError as e:
            logger.error(f"Failed to fetch markups: {e.message}", extra={"event_type": "markup_fetch_failed"})
            raise errors.RequestSourceError(detail="Markups could not be loaded. Please try again later.") from e

        result = MarkupSearchResult(terms=terms, matches=match_markups(terms, markups))
        logger.info(
            f"Markup search matched {result.total_matches} markups for {len(terms)} terms",
            extra={"event_type": "markup_search", "terms": len(terms), "matches": result.total_matches},
        )
        return result
