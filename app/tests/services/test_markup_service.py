import httpx
import pytest
from request_approval.core.exceptions import errors
from request_approval.domain.enums import ProductRequestStatus
from request_approval.domain.services import MarkupService
from request_approval.domain.services.markup_service import collect_search_terms, match_markups
from request_approval.libs.gateway import (
    HttpGatewayConfiguration,
    HttpGatewayProvider,
    MemoryGatewayConfiguration,
    MemoryGatewayProvider,
)


class TestMarkupService:
    """Test cases for MarkupService"""

    def test_collect_search_terms(self, make_request):
        """Test that terms are unique, non-empty and come from pending requests only."""
        records = [
            make_request("1", brand="Acme", primary_supplier=""),
            make_request("2", brand="acme ", primary_supplier="Globex"),
            make_request("3", brand="Umbrella", status=ProductRequestStatus.APPROVED),
        ]

        assert collect_search_terms(records) == ["Acme", "Globex"]

    def test_match_markups_ignores_case(self, markups):
        matches = match_markups(["acme", "hooli"], markups)

        assert [markup.id for markup in matches["acme"]] == ["m1", "m2"]
        assert matches["hooli"] == []

    @pytest.mark.asyncio
    async def test_search_without_terms_skips_the_source(self):
        """Test that nothing is fetched when there is nothing to search for."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("markups should not be fetched")

        source = HttpGatewayProvider(HttpGatewayConfiguration(), transport=httpx.MockTransport(handler))

        result = await MarkupService(source).search([])

        assert result.terms == []
        assert result.total_matches == 0
        await source.close()

    @pytest.mark.asyncio
    async def test_search(self, make_request, markups):
        source = MemoryGatewayProvider(MemoryGatewayConfiguration(), markups=markups)

        result = await MarkupService(source).search([make_request("1", primary_supplier="Initech")])

        assert result.terms == ["Acme", "Initech"]
        assert result.total_matches == 3

    @pytest.mark.asyncio
    async def test_search_when_source_fails(self, make_request):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500)

        source = HttpGatewayProvider(HttpGatewayConfiguration(), transport=httpx.MockTransport(handler))

        with pytest.raises(errors.RequestSourceError):
            await MarkupService(source).search([make_request("1")])
        await source.close()
