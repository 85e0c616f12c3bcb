from typing import Annotated

from fastapi import APIRouter, Depends, status
from request_approval.core.dependencies import get_approval_session
from request_approval.core.helpers.response import IResponseBase, build_json_response
from request_approval.domain.schemas import MarkupSearchResult
from request_approval.domain.services import ApprovalSession

router = APIRouter()


@router.get(
    "/search",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[MarkupSearchResult],
    operation_id="search_markups",
)
async def search_markups(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
) -> IResponseBase[MarkupSearchResult]:
    """
    Find the pricing markups for the brands and suppliers of the pending requests.
    """
    result = await session.search_markups()
    return build_json_response(
        data=result,
        message=f"Found {result.total_matches} markups for {len(result.terms)} search terms",
    )
