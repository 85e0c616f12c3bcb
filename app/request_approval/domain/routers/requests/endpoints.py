from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Request, status
from fastapi_problem.error import StatusProblem
from request_approval.core.dependencies import get_approval_session
from request_approval.core.exceptions import errors
from request_approval.core.helpers.request import parse_nested_query_params
from request_approval.core.helpers.response import IResponseBase, build_json_response
from request_approval.core.logging import add_to_log_context, get_logger
from request_approval.domain.enums import IntentKind
from request_approval.domain.schemas import (
    ApplyFieldRequest,
    BulkDecisionRequest,
    DecisionRequest,
    EditRequest,
    IntentOutcome,
    ReferenceLists,
    SelectAllRequest,
    SelectRequest,
    TablePage,
)
from request_approval.domain.services import ApprovalSession
from request_approval.libs.query_engine import OffsetPaginationRequest

logger = get_logger(__name__)

router = APIRouter()


def _raise_for_outcome(outcome: IntentOutcome) -> IntentOutcome:
    """Turn a failed outcome back into the problem it was reported for."""
    if outcome.ok:
        return outcome
    error = errors.PRODUCT_REQUEST_ERRORS.get(outcome.error_type or "", errors.ProductRequestError)
    extras = {key: value for key, value in outcome.extras.items() if key != "product_request_id"}
    raise error(detail=outcome.message, request_id=outcome.request_id, **extras)


async def _decide(session: ApprovalSession, kind: IntentKind, request_id: str, note: str | None) -> IntentOutcome:
    with add_to_log_context(product_request_id=request_id, intent=kind.value):
        return _raise_for_outcome(await session.act(kind, request_id, note=note))


@router.get(
    "/",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[TablePage],
    operation_id="list_product_requests",
)
async def list_product_requests(
    request: Request,
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
) -> IResponseBase[TablePage]:
    """
    Get one page of the review table.

    Accepts `page`, `order_by` (`status` or `-status`) and
    `filters[field__operator]` query params. Sort and filter stick to the
    session until they are changed again.
    """
    try:
        parsed_params = parse_nested_query_params(dict(request.query_params))
        if isinstance(parsed_params.get("order_by"), str):
            parsed_params["order_by"] = [parsed_params["order_by"]]
        pagination = OffsetPaginationRequest(**parsed_params)

        sort_fields = pagination.sort_fields
        session.view.apply_query(
            sort=sort_fields[0] if sort_fields else None,
            filters=pagination.filters if "filters" in parsed_params else None,
        )

        page = session.view_page(pagination.page)
        message = page.empty_message or "Product requests retrieved successfully"
        return build_json_response(data=page, message=message)
    except errors.ServiceError as se:
        raise se
    except StatusProblem as sp:
        raise sp
    except Exception as e:
        logger.exception(f"request_approval.domain.routers.requests.endpoints.list_product_requests:: {e}")
        raise errors.ServiceError("Failed to retrieve product requests")


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[TablePage],
    operation_id="refresh_product_requests",
)
async def refresh_product_requests(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
) -> IResponseBase[TablePage]:
    """
    Reload pending requests from the request source and return the first page.
    """
    count = await session.refresh()
    return build_json_response(
        data=session.view_page(1),
        message=f"Loaded {count} product requests",
        meta={"loaded": count},
    )


@router.get(
    "/reference-lists",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[ReferenceLists],
    operation_id="get_reference_lists",
)
async def get_reference_lists(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
) -> IResponseBase[ReferenceLists]:
    """
    Get the catalogue brands, suppliers and categories offered in the row selects.
    """
    reference = session.reference or await session.load_reference_lists()
    return build_json_response(data=reference, message="Reference lists retrieved successfully")


@router.post(
    "/bulk",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[list[IntentOutcome]],
    operation_id="bulk_decide_product_requests",
)
async def bulk_decide_product_requests(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    bulk_data: Annotated[BulkDecisionRequest, Body(..., description="Decision to apply to the selected rows")],
) -> IResponseBase[list[IntentOutcome]]:
    """
    Approve or reject every selected row.

    Each row succeeds or fails on its own; failures are listed in the outcomes
    and shown next to their rows.
    """
    if bulk_data.kind.decision is None:
        raise errors.ValidationError(detail="Bulk actions only support approve or reject.")

    outcomes = await session.submit_selected(bulk_data.kind, note=bulk_data.note)
    succeeded = sum(outcome.ok for outcome in outcomes)
    return build_json_response(
        data=outcomes,
        message=f"{succeeded} of {len(outcomes)} product requests {bulk_data.kind.decision.value}",
    )


@router.post(
    "/apply-field",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[list[IntentOutcome]],
    operation_id="apply_field_to_all",
)
async def apply_field_to_all(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    apply_data: Annotated[ApplyFieldRequest, Body(..., description="Field to copy from the first row")],
) -> IResponseBase[list[IntentOutcome]]:
    """
    Copy a catalogue field from the first visible row to every other visible pending row.
    """
    outcomes = await session.apply_field_to_all(apply_data.field)
    return build_json_response(data=outcomes, message=f"{apply_data.field} applied to {len(outcomes)} requests")


@router.post(
    "/select-all",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[list[str]],
    operation_id="select_all_product_requests",
)
async def select_all_product_requests(
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    select_data: Annotated[SelectAllRequest, Body(...)],
) -> IResponseBase[list[str]]:
    """
    Select or deselect every visible pending row.
    """
    visible = [row.id for row in session.rows() if row.actions_enabled]
    session.view.select_all(select_data.checked, visible)
    return build_json_response(data=sorted(session.view.selected_ids), message="Selection updated")


@router.post(
    "/{request_id}/approve",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[IntentOutcome],
    operation_id="approve_product_request",
)
async def approve_product_request(
    request_id: Annotated[str, Path(..., description="The id of the product request")],
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    decision_data: Annotated[DecisionRequest | None, Body()] = None,
) -> IResponseBase[IntentOutcome]:
    """
    Approve a pending product request and create the product.
    """
    note = decision_data.note if decision_data else None
    outcome = await _decide(session, IntentKind.APPROVE, request_id, note)
    return build_json_response(data=outcome, message="Product request approved")


@router.post(
    "/{request_id}/reject",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[IntentOutcome],
    operation_id="reject_product_request",
)
async def reject_product_request(
    request_id: Annotated[str, Path(..., description="The id of the product request")],
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    decision_data: Annotated[DecisionRequest | None, Body()] = None,
) -> IResponseBase[IntentOutcome]:
    """
    Reject a pending product request.
    """
    note = decision_data.note if decision_data else None
    outcome = await _decide(session, IntentKind.REJECT, request_id, note)
    return build_json_response(data=outcome, message="Product request rejected")


@router.patch(
    "/{request_id}",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[IntentOutcome],
    operation_id="edit_product_request",
)
async def edit_product_request(
    request_id: Annotated[str, Path(..., description="The id of the product request")],
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    edit_data: Annotated[EditRequest, Body(..., description="Catalogue fields to change")],
) -> IResponseBase[IntentOutcome]:
    """
    Change catalogue fields of a pending request.

    Changing a markup recalculates its price and changing a price recalculates its markup.
    """
    with add_to_log_context(product_request_id=request_id, intent=IntentKind.EDIT.value):
        outcome = _raise_for_outcome(await session.act(IntentKind.EDIT, request_id, changes=edit_data.changes))
    return build_json_response(data=outcome, message="Product request updated")


@router.post(
    "/{request_id}/select",
    status_code=status.HTTP_200_OK,
    response_model=IResponseBase[dict[str, Any]],
    operation_id="select_product_request",
)
async def select_product_request(
    request_id: Annotated[str, Path(..., description="The id of the product request")],
    session: Annotated[ApprovalSession, Depends(get_approval_session)],
    select_data: Annotated[SelectRequest | None, Body()] = None,
) -> IResponseBase[dict[str, Any]]:
    """
    Select, deselect or toggle a row for bulk actions.
    """
    session.store.get(request_id)

    wanted = select_data.selected if select_data else None
    if wanted is None or wanted != (request_id in session.view.selected_ids):
        session.view.toggle_select(request_id)

    selected = request_id in session.view.selected_ids
    return build_json_response(
        data={"id": request_id, "selected": selected},
        message="Product request selected" if selected else "Product request deselected",
    )
