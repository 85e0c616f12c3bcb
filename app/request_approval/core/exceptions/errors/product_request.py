from fastapi import status

from .base import ServiceError


class ProductRequestError(ServiceError):
    """
    Base error for anything that goes wrong while reviewing a product request.

    Every subclass is recoverable: the table shows the message next to the
    affected row and the session carries on.
    """

    type_ = "product_request_error"
    title = "Product Request Error"
    detail = "The product request could not be processed."

    def __init__(self, detail=None, request_id: str | None = None, **kwargs):
        if request_id is not None:
            kwargs.setdefault("product_request_id", request_id)
        super().__init__(detail=detail, **kwargs)
        self.request_id = request_id


class NotFoundError(ProductRequestError):
    """
    This error is raised when no product request has the given identifier.
    """

    type_ = "not_found_error"
    title = "Product Request Not Found"
    detail = "The requested product request could not be found."
    status = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(ProductRequestError):
    """
    This error is raised when a decision or edit targets a request that is
    no longer pending.
    """

    type_ = "invalid_transition"
    title = "Invalid Status Transition"
    detail = "Only pending requests can be approved, rejected or edited."
    status = status.HTTP_409_CONFLICT


class DuplicateIdError(ProductRequestError):
    """
    This error is raised when a load contains two requests with the same id.
    """

    type_ = "duplicate_id"
    title = "Duplicate Request Id"
    detail = "Two product requests share the same identifier."
    status = status.HTTP_409_CONFLICT


class ValidationError(ProductRequestError):
    """
    This error is raised when an intent is malformed (unknown decision,
    note too long, missing required fields, invalid prices).
    """

    type_ = "validation_error"
    title = "Invalid Intent"
    detail = "The requested action is not valid for this product request."
    status = status.HTTP_422_UNPROCESSABLE_ENTITY


class ConflictError(ProductRequestError):
    """
    This error is raised when a decision is already in flight for the request,
    or when the decision sink reports that it was decided elsewhere.
    """

    type_ = "decision_conflict"
    title = "Decision Conflict"
    detail = "A decision for this product request is already in progress."
    status = status.HTTP_409_CONFLICT


class DecisionTimeoutError(ProductRequestError):
    """
    This error is raised when the decision sink does not answer in time.
    The request stays pending and may be re-submitted.
    """

    type_ = "decision_timeout"
    title = "Decision Timed Out"
    detail = "The decision service did not respond in time. The request is still pending."
    status = status.HTTP_504_GATEWAY_TIMEOUT


class DecisionSinkError(ProductRequestError):
    """
    This error is raised when the decision sink fails for any reason other
    than a timeout or a conflict.
    """

    type_ = "decision_sink_error"
    title = "Decision Service Error"
    detail = "The decision service rejected or failed to record the decision."
    status = status.HTTP_502_BAD_GATEWAY


class RequestSourceError(ServiceError):
    """
    This error is raised when product requests, markups or catalogue data
    cannot be fetched.
    """

    type_ = "request_source_error"
    title = "Request Source Error"
    detail = "Product requests could not be loaded. Please try again later."
    status = status.HTTP_502_BAD_GATEWAY


PRODUCT_REQUEST_ERRORS: dict[str, type[ProductRequestError]] = {
    error.type_: error
    for error in (
        NotFoundError,
        InvalidTransitionError,
        DuplicateIdError,
        ValidationError,
        ConflictError,
        DecisionTimeoutError,
        DecisionSinkError,
    )
}
