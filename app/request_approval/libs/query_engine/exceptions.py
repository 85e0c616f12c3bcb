from typing import Optional

from request_approval.core.exceptions import errors


class QueryEngineError(errors.ServiceError):
    """Base error for query engine related issues"""

    type_ = "query_engine_error"
    title = "Query Engine Error"
    detail = "An error occurred in the query engine."


class InvalidFieldError(QueryEngineError):
    """Error raised when an invalid field is specified for sorting or filtering"""

    title = "Invalid Field Error"
    detail = "One or more specified fields do not exist on the model."

    def __init__(
        self,
        invalid_fields: Optional[list[str]] = None,
        valid_fields: Optional[list[str]] = None,
        **kwargs,
    ):
        self.invalid_fields = invalid_fields or []
        self.valid_fields = valid_fields or []

        detail = kwargs.pop("detail", None)
        if detail is None and invalid_fields and valid_fields:
            detail = (
                f"Invalid fields specified: {', '.join(invalid_fields)}. "
                f"Valid fields are: {', '.join(valid_fields)}"
            )
        elif detail is None and invalid_fields:
            detail = f"Invalid fields specified: {', '.join(invalid_fields)}"

        super().__init__(detail=detail, **kwargs)


class InvalidFilterError(QueryEngineError):
    """Error raised when an invalid filter is provided"""

    title = "Invalid Filter Error"
    detail = "One or more filters are invalid or malformed."
