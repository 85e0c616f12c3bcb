from typing import Any, Generic, TypeVar

from pydantic import BaseModel

DataType = TypeVar("DataType")
T = TypeVar("T")


class IResponseBase(BaseModel, Generic[T]):
    """
    Envelope for every successful approval API response.\n

    Attributes:\n
        message (str | None): What happened, e.g. "2 of 3 product requests approved"
            or the empty-table message.
        data (T | None): The table page, record, outcome list or reference lists.
        meta (dict[str, Any] | None): Extra counters, such as how many requests a refresh loaded.
    """

    message: str | None = None
    data: T | None = None
    meta: dict[str, Any] | None = None


def build_json_response(
    data: DataType,
    message: str | None = None,
    meta: dict[str, Any] | None = None,
) -> IResponseBase[DataType]:
    """Wrap `data` in the response envelope."""
    return IResponseBase[DataType](message=message, data=data, meta=meta)
