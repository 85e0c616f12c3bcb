from enum import StrEnum


class SortDirection(StrEnum):
    """
    Enumeration for sort directions

    Attributes:\n
        ASC: Ascending order.
        DESC: Descending order.
    """

    ASC = "asc"
    DESC = "desc"
