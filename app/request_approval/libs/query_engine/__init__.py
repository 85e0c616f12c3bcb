from .enums import SortDirection  # noqa: F401
from .exceptions import InvalidFieldError, InvalidFilterError, QueryEngineError  # noqa: F401
from .providers import FiltersProvider, OffsetProvider, OrderingProvider  # noqa: F401
from .schemas import OffsetPaginationRequest, OffsetPaginationResponse, parse_sort_fields  # noqa: F401
