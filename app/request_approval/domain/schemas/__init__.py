from .markup import Markup, MarkupSearchResult  # noqa: F401
from .reference import CategoryOption, ReferenceLists  # noqa: F401
from .product_request import (  # noqa: F401
    EDITABLE_FIELDS,
    PRICE_FIELDS,
    DecisionIntent,
    DecisionPayload,
    ProductPayload,
    ProductRequest,
)
from .table import EMPTY_TABLE_MESSAGE, IntentOutcome, TablePage, TableRow  # noqa: F401
from .requests import (  # noqa: F401
    ApplyFieldRequest,
    BulkDecisionRequest,
    DecisionRequest,
    EditRequest,
    SelectAllRequest,
    SelectRequest,
)
