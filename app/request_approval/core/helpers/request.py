import re
from typing import Any

_NESTED_PATTERN = re.compile(r"^([^[]+)\[([^]]+)\]$")


def parse_nested_query_params(query_params: dict[str, Any]) -> dict[str, Any]:
    """
    Parse nested query parameters like 'filters[status__eq]' and 'order_by[0]' into nested structures.

    Keys of the form `parent[child]` become `{parent: {child: value}}`; when
    every child key is numeric the group becomes a list ordered by index.
    """
    parsed: dict[str, Any] = {}

    for key, value in query_params.items():
        match = _NESTED_PATTERN.match(key)
        if match:
            parent_key, child_key = match.groups()
            parsed.setdefault(parent_key, {})[child_key] = value
        else:
            parsed[key] = value

    for key, value in parsed.items():
        if isinstance(value, dict) and value and all(k.isdigit() for k in value.keys()):
            parsed[key] = [item for _, item in sorted(value.items(), key=lambda x: int(x[0]))]

    return parsed
