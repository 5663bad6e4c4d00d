"""
Guidebook — Query String Helpers
=================================

What:  Turns raw query-string pairs into the shapes the API works with.
Why:   The same rules apply in two places: GET /api/inspect/query echoes them
       back, and the guide list endpoints use them for repeated `tag` values.

Rules:
    - Repeated keys accumulate values in the order they appear
    - Keys keep first-seen order
    - `?flag` and `?flag=` both yield an empty value and mark `flag` as a flag
    - `?tag=a,b&tag=c` splits on commas → ["a", "b", "c"]
"""

from typing import Dict, Iterable, List, Optional, Tuple

from guidebook.schemas.guide import QueryInspection


def group_params(pairs: Iterable[Tuple[str, str]]) -> Dict[str, List[str]]:
    grouped: Dict[str, List[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    return grouped


def inspect_query(raw: str, pairs: Iterable[Tuple[str, str]]) -> QueryInspection:
    """
    Describe how a query string was parsed.

    `pairs` are the decoded (key, value) items, e.g. Starlette's
    `request.query_params.multi_items()`.
    """
    grouped = group_params(pairs)
    flags = [key for key, values in grouped.items() if "" in values]
    return QueryInspection(raw=raw, params=grouped, flags=flags)


def split_multi(values: Optional[List[str]]) -> List[str]:
    """
    Flatten repeated and comma-separated values, lowercased and de-duplicated.

    split_multi(["Routing,fastapi", " routing ", ""]) → ["routing", "fastapi"]
    """
    result: List[str] = []
    for value in values or []:
        for part in value.split(","):
            item = part.strip().lower()
            if item and item not in result:
                result.append(item)
    return result
