# storefront/shared/query_string.py

# Parses bracket-notation query strings into nested values, e.g.
#   sort[createdAt]=1&select=title&select=-price&populate[brand]=*
# becomes
#   {"sort": {"createdAt": "1"}, "select": ["title", "-price"], "populate": {"brand": "*"}}

import re
from typing import Dict, Iterable, List, Tuple, Union

from fastapi import Request

QueryValue = Union[str, List[str], Dict[str, "QueryValue"]]
QueryMap = Dict[str, QueryValue]

_KEY_PATTERN = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])*)$")
_SEGMENT_PATTERN = re.compile(r"\[([^\[\]]*)\]")
MAX_DEPTH = 5


def _split_key(raw_key: str) -> List[str]:
    """Returns the key path; a malformed key is treated as one flat name."""
    match = _KEY_PATTERN.match(raw_key)
    if not match:
        return [raw_key]
    segments = _SEGMENT_PATTERN.findall(match.group(2))
    return [match.group(1), *segments[:MAX_DEPTH]]


def _merge(existing: QueryValue, value: str) -> QueryValue:
    if isinstance(existing, list):
        return [*existing, value]
    if isinstance(existing, str):
        return [existing, value]
    # a nested map already lives here, scalar input cannot be merged into it
    return existing


def _assign(target: Dict[str, QueryValue], path: List[str], value: str) -> None:
    head, rest = path[0], path[1:]

    if not rest:
        target[head] = _merge(target[head], value) if head in target else value
        return

    # "key[]=value" appends to a list
    if rest == [""]:
        current = target.get(head)
        if current is None:
            target[head] = [value]
        elif not isinstance(current, dict):
            target[head] = _merge(current, value)
        return

    child = target.get(head)
    if child is None:
        child = {}
        target[head] = child
    if not isinstance(child, dict):
        # "a=1&a[b]=2": the scalar wins, the nested form is dropped
        return
    _assign(child, [segment or str(len(child)) for segment in rest[:1]] + rest[1:], value)


def parse_query_string(items: Iterable[Tuple[str, str]]) -> QueryMap:
    """Builds a nested query map from (key, value) pairs in their original order."""
    parsed: QueryMap = {}
    for raw_key, value in items:
        if not raw_key:
            continue
        _assign(parsed, _split_key(raw_key), value)
    return parsed


async def get_query_map(request: Request) -> QueryMap:
    """FastAPI dependency exposing the parsed query string of the current request."""
    return parse_query_string(request.query_params.multi_items())
