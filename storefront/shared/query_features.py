# storefront/shared/query_features.py

# Translates user supplied query-string values into MongoDB filter, projection,
# sort and population directives, driven by a per-resource configuration.
# Malformed input never fails the request, it just has no effect on that axis.

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .query_string import QueryMap

ASCENDING = 1
DESCENDING = -1


# --- Per-resource configuration ---

class _FeatureOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str


class SearchOption(_FeatureOption):
    fields: List[str] = Field(default_factory=list)


class SortOption(_FeatureOption):
    pass


class ProjectionOption(_FeatureOption):
    exclude: List[str] = Field(default_factory=list)


class PopulateOption(_FeatureOption):
    exclude: List[str] = Field(default_factory=list)
    ignore_invalid: bool = False


class QueryFeatureConfig(BaseModel):
    """
    Which query-string keys drive each feature, e.g.

        QueryFeatureConfig(
            search=SearchOption(key="keyword", fields=["title", "description"]),
            sort=SortOption(key="sort"),
            projection=ProjectionOption(key="select"),
            populate=PopulateOption(key="populate", ignore_invalid=True),
        )
    """

    model_config = ConfigDict(frozen=True)

    search: Optional[SearchOption] = None
    sort: Optional[SortOption] = None
    projection: Optional[ProjectionOption] = None
    populate: Optional[PopulateOption] = None


# --- Parse results ---

class PopulateDirective(BaseModel):
    path: str
    select: str = "" # space separated field list, "" means every field


class SearchResult(BaseModel):
    keyword: str = ""
    fields: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def query(self) -> Dict[str, Any]:
        return {"$or": self.fields} if self.fields else {}


class SortResult(BaseModel):
    by: Dict[str, int] = Field(default_factory=dict)

    @property
    def fields(self) -> List[str]:
        return list(self.by)


class SelectResult(BaseModel):
    projection: Dict[str, bool] = Field(default_factory=dict)

    @property
    def fields(self) -> List[str]:
        return list(self.projection)


class PopulateResult(BaseModel):
    populate: List[PopulateDirective] = Field(default_factory=list)

    @property
    def fields(self) -> List[str]:
        return [directive.path for directive in self.populate]


class ParsedQuery(BaseModel):
    search: Optional[SearchResult] = None
    sort: Optional[SortResult] = None
    select: Optional[SelectResult] = None
    populate: Optional[PopulateResult] = None


def _is_numeric(name: str) -> bool:
    try:
        float(name)
    except ValueError:
        return False
    return True


class ApiQueryFeatures:
    """Parses `query` against `config` once, on construction."""

    def __init__(self, config: QueryFeatureConfig, query: Optional[QueryMap] = None):
        self.config = config
        self.query: QueryMap = query or {}

        self.filter: Dict[str, Any] = {}
        self.projection: Dict[str, bool] = {}
        self.sort: Dict[str, int] = {}
        self.populate: List[PopulateDirective] = []
        self.parsed = ParsedQuery()

        if config.search:
            result = self.parse_search(config.search, self.query)
            self.parsed.search = result
            self.filter.update(result.query)

        if config.sort:
            result = self.parse_sort(config.sort, self.query)
            self.parsed.sort = result
            self.sort = result.by

        if config.projection:
            result = self.parse_select(config.projection, self.query)
            self.parsed.select = result
            self.projection.update(result.projection)

        if config.populate:
            result = self.parse_populate(config.populate, self.query)
            self.parsed.populate = result
            self.populate = result.populate

    @property
    def query_options(self) -> Dict[str, Any]:
        return {"sort": self.sort, "populate": self.populate}

    @staticmethod
    def parse_search(option: SearchOption, query: QueryMap) -> SearchResult:
        keyword = query.get(option.key)
        if not isinstance(keyword, str) or not keyword:
            return SearchResult()

        pattern = re.escape(keyword)
        fields = [{field: {"$regex": pattern, "$options": "i"}} for field in option.fields]
        return SearchResult(keyword=keyword, fields=fields)

    @staticmethod
    def parse_sort(option: SortOption, query: QueryMap) -> SortResult:
        raw = query.get(option.key)
        result = SortResult()
        if not isinstance(raw, dict):
            return result

        for field_name, order in raw.items():
            # numeric keys come from array-like encodings such as sort[0]=x
            if _is_numeric(field_name):
                continue
            result.by[field_name] = ASCENDING if order in ("1", "asc") else DESCENDING
        return result

    @staticmethod
    def parse_select(option: ProjectionOption, query: QueryMap) -> SelectResult:
        raw = query.get(option.key)
        result = SelectResult()

        if isinstance(raw, str):
            requested = [raw]
        elif isinstance(raw, list):
            requested = raw
        else:
            return result

        for field in option.exclude:
            result.projection[field] = False

        for token in requested:
            if not isinstance(token, str) or not token or token in option.exclude:
                continue

            if token.startswith("-"):
                name, selected = token[1:], False
            else:
                name, selected = token, True

            if not name or name in option.exclude:
                continue
            result.projection[name] = selected

        return result

    @staticmethod
    def parse_populate(option: PopulateOption, query: QueryMap) -> PopulateResult:
        raw = query.get(option.key)
        result = PopulateResult()
        if not isinstance(raw, dict):
            return result

        for path, selection in raw.items():
            if selection in ("*", ""):
                fields = [""]
            elif isinstance(selection, str):
                fields = [selection]
            elif isinstance(selection, list):
                fields = [field for field in selection if isinstance(field, str)]
            else:
                if option.ignore_invalid:
                    return PopulateResult()
                fields = []

            if path in option.exclude:
                continue

            result.populate.append(PopulateDirective(path=path, select=" ".join(fields).strip()))

        return result
