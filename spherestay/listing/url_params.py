"""Mirror listing state to and from URL query parameters."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Literal
from urllib.parse import parse_qsl, urlencode

logger = logging.getLogger(__name__)

ParamKind = Literal["text", "token", "int", "float", "bool", "list"]


@dataclass(frozen=True)
class Param:
    """One filter key and how it appears in the query string."""

    name: str
    query_name: str
    kind: ParamKind = "text"
    default: Any = None

    def parse(self, raw: str) -> Any:
        """Parse a raw query value, falling back to the default if malformed."""
        raw = raw.strip()
        if self.kind in ("text", "token"):
            return raw or self.default
        if self.kind == "bool":
            return raw.lower() in ("true", "1", "yes")
        if self.kind == "list":
            return [v.strip() for v in raw.split(",") if v.strip()]
        try:
            return int(raw) if self.kind == "int" else float(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed value for '{self.query_name}': {raw!r}")
            return self.default

    def render(self, value: Any) -> str:
        if self.kind == "bool":
            return "true" if value else "false"
        if self.kind == "list":
            return ",".join(value)
        if self.kind == "float" and float(value).is_integer():
            return str(int(value))
        return str(value)

    def is_default(self, value: Any) -> bool:
        if self.kind == "list":
            return not value
        if self.kind == "text":
            return (value or "") == (self.default or "")
        return value == self.default


@dataclass(frozen=True)
class ListingState:
    """Filter, sort and page state of one listing view."""

    filters: dict[str, Any] = field(default_factory=dict)
    sort: str = "featured"
    page: int = 1

    def update(self, sort: str | None = None, page: int | None = None, **filters) -> "ListingState":
        """Return a new state; any filter or sort change resets to page 1."""
        changed = bool(filters) or (sort is not None and sort != self.sort)
        new_page = page if page is not None else (1 if changed else self.page)
        return replace(
            self,
            filters={**self.filters, **filters},
            sort=sort if sort is not None else self.sort,
            page=max(1, new_page),
        )


def default_state(view) -> ListingState:
    return ListingState(
        filters={p.name: p.default for p in view.params},
        sort=view.default_sort,
        page=1,
    )


def _as_mapping(query: Mapping[str, str] | str | None) -> dict[str, str]:
    if query is None:
        return {}
    if isinstance(query, str):
        # Last occurrence wins, like URLSearchParams.set
        return dict(parse_qsl(query.lstrip("?"), keep_blank_values=True))
    return {k: v for k, v in query.items() if isinstance(v, str)}


def state_from_query(query: Mapping[str, str] | str | None, view) -> ListingState:
    """Build listing state from query parameters.

    Every parameter is optional; missing or malformed ones take the view's
    default and unknown keys are ignored.
    """
    raw = _as_mapping(query)
    state = default_state(view)
    filters = dict(state.filters)
    for param in view.params:
        if param.query_name in raw:
            filters[param.name] = param.parse(raw[param.query_name])

    sort = raw.get("sort") or view.default_sort
    if sort not in view.sort_keys:
        sort = view.default_sort

    page = 1
    if raw.get("page"):
        try:
            page = max(1, int(raw["page"]))
        except ValueError:
            logger.warning(f"Ignoring malformed page number: {raw['page']!r}")
    return ListingState(filters=filters, sort=sort, page=page)


def state_to_query(state: ListingState, view) -> dict[str, str]:
    """Render state as query parameters, omitting keys at their default."""
    query = {}
    for param in view.params:
        value = state.filters.get(param.name, param.default)
        if not param.is_default(value):
            query[param.query_name] = param.render(value)
    if state.sort != view.default_sort:
        query["sort"] = state.sort
    if state.page > 1:
        query["page"] = str(state.page)
    return query


def to_query_string(state: ListingState, view) -> str:
    return urlencode(state_to_query(state, view))
