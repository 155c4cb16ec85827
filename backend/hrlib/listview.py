"""
Client-side list transformation: filter -> (group) -> sort -> paginate.

Every table screen of the console goes through the same pipeline. All
functions here are pure: they never mutate the record dicts they are given
and they never touch the Record Source.
"""
import enum
from dataclasses import dataclass, field
from datetime import date
from functools import cmp_to_key
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .pagination import clamp_page, page_count, page_strip, paginate

Record = Dict[str, Any]
GroupKey = Any
Group = Tuple[GroupKey, List[Record]]

# Resolves a record to a display string for a derived column
# (e.g. departmentId -> department name).
Lookup = Callable[[Record], str]


class SortDirection(str, enum.Enum):
    ASC = 'asc'
    DESC = 'desc'

    def flipped(self) -> 'SortDirection':
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass
class QueryState:
    """Live search / sort / page selections of one screen."""
    sort_column: str
    search_term: str = ''
    sort_direction: SortDirection = SortDirection.ASC
    current_page: int = 1

    def toggle_sort(self, column: str) -> None:
        """Same column flips the direction, a new column starts ascending."""
        if column == self.sort_column:
            self.sort_direction = self.sort_direction.flipped()
        else:
            self.sort_column = column
            self.sort_direction = SortDirection.ASC

    def set_search(self, term: str) -> None:
        if term != self.search_term:
            self.search_term = term
            self.current_page = 1

    def reset(self) -> None:
        # Called whenever the underlying collection changed (add/edit/delete).
        self.search_term = ''
        self.sort_direction = SortDirection.ASC
        self.current_page = 1

    def to_dict(self) -> dict:
        return {
            'search_term': self.search_term,
            'sort_column': self.sort_column,
            'sort_direction': self.sort_direction.value,
            'current_page': self.current_page,
        }


@dataclass
class Page:
    """One rendered page of a list view."""
    items: list
    page: int
    page_size: int
    page_count: int
    total: int
    strip: List[Optional[int]] = field(default_factory=list)
    grouped: bool = False
    loaded: bool = True

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.page_count

    @property
    def is_empty(self) -> bool:
        return self.page_count == 0

    def to_dict(self) -> dict:
        if self.grouped:
            items = [{'key': key, 'records': records} for key, records in self.items]
        else:
            items = self.items
        return {
            'items': items,
            'page': self.page,
            'page_size': self.page_size,
            'page_count': self.page_count,
            'total': self.total,
            'strip': self.strip,
            'grouped': self.grouped,
            'loaded': self.loaded,
            'has_previous': self.has_previous,
            'has_next': self.has_next,
            'is_empty': self.is_empty,
        }


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value)


# ── Filter ─────────────────────────────────────────────────────

def filter_records(
    records: Sequence[Record],
    search: str,
    fields: Sequence[str],
    lookups: Optional[Dict[str, Lookup]] = None,
) -> List[Record]:
    """Keep records where any searchable field contains the search string.

    Matching is a case-insensitive substring test. Entries of ``lookups``
    are searchable too: each one maps a record to a derived display value.
    An empty search keeps everything.
    """
    needle = (search or '').lower()
    if not needle:
        return list(records)
    lookups = lookups or {}
    result = []
    for r in records:
        values = [_text(r.get(f)) for f in fields]
        values.extend(_text(fn(r)) for fn in lookups.values())
        if any(needle in v.lower() for v in values):
            result.append(r)
    return result


# ── Grouping ───────────────────────────────────────────────────

def group_records(
    records: Sequence[Record],
    key_field: str,
    numeric: bool = False,
    default: Any = None,
) -> List[Group]:
    """Partition records by the raw value of ``key_field``.

    Keys come out most recent first: numeric descending for years,
    descending string order for ISO dates. Member order is the input order.
    """
    groups: Dict[Any, List[Record]] = {}
    for r in records:
        key = r.get(key_field)
        if not key and default is not None:
            key = default
        if numeric:
            key = int(key or 0)
        else:
            key = _text(key)
        groups.setdefault(key, []).append(r)
    return sorted(groups.items(), key=lambda kv: kv[0], reverse=True)


# ── Sort ───────────────────────────────────────────────────────

def collation_key(value: str) -> Tuple[str, str]:
    """Locale-style key: case-insensitive first, original text as tie-break."""
    return (value.casefold(), value)


def compare_values(a: Any, b: Any) -> int:
    """Ascending comparator used by every table screen.

    Two strings compare by collation key. Anything else falls back to a raw
    ``>`` test that answers -1 for every non-greater pair, equal values
    included, so the comparator is not symmetric for mixed or equal
    non-string values.
    """
    if a is None:
        a = ''
    if b is None:
        b = ''
    if isinstance(a, str) and isinstance(b, str):
        ka, kb = collation_key(a), collation_key(b)
        return (ka > kb) - (ka < kb)
    try:
        return 1 if a > b else -1
    except TypeError:
        return 1 if _text(a) > _text(b) else -1


def sort_records(
    records: Sequence[Record],
    column: str,
    direction: SortDirection = SortDirection.ASC,
    lookups: Optional[Dict[str, Lookup]] = None,
) -> List[Record]:
    """Return a new list ordered by ``column``.

    When ``column`` has an entry in ``lookups`` the derived display value is
    compared instead of the raw field (employees sort department and
    designation columns by name).
    """
    lookups = lookups or {}
    resolve = lookups.get(column)

    def value_of(r: Record) -> Any:
        if resolve is not None:
            return resolve(r)
        return r.get(column)

    def cmp(a: Record, b: Record) -> int:
        if direction is SortDirection.ASC:
            return compare_values(value_of(a), value_of(b))
        return compare_values(value_of(b), value_of(a))

    return sorted(records, key=cmp_to_key(cmp))


# ── Assembled view ─────────────────────────────────────────────

@dataclass
class ViewSpec:
    """Static configuration of one table screen."""
    name: str
    entity: str
    id_field: str
    search_fields: Tuple[str, ...]
    default_sort: str
    page_size: int = 10
    group_field: Optional[str] = None
    group_numeric: bool = False
    sortable: Tuple[str, ...] = ()

    @property
    def grouped(self) -> bool:
        return self.group_field is not None


def build_view(
    records: Optional[Sequence[Record]],
    state: QueryState,
    spec: ViewSpec,
    lookups: Optional[Dict[str, Lookup]] = None,
) -> Page:
    """Run the whole pipeline for one screen and return the requested page.

    ``records=None`` means the collection was never fetched (no credentials);
    the result is an unloaded empty page. The state's current page is
    clamped into range as a side effect, the navigation controls would do
    the same.
    """
    if records is None:
        return Page(items=[], page=1, page_size=spec.page_size, page_count=0,
                    total=0, grouped=spec.grouped, loaded=False)

    filtered = filter_records(records, state.search_term, spec.search_fields, lookups)

    if spec.grouped:
        default = date.today().year if spec.group_numeric else None
        groups = group_records(filtered, spec.group_field, spec.group_numeric, default)
        ordered = [
            (key, sort_records(members, state.sort_column, state.sort_direction, lookups))
            for key, members in groups
        ]
    else:
        ordered = sort_records(filtered, state.sort_column, state.sort_direction, lookups)

    total_pages = page_count(len(ordered), spec.page_size)
    state.current_page = clamp_page(state.current_page, total_pages)
    return Page(
        items=paginate(ordered, state.current_page, spec.page_size),
        page=state.current_page,
        page_size=spec.page_size,
        page_count=total_pages,
        total=len(ordered),
        strip=page_strip(state.current_page, total_pages),
        grouped=spec.grouped,
    )
