"""List views: filtered, grouped, sorted and paginated tables per screen."""
from fastapi import APIRouter, HTTPException, Query, Depends
from pydantic import BaseModel
from typing import Optional, Union, Literal
from hrlib.listview import Page, ViewSpec, build_view
from hrlib.pagination import clamp_page, next_page, previous_page
from hrlib.screens import SCREENS, SCREEN_LOOKUP_SOURCES, build_lookups, get_screen
from hrlib.session import ConsoleSession, ScreenState
from ..dependencies import require_session, list_records

router = APIRouter()


def _screen_or_404(name: str) -> ViewSpec:
    spec = get_screen(name)
    if spec is None:
        raise HTTPException(status_code=404, detail=f"Unknown screen '{name}'")
    return spec


def render_screen(spec: ViewSpec, session: ConsoleSession) -> tuple[Page, ScreenState]:
    """Fetch the screen's collections and run the list pipeline.

    Without remote credentials nothing is fetched and an unloaded page
    comes back.
    """
    state = session.screen(spec)
    if not session.has_credentials:
        return build_view(None, state.query, spec), state
    records = list_records(spec.entity, session)
    aux = {name: list_records(name, session) for name in SCREEN_LOOKUP_SOURCES.get(spec.name, [])}
    page = build_view(records, state.query, spec, build_lookups(spec.name, aux))
    return page, state


def visible_ids(page: Page, spec: ViewSpec) -> list:
    if page.grouped:
        return [r.get(spec.id_field) for _, members in page.items for r in members]
    return [r.get(spec.id_field) for r in page.items]


def _payload(spec: ViewSpec, page: Page, state: ScreenState) -> dict:
    result = {
        "screen": spec.name,
        "query": state.query.to_dict(),
        **page.to_dict(),
    }
    if spec.name == 'employees':
        result["selection"] = state.selection.summary(visible_ids(page, spec))
    return result


@router.get("/api/views", tags=["Views"], summary="List screens")
def list_screens():
    return [
        {
            "screen": s.name,
            "entity": s.entity,
            "page_size": s.page_size,
            "grouped": s.grouped,
            "default_sort": s.default_sort,
            "sortable": list(s.sortable),
        }
        for s in SCREENS.values()
    ]


@router.get("/api/views/{screen}", tags=["Views"], summary="Render a list view",
            description="Applies the optional search/page parameters to the session's query state and returns the page.")
def get_view(
    screen: str,
    search: Optional[str] = Query(None, description="Case-insensitive substring search"),
    page: Optional[int] = Query(None, ge=1, description="1-indexed page number"),
    session: ConsoleSession = Depends(require_session),
):
    spec = _screen_or_404(screen)
    state = session.screen(spec)
    if search is not None:
        state.query.set_search(search)
    if page is not None:
        state.query.current_page = page
    rendered, state = render_screen(spec, session)
    return _payload(spec, rendered, state)


class SortBody(BaseModel):
    column: str


@router.post("/api/views/{screen}/sort", tags=["Views"], summary="Toggle sort column",
             description="Same column flips the direction; a new column sorts ascending.")
def toggle_sort(screen: str, body: SortBody, session: ConsoleSession = Depends(require_session)):
    spec = _screen_or_404(screen)
    if spec.sortable and body.column not in spec.sortable:
        raise HTTPException(status_code=400, detail=f"Column '{body.column}' is not sortable")
    session.screen(spec).query.toggle_sort(body.column)
    rendered, state = render_screen(spec, session)
    return _payload(spec, rendered, state)


class PageBody(BaseModel):
    to: Union[Literal['next', 'previous', 'first', 'last'], int]


@router.post("/api/views/{screen}/page", tags=["Views"], summary="Navigate pages")
def navigate(screen: str, body: PageBody, session: ConsoleSession = Depends(require_session)):
    spec = _screen_or_404(screen)
    # Render first so the target is clamped against the current page count
    rendered, state = render_screen(spec, session)
    current, total = rendered.page, rendered.page_count
    if body.to == 'next':
        target = next_page(current, total)
    elif body.to == 'previous':
        target = previous_page(current, total)
    elif body.to == 'first':
        target = 1
    elif body.to == 'last':
        target = clamp_page(total, total)
    else:
        target = clamp_page(body.to, total)
    state.query.current_page = target
    rendered, state = render_screen(spec, session)
    return _payload(spec, rendered, state)


@router.post("/api/views/{screen}/reset", tags=["Views"], summary="Reset search, direction and page")
def reset_view(screen: str, session: ConsoleSession = Depends(require_session)):
    spec = _screen_or_404(screen)
    session.screen(spec).query.reset()
    rendered, state = render_screen(spec, session)
    return _payload(spec, rendered, state)
