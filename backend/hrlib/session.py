"""Operator session: remote credentials plus per-screen list state."""
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .listview import QueryState, ViewSpec
from .selection import SelectionSet


@dataclass
class ScreenState:
    query: QueryState
    selection: SelectionSet = field(default_factory=SelectionSet)


@dataclass
class ConsoleSession:
    """Everything the console knows about one logged-in operator.

    Populated at login and dropped at logout. It is passed explicitly to
    every Record Source call; ``remote_token`` is the credential sent to the
    remote API.
    """
    remote_token: Optional[str]
    user: Dict[str, Any] = field(default_factory=dict)
    expires_at: Optional[float] = None
    screens: Dict[str, ScreenState] = field(default_factory=dict)

    @property
    def has_credentials(self) -> bool:
        return bool(self.remote_token)

    @property
    def user_id(self) -> int:
        return int(self.user.get('userId') or 0)

    @property
    def username(self) -> str:
        return self.user.get('username') or '-'

    def is_expired(self, now: Optional[float] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now if now is not None else time.time()) > self.expires_at

    def screen(self, spec: ViewSpec) -> ScreenState:
        state = self.screens.get(spec.name)
        if state is None:
            state = ScreenState(query=QueryState(sort_column=spec.default_sort))
            self.screens[spec.name] = state
        return state

    def reset_screens_for(self, entity_name: str, specs) -> None:
        """Reset the query state of every screen listing ``entity_name``."""
        for spec in specs:
            if spec.entity == entity_name and spec.name in self.screens:
                self.screens[spec.name].query.reset()
