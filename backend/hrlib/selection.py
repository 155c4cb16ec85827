"""Cross-page checkbox selection for the employees screen."""
from typing import Iterable, List, Optional, Set


class SelectionSet:
    """Ids checked by the operator, kept across page navigation.

    The header checkbox state (all / indeterminate) is always computed over
    the ids visible on the current page only.
    """

    def __init__(self, ids: Optional[Iterable[int]] = None):
        self._ids: Set[int] = set(ids or ())

    def __contains__(self, record_id: int) -> bool:
        return record_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    @property
    def ids(self) -> List[int]:
        return sorted(self._ids)

    def toggle(self, record_id: int, checked: Optional[bool] = None) -> bool:
        """Flip (or set) one id. Returns whether it is selected afterwards."""
        if checked is None:
            checked = record_id not in self._ids
        if checked:
            self._ids.add(record_id)
        else:
            self._ids.discard(record_id)
        return checked

    def select_all(self, checked: bool, visible_ids: Iterable[int]) -> None:
        visible = {i for i in visible_ids if i is not None}
        if checked:
            self._ids |= visible
        else:
            self._ids -= visible

    def is_all_selected(self, visible_ids: Iterable[int]) -> bool:
        visible = [i for i in visible_ids if i is not None]
        return bool(visible) and all(i in self._ids for i in visible)

    def is_indeterminate(self, visible_ids: Iterable[int]) -> bool:
        visible = [i for i in visible_ids if i is not None]
        count = sum(1 for i in visible if i in self._ids)
        return 0 < count < len(visible)

    def prune(self, present_ids: Iterable[int]) -> int:
        """Drop ids no longer present in the source. Returns count removed."""
        present = set(present_ids)
        orphaned = self._ids - present
        self._ids -= orphaned
        return len(orphaned)

    def discard(self, record_id: int) -> None:
        self._ids.discard(record_id)

    def clear(self) -> None:
        self._ids.clear()

    def summary(self, visible_ids: Iterable[int]) -> dict:
        visible = list(visible_ids)
        return {
            'selected': self.ids,
            'count': len(self._ids),
            'is_all_selected': self.is_all_selected(visible),
            'is_indeterminate': self.is_indeterminate(visible),
        }
