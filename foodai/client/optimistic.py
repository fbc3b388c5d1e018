"""Optimistic list state with rollback"""

import copy
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

T = TypeVar("T")

Item = Dict[str, Any]


class OptimisticList:
    """
    A list shown before the server agrees with it.

    apply() shows the tentative state at once. On success the mutation is
    replayed onto the current known-good snapshot, which a replace() may have
    refreshed while the request was in flight, and the server's answer is
    reconciled into it. On failure the snapshot is put back and the error
    re-raised.
    """

    def __init__(self, items: Optional[List[Item]] = None, key: str = "id"):
        self.key = key
        self._committed: List[Item] = copy.deepcopy(items or [])
        self._items: List[Item] = copy.deepcopy(self._committed)

    @property
    def items(self) -> List[Item]:
        return self._items

    @property
    def snapshot(self) -> List[Item]:
        return self._committed

    def get(self, item_id: Any) -> Optional[Item]:
        item_id = str(item_id)
        return next((item for item in self._items if str(item[self.key]) == item_id), None)

    def replace(self, items: List[Item]) -> None:
        """Server state arrived; it becomes both shown and known-good"""
        self._committed = copy.deepcopy(items)
        self._items = copy.deepcopy(items)

    async def apply(
        self,
        mutate: Callable[[List[Item]], List[Item]],
        action: Callable[[], Awaitable[T]],
        reconcile: Optional[Callable[[List[Item], T], List[Item]]] = None,
    ) -> T:
        self._items = mutate(copy.deepcopy(self._committed))
        try:
            result = await action()
        except Exception:
            self._items = copy.deepcopy(self._committed)
            raise

        committed = mutate(copy.deepcopy(self._committed))
        if reconcile is not None:
            committed = reconcile(committed, result)
        self._committed = committed
        self._items = copy.deepcopy(committed)
        return result

    async def patch(self, item_id: Any, changes: Item, action: Callable[[], Awaitable[T]]) -> T:
        """apply() for a field update on one item; a returned row wins over the guess"""
        item_id = str(item_id)

        def merge(items: List[Item], fields: Item) -> List[Item]:
            return [
                {**item, **fields} if str(item[self.key]) == item_id else item
                for item in items
            ]

        def reconcile(items: List[Item], result: Any) -> List[Item]:
            if isinstance(result, dict) and str(result.get(self.key)) == item_id:
                return merge(items, result)
            return items

        return await self.apply(lambda items: merge(items, changes), action, reconcile)
