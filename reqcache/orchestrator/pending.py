"""Bookkeeping of in-flight driver calls per dedup key."""

import asyncio
from typing import Dict, Iterable, List, Optional


class CallHandle:
    """One in-flight driver call.

    Cancelling is fire-and-forget: the underlying task is asked to stop and the
    handle remembers it was cancelled, so a call that settles anyway is still
    treated as aborted.
    """

    def __init__(self, task: asyncio.Future, cancellable: bool = True):
        self.task = task
        self.cancellable = cancellable
        self.cancelled = False

    def cancel(self) -> None:
        if not self.cancellable:
            return
        self.cancelled = True
        self.task.cancel()

    def done(self) -> bool:
        return self.task.done()

    def __repr__(self) -> str:
        return f'CallHandle(done={self.done()}, cancelled={self.cancelled})'


class CallGroup:
    """The calls of one request action.

    A group is registered as soon as the action is dispatched, possibly before
    its calls are issued. Handles added after the group was cancelled are
    cancelled on arrival.
    """

    def __init__(self):
        self.handles: List[CallHandle] = []
        self.cancelled = False

    def add(self, handle: CallHandle) -> None:
        self.handles.append(handle)
        if self.cancelled:
            handle.cancel()

    def cancel(self) -> None:
        self.cancelled = True
        for handle in self.handles:
            handle.cancel()

    def __repr__(self) -> str:
        return f'CallGroup(calls={len(self.handles)}, cancelled={self.cancelled})'


class PendingCallRegistry:
    """Maps dedup keys to the call group of their latest request.

    An entry is replaced when a new request is dispatched for its key and removed
    once that request settles. Entries are only mutated synchronously.
    """

    def __init__(self):
        self._entries: Dict[str, CallGroup] = {}

    def register(self, key: str, group: CallGroup) -> None:
        self._entries[key] = group

    def release(self, key: str, group: CallGroup) -> None:
        """Drop the entry for ``key`` if it still belongs to ``group``."""
        if self._entries.get(key) is group:
            del self._entries[key]

    def get(self, key: str) -> Optional[CallGroup]:
        return self._entries.get(key)

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def cancel(self, key: str) -> int:
        """Cancel the group under ``key``; returns how many requests were cancelled."""
        group = self._entries.get(key)
        if group is None:
            return 0
        group.cancel()
        return 1

    def cancel_keys(self, keys: Iterable[str]) -> int:
        wanted = set(keys)
        return sum(self.cancel(key) for key in self.keys() if key in wanted)

    def cancel_all(self) -> int:
        return sum(self.cancel(key) for key in self.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)
