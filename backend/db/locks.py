"""Serialisation points for shift mutations.

Overlap and publish-lock checks are only sound when the reads they depend on
and the write that follows happen without a competing mutation in between.
Mutations hold the schedule lock and the lock of every employee they touch;
publishing holds the schedule lock only. Locks are always taken schedule
first, then employees in sorted order.

The registry lives in process memory, so it serialises requests handled by a
single worker process only. Entries are weak: a lock nobody holds or waits
for is dropped from the registry.
"""

import asyncio
import weakref
from contextlib import AsyncExitStack, asynccontextmanager

_locks: "weakref.WeakValueDictionary[tuple[str, str, str], asyncio.Lock]" = weakref.WeakValueDictionary()


def _lock_for(kind: str, tenant_id: str, key: str) -> asyncio.Lock:
    lock = _locks.get((kind, tenant_id, key))
    if lock is None:
        lock = asyncio.Lock()
        _locks[(kind, tenant_id, key)] = lock
    return lock


@asynccontextmanager
async def schedule_lock(tenant_id: str, schedule_id: str):
    lock = _lock_for("schedule", tenant_id, schedule_id)
    async with lock:
        yield


@asynccontextmanager
async def employee_lock(tenant_id: str, employee_id: str):
    lock = _lock_for("employee", tenant_id, employee_id)
    async with lock:
        yield


@asynccontextmanager
async def mutation_lock(tenant_id: str, schedule_id: str, *employee_ids: str):
    """Hold the schedule lock plus one lock per distinct employee."""
    async with AsyncExitStack() as stack:
        await stack.enter_async_context(schedule_lock(tenant_id, schedule_id))
        for employee_id in sorted(set(employee_ids)):
            await stack.enter_async_context(employee_lock(tenant_id, employee_id))
        yield


def active_locks() -> int:
    return len(_locks)


def reset_locks() -> None:
    _locks.clear()
