# SPDX-License-Identifier: LGPL-2.1-only
# Copyright (c) 2026 Akshat Kotpalliwar (alias IntegerAlex)

"""
Per-instance operation locks.

Backup, restore and delete on the same instance are serialised so two
operations never race on one backup directory. A lock only lives while
some operation holds or waits on it.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

_instance_locks: Dict[str, asyncio.Lock] = {}
_lock_users: Dict[str, int] = {}


@asynccontextmanager
async def instance_lock(instance_uuid: str) -> AsyncIterator[None]:
    """Hold the lock guarding backup operations of one instance."""
    lock = _instance_locks.get(instance_uuid)
    if lock is None:
        lock = asyncio.Lock()
        _instance_locks[instance_uuid] = lock
    _lock_users[instance_uuid] = _lock_users.get(instance_uuid, 0) + 1
    try:
        async with lock:
            yield
    finally:
        _lock_users[instance_uuid] -= 1
        if not _lock_users[instance_uuid]:
            del _lock_users[instance_uuid]
            del _instance_locks[instance_uuid]
