import asyncio

import pytest

from curation.locking import SourceLockRegistry


@pytest.mark.asyncio
async def test_same_source_is_serialised():
    registry = SourceLockRegistry()
    events = []

    async def write(name):
        async with registry.hold(1):
            events.append(f"{name}-start")
            await asyncio.sleep(0.01)
            events.append(f"{name}-end")

    await asyncio.gather(write("a"), write("b"))

    assert events == ["a-start", "a-end", "b-start", "b-end"]


@pytest.mark.asyncio
async def test_different_sources_do_not_block():
    registry = SourceLockRegistry()

    async with registry.hold(1):
        assert not registry.lock_for(2).locked()
        assert registry.lock_for(1).locked()


@pytest.mark.asyncio
async def test_discard_keeps_held_locks():
    registry = SourceLockRegistry()
    lock = registry.lock_for(1)

    async with registry.hold(1):
        registry.discard(1)
        assert registry.lock_for(1) is lock

    registry.discard(1)
    assert registry.lock_for(1) is not lock
