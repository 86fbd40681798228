"""Presence tracking: occupancy and last-occupant teardown.

Demonstrates how occupancy follows presence syncs. Shows:
- Three sessions registering presence in the same room
- Occupancy dropping as sessions leave
- The last occupant leaving destroys the room

Run with:
    uv run python examples/presence_tracking.py
"""

from __future__ import annotations

import asyncio

from roomrelay import RelayEvent, RelayEventType, RoomRelay


async def main() -> None:
    relay = RoomRelay()
    code = relay.new_room_code()

    async def on_event(event: RelayEvent) -> None:
        if event.type == RelayEventType.PRESENCE_SYNC:
            print(f"  sync: {len(event.presences)} present")

    watcher = relay.join(code)
    watcher.on_event(on_event)
    await watcher.open()

    guests = [await relay.connect(code) for _ in range(2)]
    await asyncio.sleep(0.05)
    print(f"Occupancy: {watcher.occupancy}")

    await watcher.send("who's here?")

    print("\nGuests leave:")
    for guest in guests:
        await guest.leave()
        await asyncio.sleep(0.05)
        print(f"Occupancy: {watcher.occupancy}")

    print("\nLast occupant leaves:")
    destroyed = await watcher.leave()
    print(f"Room destroyed: {destroyed}")
    print(f"Messages left: {len(await relay.read_active(code))}")

    await relay.close()


if __name__ == "__main__":
    asyncio.run(main())
