"""Room lifecycle: create, join, share, send, destroy.

Demonstrates the full life of a code-addressed room. Shows:
- Generating a room code and its share link
- Joining by bare code and by share link
- Sending text, links and files; own messages are marked as "mine"
- Explicit destroy reaching every participant

Run with:
    uv run python examples/room_lifecycle.py
"""

from __future__ import annotations

import asyncio

from roomrelay import RelayConfig, RoomRelay, RoomSession, board_layout, share_text


async def main() -> None:
    relay = RoomRelay(config=RelayConfig(share_base_url="https://relay.example"))

    code = relay.new_room_code()
    link = relay.share_url(code)
    print(f"Room {code} -> {link}")
    print(f"Invite: {share_text(code)}")

    alice = await relay.connect(code)
    bob = await relay.connect(f"{link}/")

    async def on_destroyed(session: RoomSession) -> None:
        print(f"  [{session.presence.id}] room {session.room_code} was closed by someone else")

    bob.on_destroyed(on_destroyed)

    # --- Send a few messages ---
    await alice.send("Hello Bob!")
    await alice.send("https://example.com/docs")
    await bob.send_file("notes.txt", b"line one\nline two\n", "text/plain")
    await asyncio.sleep(0.05)

    print("\nAlice's board:")
    for message in board_layout(alice.messages):
        print(f"  ({message.sender}) [{message.type}] {message.parsed!r}")

    # --- Export a file message ---
    name, data = bob.messages[0].export()
    print(f"\nExported {name} ({len(data)} bytes)")

    # --- Destroy the room ---
    await alice.destroy()
    await asyncio.sleep(0.05)
    print(f"\nAlice: {alice.state}, Bob: {bob.state}")
    print(f"Messages left: {len(await relay.read_active(code))}")

    await relay.close()


if __name__ == "__main__":
    asyncio.run(main())
