import asyncio
from unittest.mock import AsyncMock, MagicMock
from starlette.websockets import WebSocketState
from connections import SUPERSEDED_CLOSE_CODE, ConnectionRegistry


def fake_socket():
    websocket = MagicMock()
    websocket.application_state = WebSocketState.CONNECTED
    websocket.close = AsyncMock()
    return websocket


def test_second_registration_replaces_first():
    registry = ConnectionRegistry()
    first, second = fake_socket(), fake_socket()

    asyncio.run(registry.register(1, first))
    asyncio.run(registry.register(1, second))

    assert registry.get(1) is second
    assert len(registry) == 1
    first.close.assert_awaited_once_with(code=SUPERSEDED_CLOSE_CODE)
    assert not second.close.called


def test_registering_same_socket_twice_keeps_it_open():
    registry = ConnectionRegistry()
    websocket = fake_socket()

    asyncio.run(registry.register(1, websocket))
    asyncio.run(registry.register(1, websocket))

    assert registry.get(1) is websocket
    assert not websocket.close.called


def test_users_are_kept_apart():
    registry = ConnectionRegistry()
    a, b = fake_socket(), fake_socket()

    asyncio.run(registry.register(1, a))
    asyncio.run(registry.register(2, b))

    assert registry.get(1) is a
    assert registry.get(2) is b
    assert registry.get(3) is None


def test_superseded_socket_cannot_unregister_replacement():
    registry = ConnectionRegistry()
    first, second = fake_socket(), fake_socket()
    asyncio.run(registry.register(1, first))
    asyncio.run(registry.register(1, second))

    registry.unregister(1, first)

    assert registry.get(1) is second


def test_unregister_current_socket():
    registry = ConnectionRegistry()
    websocket = fake_socket()
    asyncio.run(registry.register(1, websocket))

    registry.unregister(1, websocket)
    registry.unregister(1)

    assert registry.get(1) is None
    assert len(registry) == 0


def test_already_closed_socket_is_not_closed_again():
    registry = ConnectionRegistry()
    first, second = fake_socket(), fake_socket()
    first.application_state = WebSocketState.DISCONNECTED

    asyncio.run(registry.register(1, first))
    asyncio.run(registry.register(1, second))

    assert not first.close.called
    assert registry.get(1) is second


def test_close_race_is_tolerated():
    registry = ConnectionRegistry()
    first, second = fake_socket(), fake_socket()
    first.close.side_effect = RuntimeError("Cannot call 'send' once a close message has been sent.")

    asyncio.run(registry.register(1, first))
    asyncio.run(registry.register(1, second))

    assert registry.get(1) is second


def test_replacement_is_stored_before_old_socket_closes():
    registry = ConnectionRegistry()
    first, second = fake_socket(), fake_socket()
    seen_during_close = []
    first.close.side_effect = lambda code: seen_during_close.append(registry.get(1))
    asyncio.run(registry.register(1, first))

    asyncio.run(registry.register(1, second))

    assert seen_during_close == [second]
    assert registry.get(1) is second


def test_overlapping_registrations_keep_latest_socket():
    registry = ConnectionRegistry()
    first, second, third = fake_socket(), fake_socket(), fake_socket()
    asyncio.run(registry.register(1, first))

    async def register_both():
        await asyncio.gather(registry.register(1, second), registry.register(1, third))

    asyncio.run(register_both())

    assert registry.get(1) is third
    assert not third.close.called
    assert len(registry) == 1
