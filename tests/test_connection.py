"""Connection outbox and writer task."""

import asyncio

import pytest

from connection import ConnectionState


@pytest.mark.unit
class TestConnection:

    def test_initial_state(self, make_connection):
        conn = make_connection()
        assert conn.state is ConnectionState.UNJOINED
        assert conn.role is None and conn.room_id is None
        assert conn.is_open
        assert len(conn.connection_id) == 36

    def test_send_after_close_is_refused(self, make_connection, drain):
        conn = make_connection()
        conn.close()
        assert conn.send({"type": "x"}) is False
        assert drain(conn) == []

    async def test_pump_writes_in_order_then_stops(self, make_connection):
        conn = make_connection()
        conn.send({"type": "joined", "role": "homeowner", "roomId": "R1"})
        conn.send({"type": "peer-ready", "peer": "appraiser"})
        conn.close()

        await asyncio.wait_for(conn.pump(), timeout=1)

        assert conn.websocket.sent == [
            {"type": "joined", "role": "homeowner", "roomId": "R1"},
            {"type": "peer-ready", "peer": "appraiser"},
        ]

    async def test_wait_closed_flushes_queue_and_collects_writer(self, make_connection):
        conn = make_connection()
        writer = conn.start()
        conn.send({"type": "peer-left", "peer": "appraiser"})
        conn.close()

        await conn.wait_closed(timeout=1)

        assert writer.done() and not writer.cancelled()
        assert conn.websocket.sent == [{"type": "peer-left", "peer": "appraiser"}]

    async def test_wait_closed_cancels_stuck_writer(self, make_connection):
        conn = make_connection()

        async def never_returns(text):
            await asyncio.Event().wait()

        conn.websocket.send_text = never_returns
        writer = conn.start()
        conn.send({"type": "capture_request"})
        conn.close()

        await conn.wait_closed(timeout=0.05)

        assert writer.cancelled()

    async def test_wait_closed_without_writer_is_noop(self, make_connection):
        conn = make_connection()
        await conn.wait_closed(timeout=0.01)

    async def test_failed_write_marks_connection_closed(self, make_connection):
        conn = make_connection(fail=True)
        conn.send({"type": "capture_request"})

        await asyncio.wait_for(conn.pump(), timeout=1)

        assert not conn.is_open
        assert conn.send({"type": "capture_request"}) is False
