"""Capture storage on disk."""

import os
from datetime import datetime, timezone

import pytest

from storage import CaptureStore, capture_timestamp, is_safe_room_id


@pytest.mark.unit
class TestCaptureTimestamp:

    def test_format_has_no_colons_or_dots(self):
        now = datetime(2025, 3, 1, 10, 4, 5, 123456, tzinfo=timezone.utc)
        assert capture_timestamp(now) == "2025-03-01T10-04-05-123Z"


@pytest.mark.unit
class TestSafeRoomId:

    @pytest.mark.parametrize("room_id", ["aZ3_k9", "R1", "a-b"])
    def test_accepts_url_safe_ids(self, room_id):
        assert is_safe_room_id(room_id)

    @pytest.mark.parametrize("room_id", ["", "../etc", "a/b", "a b", "x.jpg"])
    def test_rejects_path_characters(self, room_id):
        assert not is_safe_room_id(room_id)


class TestCaptureStore:

    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "capture"
        CaptureStore(str(target))
        assert target.is_dir()

    def test_filename_for(self, tmp_path):
        store = CaptureStore(str(tmp_path))
        now = datetime(2025, 3, 1, 10, 4, 5, 0, tzinfo=timezone.utc)
        assert store.filename_for("R1", now) == "capture-R1-2025-03-01T10-04-05-000Z.jpg"

    async def test_save_writes_bytes(self, tmp_path):
        store = CaptureStore(str(tmp_path))

        stored = await store.save("R1", b"\xff\xd8jpeg")

        assert stored.filename.startswith("capture-R1-")
        assert stored.filename.endswith(".jpg")
        assert stored.url == f"/captures/{stored.filename}"
        assert os.path.dirname(stored.path) == str(tmp_path)
        with open(stored.path, "rb") as f:
            assert f.read() == b"\xff\xd8jpeg"

    async def test_save_rejects_unsafe_room_id(self, tmp_path):
        store = CaptureStore(str(tmp_path))
        with pytest.raises(ValueError):
            await store.save("../escape", b"x")
        assert os.listdir(tmp_path) == []
