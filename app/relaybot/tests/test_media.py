"""Tests for the media package -- MIME lookup and scratch storage."""

from __future__ import annotations

import os
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from app.relaybot.media.classify import EXTENSION_TO_MIME, extension_for, image_mime
from app.relaybot.media.scratch import ScratchStore


class TestImageMime:
    def test_declared_png(self) -> None:
        assert image_mime("image/png") == "image/png"

    def test_case_and_params(self) -> None:
        assert image_mime("IMAGE/JPEG; charset=binary") == "image/jpeg"

    def test_non_image_declared(self) -> None:
        assert image_mime("application/pdf", "cat.png") is None

    def test_extension_fallback(self) -> None:
        assert image_mime(None, "photo.JPG") == "image/jpeg"

    def test_unknown(self) -> None:
        assert image_mime(None, "notes.txt") is None
        assert image_mime(None, "README") is None

    def test_extension_for(self) -> None:
        assert extension_for("image/jpeg") == ".jpg"
        assert extension_for("image/webp") == ".webp"
        assert extension_for(None) == ".png"
        assert extension_for("application/octet-stream", default=".bin") == ".bin"

    def test_extension_map(self) -> None:
        assert EXTENSION_TO_MIME[".jpeg"] == "image/jpeg"


class TestScratchStore:
    def test_defaults_to_configured_dir(self, data_dir: Path) -> None:
        store = ScratchStore()
        assert store.directory == data_dir / "scratch"
        assert store.directory.is_dir()

    def test_path_names_user(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        path = store.path_for(123, "original", ".jpg")
        assert path.parent == tmp_path
        assert path.name.startswith("123-")
        assert path.name.endswith("-original.jpg")

    @pytest.mark.asyncio
    async def test_reserve_deletes_on_exit(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        async with store.reserve("u1", "output") as path:
            path.write_bytes(b"data")
            assert store.in_flight == 1
        assert not path.exists()
        assert store.in_flight == 0

    @pytest.mark.asyncio
    async def test_reserve_deletes_on_error(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        with pytest.raises(RuntimeError):
            async with store.reserve("u1", "output") as path:
                path.write_bytes(b"data")
                raise RuntimeError("boom")
        assert not path.exists()
        assert store.in_flight == 0

    @pytest.mark.asyncio
    async def test_reserve_without_file(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        async with store.reserve("u1", "output") as path:
            pass
        assert not path.exists()

    def test_sweep_removes_old_files(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        old = tmp_path / "old.png"
        new = tmp_path / "new.png"
        old.write_bytes(b"x")
        new.write_bytes(b"x")
        two_days_ago = time.time() - 2 * 86400
        os.utime(old, (two_days_ago, two_days_ago))
        assert store.sweep(86400) == 1
        assert not old.exists()
        assert new.exists()

    @pytest.mark.asyncio
    async def test_sweep_skips_reserved(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        async with store.reserve("u1", "original") as path:
            path.write_bytes(b"x")
            assert store.sweep(0, now=time.time() + 10) == 0
            assert path.exists()

    def test_sweep_ignores_directories(self, tmp_path: Path) -> None:
        store = ScratchStore(tmp_path)
        (tmp_path / "sub").mkdir()
        assert store.sweep(0, now=time.time() + 10) == 0
        assert (tmp_path / "sub").is_dir()

    def test_remove_failure_logged(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        target = tmp_path / "f.png"
        target.write_bytes(b"x")
        with patch.object(Path, "unlink", side_effect=PermissionError("denied")):
            assert ScratchStore._remove(target) is False
        assert "Failed to delete scratch file" in caplog.text
