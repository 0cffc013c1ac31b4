#!/usr/bin/env python3
"""Tests for copying items to and capturing items from the clipboard."""
import io
import subprocess
from unittest.mock import AsyncMock, patch

import pytest
from PIL import Image

from clipshelf.clipboard_copy import capture_clipboard, copy_item
from clipshelf.clipboard_port import ClipboardImage, ClipboardText, SystemClipboardPort
from clipshelf.items import HydratedImage, ImageItem, TextItem
from clipshelf.view_model import ListViewModel


@pytest.fixture
def port() -> AsyncMock:
    """Create a mock ClipboardPort that accepts every write."""
    port = AsyncMock()
    port.write_text.return_value = True
    port.write_image.return_value = True
    return port


def _image(payload: bytes | None, mime_type: str = "image/png") -> HydratedImage:
    item = ImageItem(
        id="img", encoded_payload="", mime_type=mime_type,
        created_at=0, updated_at=0,
    )
    return HydratedImage(item=item, payload=payload)


@pytest.mark.asyncio
async def test_copy_text_item(port: AsyncMock) -> None:
    """Test text items are written as text."""
    item = TextItem(id="t", content="hello", created_at=0, updated_at=0)
    assert await copy_item(port, item) is True
    port.write_text.assert_awaited_once_with("hello")


@pytest.mark.asyncio
async def test_copy_png_image(port: AsyncMock, png_bytes: bytes) -> None:
    """Test PNG payloads are written unchanged."""
    assert await copy_item(port, _image(png_bytes)) is True
    port.write_image.assert_awaited_once_with(png_bytes)


@pytest.mark.asyncio
async def test_copy_legacy_jpeg_is_converted(port: AsyncMock, jpeg_bytes: bytes) -> None:
    """Test a non-PNG stored image goes out as PNG."""
    assert await copy_item(port, _image(jpeg_bytes, "image/jpeg")) is True
    (written,), _ = port.write_image.await_args
    with Image.open(io.BytesIO(written)) as image:
        assert image.format == "PNG"


@pytest.mark.asyncio
async def test_copy_unhydrated_image_fails(port: AsyncMock) -> None:
    """Test an image without a decoded payload cannot be copied."""
    assert await copy_item(port, _image(None)) is False
    port.write_image.assert_not_called()


@pytest.mark.asyncio
async def test_copy_reports_port_failure(port: AsyncMock) -> None:
    """Test a refused write is reported as False."""
    port.write_text.return_value = False
    item = TextItem(id="t", content="x", created_at=0, updated_at=0)
    assert await copy_item(port, item) is False


@pytest.mark.asyncio
async def test_capture_text(port: AsyncMock, view_model: ListViewModel) -> None:
    """Test captured text is added to the history."""
    port.read_clipboard.return_value = ClipboardText("copied")
    item = await capture_clipboard(port, view_model)
    assert item.content == "copied"
    assert view_model.items[0].id == item.id


@pytest.mark.asyncio
async def test_capture_image(port: AsyncMock, view_model: ListViewModel, jpeg_bytes: bytes) -> None:
    """Test captured images are added as PNG."""
    port.read_clipboard.return_value = ClipboardImage(jpeg_bytes, "image/jpeg")
    item = await capture_clipboard(port, view_model)
    assert item.mime_type == "image/png"


@pytest.mark.asyncio
async def test_capture_empty_clipboard(port: AsyncMock, view_model: ListViewModel) -> None:
    """Test an empty clipboard adds nothing."""
    port.read_clipboard.return_value = None
    assert await capture_clipboard(port, view_model) is None
    assert view_model.items == []


@pytest.fixture
def no_image():
    """Patch ImageGrab so the clipboard holds no image."""
    with patch("clipshelf.clipboard_port.ImageGrab.grabclipboard", return_value=None) as grab:
        yield grab


@pytest.mark.asyncio
async def test_system_port_reports_text_failures(no_image) -> None:
    """Test pyperclip errors become failure results, not exceptions."""
    import pyperclip

    port = SystemClipboardPort()
    with patch("clipshelf.clipboard_port.pyperclip.paste", side_effect=pyperclip.PyperclipException("no xclip")), \
        patch("clipshelf.clipboard_port.pyperclip.copy", side_effect=pyperclip.PyperclipException("no xclip")):
        assert await port.read_clipboard() is None
        assert await port.write_text("x") is False


@pytest.mark.asyncio
async def test_system_port_reads_text(no_image) -> None:
    """Test clipboard text is wrapped as ClipboardText."""
    port = SystemClipboardPort()
    with patch("clipshelf.clipboard_port.pyperclip.paste", return_value="abc"):
        assert await port.read_clipboard() == ClipboardText("abc")
    with patch("clipshelf.clipboard_port.pyperclip.paste", return_value=""):
        assert await port.read_clipboard() is None


@pytest.mark.asyncio
async def test_system_port_prefers_image() -> None:
    """Test a clipboard image is returned as PNG ahead of any text."""
    image = Image.new("RGB", (3, 2), (0, 0, 255))
    with patch("clipshelf.clipboard_port.ImageGrab.grabclipboard", return_value=image), \
        patch("clipshelf.clipboard_port.pyperclip.paste", return_value="text too") as paste:
        content = await SystemClipboardPort().read_clipboard()
    assert isinstance(content, ClipboardImage)
    assert content.mime_type == "image/png"
    with Image.open(io.BytesIO(content.payload)) as decoded:
        assert decoded.format == "PNG"
        assert decoded.size == (3, 2)
    paste.assert_not_called()


@pytest.mark.asyncio
@pytest.mark.parametrize("grabbed", [["/tmp/a.txt"], NotImplementedError("xclip is required"), OSError("no display")])
async def test_system_port_falls_back_to_text(grabbed) -> None:
    """Test copied files and unavailable image access fall back to text."""
    kwargs = {"side_effect": grabbed} if isinstance(grabbed, Exception) else {"return_value": grabbed}
    with patch("clipshelf.clipboard_port.ImageGrab.grabclipboard", **kwargs), \
        patch("clipshelf.clipboard_port.pyperclip.paste", return_value="plain"):
        assert await SystemClipboardPort().read_clipboard() == ClipboardText("plain")


@pytest.mark.asyncio
async def test_system_port_writes_image_with_wl_copy() -> None:
    """Test PNG bytes are piped to wl-copy when it is installed."""
    with patch("clipshelf.clipboard_port.shutil.which", side_effect=lambda name: "/usr/bin/wl-copy" if name == "wl-copy" else None), \
        patch("clipshelf.clipboard_port.subprocess.run") as run:
        assert await SystemClipboardPort().write_image(b"png") is True
    args, kwargs = run.call_args
    assert args[0] == ["wl-copy", "--type", "image/png"]
    assert kwargs["input"] == b"png"


@pytest.mark.asyncio
async def test_system_port_writes_image_with_xclip() -> None:
    """Test xclip is used on X11 sessions without wl-copy."""
    with patch("clipshelf.clipboard_port.shutil.which", side_effect=lambda name: "/usr/bin/xclip" if name == "xclip" else None), \
        patch("clipshelf.clipboard_port.subprocess.run") as run:
        assert await SystemClipboardPort().write_image(b"png") is True
    assert run.call_args.args[0] == ["xclip", "-selection", "clipboard", "-t", "image/png"]


@pytest.mark.asyncio
async def test_system_port_image_write_failures() -> None:
    """Test a missing tool or a failing command reports False."""
    port = SystemClipboardPort()
    with patch("clipshelf.clipboard_port.shutil.which", return_value=None):
        assert await port.write_image(b"png") is False
    with patch("clipshelf.clipboard_port.shutil.which", return_value="/usr/bin/wl-copy"), \
        patch("clipshelf.clipboard_port.subprocess.run", side_effect=subprocess.CalledProcessError(1, "wl-copy")):
        assert await port.write_image(b"png") is False
