"""Shared test fixtures."""

from __future__ import annotations

import io
import json
from typing import Callable, Optional

import httpx
import pytest
from PIL import Image

from adpiler_sync.assets.models import Attachment


def make_image(width: int, height: int, fmt: str = "PNG") -> bytes:
    """Return real encoded image bytes of the given size."""
    buf = io.BytesIO()
    mode = "P" if fmt.upper() == "GIF" else "RGB"
    Image.new(mode, (width, height)).save(buf, format=fmt)
    return buf.getvalue()


def make_attachment(
    name: str,
    mime_type: str = "",
    *,
    att_id: Optional[str] = None,
    is_upload: bool = True,
) -> Attachment:
    return Attachment(
        id=att_id or name,
        name=name,
        mimeType=mime_type,
        url=f"https://trello.example/{name}",
        isUpload=is_upload,
    )


class FakeDownloader:
    """Serves bytes by attachment id; ids in ``fail`` raise."""

    def __init__(self, files: dict[str, bytes], fail: tuple[str, ...] = ()) -> None:
        self.files = files
        self.fail = set(fail)
        self.calls: list[str] = []

    def __call__(self, att: Attachment) -> bytes:
        self.calls.append(att.id)
        if att.id in self.fail:
            raise IOError(f"download of {att.id} failed")
        return self.files[att.id]


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


class FakePlatform:
    """
    httpx transport standing in for the AdPiler API.

    ``responses`` maps ``"METHOD /path"`` to a list of ``(status, body)``
    consumed in order; the last entry repeats once the list runs dry.
    """

    def __init__(self, responses: dict[str, list[tuple[int, object]]]) -> None:
        self.responses = {k: list(v) for k, v in responses.items()}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = f"{request.method} {request.url.path}"
        queue = self.responses.get(key)
        if not queue:
            return httpx.Response(404, text=f"no route {key}")
        status, body = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(body, Exception):
            raise body
        if isinstance(body, (dict, list)):
            return httpx.Response(status, content=json.dumps(body).encode(),
                                  headers={"Content-Type": "application/json"})
        return httpx.Response(status, text=str(body))

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def paths(self, method: str = "POST") -> list[str]:
        return [r.url.path for r in self.requests if r.method == method]


def form_field(request: httpx.Request, name: str) -> Optional[str]:
    """Pull a plain field value out of a multipart request body."""
    body = request.content.decode("latin-1")
    marker = f'name="{name}"\r\n\r\n'
    start = body.find(marker)
    if start < 0:
        return None
    start += len(marker)
    return body[start:body.find("\r\n", start)]


def uploaded_filename(request: httpx.Request) -> Optional[str]:
    body = request.content.decode("latin-1")
    marker = 'name="file"; filename="'
    start = body.find(marker)
    if start < 0:
        return None
    start += len(marker)
    return body[start:body.find('"', start)]


@pytest.fixture
def image_bytes() -> Callable[..., bytes]:
    return make_image


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()
