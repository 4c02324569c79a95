# app/services/multipart_reader.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import AsyncIterable, AsyncIterator, Callable, Deque, List, Mapping, Optional, Tuple, Union

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.errors import ImageSizeError, MalformedMultipartError

DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"
MAX_FIELD_BYTES = 1024 * 1024


@dataclass
class FilePart:
    name: str
    filename: str
    content_type: str
    content: bytes = b""  # empty when the part was drained, not buffered
    bytes_read: int = 0


@dataclass
class FieldPart:
    name: str
    value: str


MultipartPart = Union[FilePart, FieldPart]


def _content_type(headers: Mapping[str, str]) -> str:
    return headers.get("content-type") or headers.get("Content-Type") or ""


def is_multipart(headers: Mapping[str, str]) -> bool:
    ctype, _ = parse_options_header(_content_type(headers))
    return ctype == b"multipart/form-data"


def _decode(value: bytes, charset: str) -> str:
    try:
        return value.decode(charset)
    except (UnicodeDecodeError, LookupError):
        return value.decode("latin-1")


class MultipartStreamReader:
    """
    Incremental multipart/form-data reader.

    Request chunks go into python-multipart's push parser; parts are handed
    out as soon as they are complete, in arrival order. Only the part that is
    currently being read is held in memory.

    buffer_file(content_type) decides whether a file part's bytes are kept;
    rejected parts are drained and come out with empty content and their
    observed bytes_read.
    """

    def __init__(
        self,
        headers: Mapping[str, str],
        stream: AsyncIterable[bytes],
        *,
        buffer_file: Optional[Callable[[str], bool]] = None,
        max_file_size: Optional[int] = None,
    ):
        self.headers = headers
        self.stream = stream
        self.buffer_file = buffer_file
        self.max_file_size = max_file_size

        self._charset = "utf-8"
        self._completed: Deque[MultipartPart] = deque()
        self._reset_part()
        self._header_field = b""
        self._header_value = b""

    def _reset_part(self) -> None:
        self._part_headers: List[Tuple[bytes, bytes]] = []
        self._name = ""
        self._filename: Optional[str] = None
        self._part_type = ""
        self._keep = True
        self._buffer = bytearray()
        self._bytes_read = 0

    # ---- python-multipart callbacks ----
    def on_part_begin(self) -> None:
        self._reset_part()

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._part_headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        headers = dict(self._part_headers)
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        try:
            self._name = _decode(options[b"name"], self._charset)
        except KeyError:
            raise MalformedMultipartError('The Content-Disposition header field "name" must be provided.')

        if b"filename" in options:
            self._filename = _decode(options[b"filename"], self._charset)
            raw_type = headers.get(b"content-type", b"").decode("latin-1").strip()
            self._part_type = raw_type or DEFAULT_FILE_CONTENT_TYPE
            self._keep = self.buffer_file is None or self.buffer_file(self._part_type)

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        chunk = data[start:end]
        self._bytes_read += len(chunk)

        if self._filename is None:
            if self._bytes_read > MAX_FIELD_BYTES:
                raise MalformedMultipartError(f"Field {self._name!r} exceeds {MAX_FIELD_BYTES} bytes")
            self._buffer.extend(chunk)
            return

        if not self._keep:
            return
        if self.max_file_size is not None and self._bytes_read > self.max_file_size:
            raise ImageSizeError(self._bytes_read, 0, self.max_file_size)
        self._buffer.extend(chunk)

    def on_part_end(self) -> None:
        part: MultipartPart
        if self._filename is None:
            part = FieldPart(name=self._name, value=_decode(bytes(self._buffer), self._charset))
        else:
            part = FilePart(
                name=self._name,
                filename=self._filename,
                content_type=self._part_type,
                content=bytes(self._buffer),
                bytes_read=self._bytes_read,
            )
        self._completed.append(part)
        self._reset_part()

    # ---- driver ----
    async def parts(self) -> AsyncIterator[MultipartPart]:
        _, params = parse_options_header(_content_type(self.headers))
        charset = params.get(b"charset", b"utf-8")
        self._charset = charset.decode("latin-1") if isinstance(charset, bytes) else charset

        boundary = params.get(b"boundary")
        if not boundary:
            raise MalformedMultipartError("Missing boundary in multipart.")

        callbacks = {
            "on_part_begin": self.on_part_begin,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
        }
        parser = MultipartParser(boundary, callbacks)

        try:
            async for chunk in self.stream:
                if chunk:
                    parser.write(chunk)
                while self._completed:
                    yield self._completed.popleft()
            parser.finalize()
        except MultipartParseError as e:
            raise MalformedMultipartError(str(e)) from e

        while self._completed:
            yield self._completed.popleft()
