"""
Incremental decoder for the assistant's line-oriented event stream.

Each meaningful line looks like ``data: {json}``; the content delta lives at
``choices[0].delta.content``. ``data: [DONE]`` ends the stream, lines starting
with ``:`` are comments, blank lines are ignored.
"""

import codecs
import json
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data: "
COMMENT_PREFIX = ":"
DONE_SENTINEL = "[DONE]"


def _content_delta(payload) -> Optional[str]:
    try:
        content = payload["choices"][0]["delta"]["content"]
    except (KeyError, IndexError, TypeError):
        return None
    return content if isinstance(content, str) and content else None


class StreamFrameDecoder:
    """Turns arbitrarily chunked bytes into ordered content deltas.

    The text buffer is the only state kept between chunks. A line whose JSON
    payload does not parse is treated as truncated: it is pushed back in front
    of the buffer and decoding waits for the next chunk.
    """

    def __init__(self, encoding: str = "utf-8"):
        self._decoder = codecs.getincrementaldecoder(encoding)("replace")
        self._buffer = ""
        self.finished = False

    @property
    def pending(self) -> str:
        """Buffered text not yet turned into deltas."""
        return self._buffer

    def feed(self, chunk: bytes) -> List[str]:
        """Append a chunk and return the deltas of every complete frame now available."""
        if self.finished:
            return []

        self._buffer += self._decoder.decode(chunk)
        deltas: List[str] = []

        while True:
            newline_index = self._buffer.find("\n")
            if newline_index == -1:
                break

            line = self._buffer[:newline_index]
            self._buffer = self._buffer[newline_index + 1:]

            if line.endswith("\r"):
                line = line[:-1]
            if line.startswith(COMMENT_PREFIX) or line.strip() == "":
                continue
            if not line.startswith(DATA_PREFIX):
                continue

            payload_text = line[len(DATA_PREFIX):].strip()
            if payload_text == DONE_SENTINEL:
                self.finished = True
                self._buffer = ""
                break

            try:
                payload = json.loads(payload_text)
            except json.JSONDecodeError:
                self._buffer = line + "\n" + self._buffer
                break

            content = _content_delta(payload)
            if content:
                deltas.append(content)

        return deltas

    def close(self) -> int:
        """Discard whatever is still buffered; returns the number of dropped characters."""
        dropped = len(self._buffer) + len(self._decoder.decode(b"", final=True))
        if dropped:
            logger.debug(f"Discarding {dropped} undelivered characters at end of stream")
        self._buffer = ""
        self._decoder.reset()
        self.finished = True
        return dropped


def iter_deltas(chunks: Iterable[bytes]) -> Iterator[str]:
    """Yield deltas from a chunk source in arrival order.

    Closing the generator early drops any partial line still buffered.
    """
    decoder = StreamFrameDecoder()
    try:
        for chunk in chunks:
            for delta in decoder.feed(chunk):
                yield delta
            if decoder.finished:
                break
    finally:
        decoder.close()


async def aiter_deltas(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Async counterpart of :func:`iter_deltas`."""
    decoder = StreamFrameDecoder()
    try:
        async for chunk in chunks:
            for delta in decoder.feed(chunk):
                yield delta
            if decoder.finished:
                break
    finally:
        decoder.close()
