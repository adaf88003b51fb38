"""Chunked transfer of raw state bytes between host and state store."""

from __future__ import annotations

from typing import Iterable, Iterator

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

from provider_wire.diagnostics import Diagnostic, error_diagnostic
from provider_wire.events import StopSignal

DEFAULT_CHUNK_SIZE = 8 << 20


class StateByteRange(BaseModel):
    """Half-open byte range ``[start, end)`` of a chunk within the whole."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    start: int = Field(default=0, ge=0)
    end: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _ordered(self) -> StateByteRange:
        if self.end < self.start:
            raise ValueError(f"range end {self.end} is before start {self.start}")
        return self


class StateByteChunk(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    data: bytes = b""
    total_length: int = Field(default=0, ge=0)
    range: StateByteRange | None = None


def chunk_state_bytes(
    data: bytes,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    stop: StopSignal | None = None,
) -> Iterator[StateByteChunk]:
    """Split ``data`` into chunks of at most ``chunk_size`` bytes.

    Empty data still produces one (empty) chunk so the receiver learns the
    total length. ``stop`` is checked before every chunk and raises
    ``StopRequested`` once set.
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    total = len(data)
    logger.debug(f"streaming {total} state bytes in chunks of {chunk_size}")
    offset = 0
    while True:
        if stop is not None:
            stop.check()
        end = min(offset + chunk_size, total)
        yield StateByteChunk(
            data=data[offset:end],
            total_length=total,
            range=StateByteRange(start=offset, end=end),
        )
        offset = end
        if offset >= total:
            return


_BUG_SUFFIX = "This is a bug in Terraform that should be reported to the maintainers."


def assemble_state_bytes(
    chunks: Iterable[StateByteChunk | None],
    max_size: int | None = None,
) -> tuple[bytes, list[Diagnostic]]:
    """Join received chunks back into the full state.

    Chunks must arrive in order, without gaps, and agree on the total
    length. Problems are reported as error diagnostics, in which case the
    returned bytes are empty.
    """
    buffer = bytearray()
    expected_total: int | None = None

    for chunk in chunks:
        if chunk is None:
            return b"", [error_diagnostic(
                "Unexpected empty state chunk in WriteStateBytes",
                f"An empty state byte chunk was received. {_BUG_SUFFIX}",
            )]
        if chunk.range is None:
            return b"", [error_diagnostic(
                "Unexpected state chunk data received in WriteStateBytes",
                f"An invalid state byte chunk was received with no range start/end information. {_BUG_SUFFIX}",
            )]
        if expected_total is None:
            expected_total = chunk.total_length
            if max_size is not None and expected_total > max_size:
                return b"", [error_diagnostic(
                    "State too large",
                    f"The state is {expected_total} bytes, more than the configured limit of {max_size} bytes.",
                )]
        elif chunk.total_length != expected_total:
            return b"", [error_diagnostic(
                "Inconsistent state chunk length",
                f"A chunk declared a total length of {chunk.total_length} bytes, "
                f"but earlier chunks declared {expected_total} bytes.",
            )]
        if chunk.range.start != len(buffer):
            return b"", [error_diagnostic(
                "Out of order state chunk",
                f"Expected a chunk starting at byte {len(buffer)}, got one starting at byte {chunk.range.start}.",
            )]
        if chunk.range.end - chunk.range.start != len(chunk.data):
            return b"", [error_diagnostic(
                "Invalid state chunk range",
                f"The chunk range {chunk.range.start}-{chunk.range.end} does not match "
                f"its {len(chunk.data)} bytes of data.",
            )]
        if chunk.range.end > expected_total:
            return b"", [error_diagnostic(
                "State chunk past declared length",
                f"The chunk range {chunk.range.start}-{chunk.range.end} runs past the declared total "
                f"of {expected_total} bytes.",
            )]
        buffer.extend(chunk.data)

    if expected_total is not None and len(buffer) != expected_total:
        return b"", [error_diagnostic(
            "Incomplete state",
            f"Received {len(buffer)} of {expected_total} state bytes.",
        )]
    logger.debug(f"assembled {len(buffer)} state bytes")
    return bytes(buffer), []
