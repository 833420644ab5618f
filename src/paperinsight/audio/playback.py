"""
Playback sinks.

The sequencer hands finished audio to a sink and awaits it; the await
returning means playback has ended.
"""

import logging
import uuid
from collections import deque
from pathlib import Path
from typing import Protocol, runtime_checkable

from paperinsight.core.schemas import AudioBlob

logger = logging.getLogger(__name__)


@runtime_checkable
class AudioSink(Protocol):
    """Something that can play an AudioBlob to completion."""

    async def play(self, blob: AudioBlob) -> None:
        ...


class MemorySink:
    """Keeps the most recent blobs it is asked to play. Default for headless sessions."""

    def __init__(self, max_blobs: int = 8) -> None:
        self.played: deque[AudioBlob] = deque(maxlen=max_blobs)

    async def play(self, blob: AudioBlob) -> None:
        self.played.append(blob)


class FileSink:
    """Writes each blob to a .wav file under `directory`."""

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory).expanduser()
        self.last_path: Path | None = None

    async def play(self, blob: AudioBlob) -> None:
        self._directory.mkdir(parents=True, exist_ok=True)
        path = self._directory / f"summary_{uuid.uuid4().hex[:8]}.wav"
        path.write_bytes(blob.data)
        self.last_path = path
        logger.info("Wrote %d bytes of audio to %s", len(blob), path)
