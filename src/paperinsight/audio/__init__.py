"""
PaperInsight Audio

WAV encoding of synthesized speech and playback sinks.
"""

from paperinsight.audio.playback import AudioSink, FileSink, MemorySink
from paperinsight.audio.wav import HEADER_SIZE, build_header, decode_pcm, encode

__all__ = [
    "encode",
    "decode_pcm",
    "build_header",
    "HEADER_SIZE",
    "AudioSink",
    "MemorySink",
    "FileSink",
]
