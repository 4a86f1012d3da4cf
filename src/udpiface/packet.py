from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Endianness(str, Enum):
    BIG_ENDIAN = "BIG_ENDIAN"
    LITTLE_ENDIAN = "LITTLE_ENDIAN"


@dataclass(frozen=True)
class Packet:
    """
    Raw packet as it crosses the transport boundary.
    Target and packet names are left empty until something downstream identifies it.
    """
    buffer: bytes
    endianness: Endianness = Endianness.BIG_ENDIAN
    target_name: str | None = None
    packet_name: str | None = None

    @property
    def length(self) -> int:
        return len(self.buffer)
