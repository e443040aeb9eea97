"""Physical memory simulation and the page-frame bitmap allocator."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import ClassVar, Iterator

MEM_SIZE_LOC = 0x3000
MEM_MAP_ENTRY_COUNT_LOC = 0x3008
MEM_MAP_LOC = 0x300C

BLOCK_SIZE = 4096
BLOCK_ALIGNMENT = BLOCK_SIZE
BLOCKS_PER_BYTE = 8

E820_USABLE = 1
E820_RESERVED = 2
E820_ACPI_RECLAIMABLE = 3
E820_ACPI_NVS = 4
E820_BAD = 5


class PhysicalMemory:
    """Byte-addressable physical memory, stored sparsely frame by frame.

    Frames never written read back as zeros.
    """

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("memory size must be positive")
        self.size = size
        self._frames: dict[int, bytearray] = {}

    def _check(self, addr: int, size: int) -> None:
        if addr < 0 or size < 0 or addr + size > self.size:
            raise IndexError(
                f"access of {size} bytes at {addr:#x} outside memory of {self.size:#x} bytes"
            )

    @staticmethod
    def _chunks(addr: int, size: int) -> Iterator[tuple[int, int, int]]:
        end = addr + size
        while addr < end:
            frame, offset = divmod(addr, BLOCK_SIZE)
            count = min(BLOCK_SIZE - offset, end - addr)
            yield frame, offset, count
            addr += count

    def read(self, addr: int, size: int) -> bytes:
        """Read ``size`` bytes starting at ``addr``."""
        self._check(addr, size)
        out = bytearray()
        for frame, offset, count in self._chunks(addr, size):
            page = self._frames.get(frame)
            out += page[offset:offset + count] if page is not None else bytes(count)
        return bytes(out)

    def write(self, addr: int, data: bytes) -> None:
        """Write ``data`` starting at ``addr``."""
        data = bytes(data)
        self._check(addr, len(data))
        pos = 0
        for frame, offset, count in self._chunks(addr, len(data)):
            page = self._frames.setdefault(frame, bytearray(BLOCK_SIZE))
            page[offset:offset + count] = data[pos:pos + count]
            pos += count

    def read_u32(self, addr: int) -> int:
        """Read a little-endian 32-bit word."""
        return struct.unpack("<I", self.read(addr, 4))[0]

    def write_u32(self, addr: int, value: int) -> None:
        """Write a little-endian 32-bit word."""
        if not 0 <= value <= 0xFFFFFFFF:
            raise ValueError(f"{value:#x} does not fit in 32 bits")
        self.write(addr, struct.pack("<I", value))

    def fill(self, addr: int, size: int, value: int) -> None:
        """Set ``size`` bytes starting at ``addr`` to the byte ``value``."""
        if not 0 <= value <= 0xFF:
            raise ValueError(f"{value} is not a byte value")
        self._check(addr, size)
        for frame, offset, count in self._chunks(addr, size):
            if value == 0 and count == BLOCK_SIZE:
                self._frames.pop(frame, None)
                continue
            page = self._frames.setdefault(frame, bytearray(BLOCK_SIZE))
            page[offset:offset + count] = bytes([value]) * count


@dataclass(frozen=True)
class E820Entry:
    """One entry of the BIOS E820 memory map."""

    base: int
    length: int
    type: int
    acpi: int = 0

    SIZE: ClassVar[int] = 24
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<6I")

    @classmethod
    def from_bytes(cls, data: bytes) -> "E820Entry":
        if len(data) < cls.SIZE:
            raise ValueError(f"an E820 entry needs {cls.SIZE} bytes, got {len(data)}")
        base_lo, base_hi, len_lo, len_hi, kind, acpi = cls._STRUCT.unpack(data[:cls.SIZE])
        return cls(base_lo | (base_hi << 32), len_lo | (len_hi << 32), kind, acpi)

    def to_bytes(self) -> bytes:
        return self._STRUCT.pack(
            self.base & 0xFFFFFFFF,
            self.base >> 32,
            self.length & 0xFFFFFFFF,
            self.length >> 32,
            self.type,
            self.acpi,
        )

    @property
    def usable(self) -> bool:
        return self.type == E820_USABLE


@dataclass(frozen=True)
class E801MemSize:
    """Memory size reported by BIOS E801: KB between 1 and 16 MB, 64 KB blocks above."""

    mem_low: int
    mem_high: int

    SIZE: ClassVar[int] = 8
    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<2I")

    @classmethod
    def from_bytes(cls, data: bytes) -> "E801MemSize":
        if len(data) < cls.SIZE:
            raise ValueError(f"an E801 record needs {cls.SIZE} bytes, got {len(data)}")
        return cls(*cls._STRUCT.unpack(data[:cls.SIZE]))

    def total_kb(self) -> int:
        """Total memory in KB, counting the first megabyte."""
        return 1024 + self.mem_low + self.mem_high * 64


class FrameAllocator:
    """Bitmap allocator handing out 4 KB physical frames."""

    def __init__(self, memory_size: int, *, reserved: bool = False) -> None:
        if memory_size < BLOCK_SIZE:
            raise ValueError("memory must hold at least one frame")
        self._total = memory_size // BLOCK_SIZE
        nbytes = -(-self._total // BLOCKS_PER_BYTE)
        self._bitmap = bytearray(b"\xff" * nbytes if reserved else nbytes)
        # bits past the last frame are kept set so they are never handed out
        for frame in range(self._total, nbytes * BLOCKS_PER_BYTE):
            self._set(frame)
        self._used = self._total if reserved else 0

    @classmethod
    def from_memory_map(cls, memory: PhysicalMemory) -> "FrameAllocator":
        """Build an allocator from the E801 size and E820 map left in memory."""
        size = E801MemSize.from_bytes(memory.read(MEM_SIZE_LOC, E801MemSize.SIZE))
        count = memory.read_u32(MEM_MAP_ENTRY_COUNT_LOC)
        entries = [
            E820Entry.from_bytes(memory.read(MEM_MAP_LOC + i * E820Entry.SIZE, E820Entry.SIZE))
            for i in range(count)
        ]
        allocator = cls(size.total_kb() * 1024, reserved=True)
        for entry in entries:
            if entry.usable:
                allocator.setup_memory_region(entry.base, entry.length, False)
        for entry in entries:
            if not entry.usable:
                allocator.setup_memory_region(entry.base, entry.length, True)
        return allocator

    def _test(self, frame: int) -> bool:
        return bool(self._bitmap[frame // BLOCKS_PER_BYTE] & (1 << (frame % BLOCKS_PER_BYTE)))

    def _set(self, frame: int) -> None:
        self._bitmap[frame // BLOCKS_PER_BYTE] |= 1 << (frame % BLOCKS_PER_BYTE)

    def _clear(self, frame: int) -> None:
        self._bitmap[frame // BLOCKS_PER_BYTE] &= ~(1 << (frame % BLOCKS_PER_BYTE)) & 0xFF

    def _mark(self, frame: int, used: bool) -> None:
        if self._test(frame) == used:
            return
        if used:
            self._set(frame)
            self._used += 1
        else:
            self._clear(frame)
            self._used -= 1

    def frame_alloc(self) -> int:
        """Allocate one frame and return its physical address."""
        for index, byte in enumerate(self._bitmap):
            if byte != 0xFF:
                bit = (~byte & (byte + 1)).bit_length() - 1
                frame = index * BLOCKS_PER_BYTE + bit
                self._mark(frame, True)
                return frame * BLOCK_SIZE
        raise MemoryError("no free physical frames")

    def frame_free(self, phys_addr: int) -> None:
        """Release the frame at ``phys_addr``; freeing a free frame is harmless."""
        if phys_addr % BLOCK_ALIGNMENT:
            raise ValueError(f"{phys_addr:#x} is not frame aligned")
        frame = self._frame_index(phys_addr)
        self._mark(frame, False)

    def _frame_index(self, phys_addr: int) -> int:
        frame = phys_addr // BLOCK_SIZE
        if phys_addr < 0 or frame >= self._total:
            raise ValueError(f"{phys_addr:#x} is outside physical memory")
        return frame

    def setup_memory_region(self, base: int, size: int, is_reserved: bool) -> None:
        """Mark the frames of a physical region as reserved or free.

        Reserving covers every frame the region touches; freeing only the
        frames lying wholly inside it.
        """
        if base < 0 or size < 0:
            raise ValueError("region base and size must not be negative")
        end = base + size
        if is_reserved:
            first, last = base // BLOCK_SIZE, -(-end // BLOCK_SIZE)
        else:
            first, last = -(-base // BLOCK_SIZE), end // BLOCK_SIZE
        for frame in range(max(first, 0), min(last, self._total)):
            self._mark(frame, is_reserved)

    def total_frames(self) -> int:
        return self._total

    def used_frames(self) -> int:
        return self._used

    def bitmap_size(self) -> int:
        """Size of the frame bitmap in bytes."""
        return len(self._bitmap)

    def is_used(self, phys_addr: int) -> bool:
        """Whether the frame holding ``phys_addr`` is allocated or reserved."""
        return self._test(self._frame_index(phys_addr))