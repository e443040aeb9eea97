"""Encoding of 32-bit page directory and page table entries.

Entries are plain integers: the upper 20 bits hold a frame address and the
lower 12 bits hold flags. The helpers return new entries; nothing is mutated.
"""

PTE_PRESENT = 0x001
PTE_WRITABLE = 0x002
PTE_USER = 0x004
PTE_WRITETHROUGH = 0x008
PTE_CACHEDISABLE = 0x010
PTE_ACCESSED = 0x020
PTE_DIRTY = 0x040
PTE_PAT = 0x080
PTE_GLOBAL = 0x100
PTE_LV4_GLOBAL = 0x200
PTE_FRAME_MASK = 0xFFFFF000

PDE_PRESENT = 0x001
PDE_WRITABLE = 0x002
PDE_USER = 0x004
PDE_WRITETHROUGH = 0x008
PDE_CACHEDISABLE = 0x010
PDE_ACCESSED = 0x020
PDE_DIRTY = 0x040
PDE_SIZE_4MB = 0x080
PDE_GLOBAL = 0x100
PDE_LV4_GLOBAL = 0x200
PDE_FRAME_MASK = 0xFFFFF000

FLAGS_MASK = 0x00000FFF

PAGE_SIZE = 4096
PAGES_PER_TABLE = 1024
PAGES_PER_DIR = 1024

DIR_INDEX_MASK = 0xFFC00000
TABLE_INDEX_MASK = 0x003FF000
PAGE_OFFSET_MASK = 0x00000FFF


def _create(frame_addr: int, flags: int) -> int:
    return (frame_addr & PTE_FRAME_MASK) | (flags & FLAGS_MASK)


def _set_flags(entry: int, flags: int) -> int:
    return (entry & PTE_FRAME_MASK) | (flags & FLAGS_MASK)


def _clear_flags(entry: int, flags: int) -> int:
    return entry & ~(flags & FLAGS_MASK) & 0xFFFFFFFF


def pte_create(frame_addr: int, flags: int) -> int:
    """Build a page table entry from a frame address and flags."""
    return _create(frame_addr, flags)


def pte_set_flags(entry: int, flags: int) -> int:
    """Return the entry with its flags replaced by ``flags``."""
    return _set_flags(entry, flags)


def pte_clear_flags(entry: int, flags: int) -> int:
    """Return the entry with the given flags cleared."""
    return _clear_flags(entry, flags)


def pde_create(frame_addr: int, flags: int) -> int:
    """Build a page directory entry pointing at a page table frame."""
    return _create(frame_addr, flags)


def pde_set_flags(entry: int, flags: int) -> int:
    """Return the directory entry with its flags replaced by ``flags``."""
    return _set_flags(entry, flags)


def pde_clear_flags(entry: int, flags: int) -> int:
    """Return the directory entry with the given flags cleared."""
    return _clear_flags(entry, flags)


def frame_address(entry: int) -> int:
    """The frame (or page table) address stored in an entry."""
    return entry & PTE_FRAME_MASK


def entry_flags(entry: int) -> int:
    """The flag bits of an entry."""
    return entry & FLAGS_MASK


def is_present(entry: int) -> bool:
    return bool(entry & PTE_PRESENT)


def is_writable(entry: int) -> bool:
    return bool(entry & PTE_WRITABLE)


def is_user(entry: int) -> bool:
    return bool(entry & PTE_USER)


def is_dirty(entry: int) -> bool:
    return bool(entry & PTE_DIRTY)


def dir_index(addr: int) -> int:
    """Page directory index of a virtual address (top 10 bits)."""
    return (addr & DIR_INDEX_MASK) >> 22


def table_index(addr: int) -> int:
    """Page table index of a virtual address (middle 10 bits)."""
    return (addr & TABLE_INDEX_MASK) >> 12


def page_offset(addr: int) -> int:
    """Offset of a virtual address inside its page (low 12 bits)."""
    return addr & PAGE_OFFSET_MASK