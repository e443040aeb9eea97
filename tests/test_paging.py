import pytest

from leenix import paging
from leenix.paging import (
    PDE_PRESENT,
    PDE_USER,
    PDE_WRITABLE,
    PTE_DIRTY,
    PTE_FRAME_MASK,
    PTE_PRESENT,
    PTE_USER,
    PTE_WRITABLE,
    dir_index,
    entry_flags,
    frame_address,
    is_dirty,
    is_present,
    is_user,
    is_writable,
    page_offset,
    pde_clear_flags,
    pde_create,
    pde_set_flags,
    pte_clear_flags,
    pte_create,
    pte_set_flags,
    table_index,
)


def test_documented_flag_values():
    assert is_present(0x001)
    assert is_writable(0x002)
    assert is_user(0x004)
    assert is_dirty(0x040)
    assert frame_address(0xFFFFFFFF) == 0xFFFFF000
    assert entry_flags(pte_create(0, PTE_PRESENT)) == 0x001
    assert entry_flags(pde_create(0, paging.PDE_SIZE_4MB)) == 0x080
    assert frame_address(pte_create(0xFFFFFFFF, 0)) == PTE_FRAME_MASK


def test_pte_create_round_trip():
    entry = pte_create(0x100000, PTE_PRESENT | PTE_WRITABLE)
    assert frame_address(entry) == 0x100000
    assert entry_flags(entry) == PTE_PRESENT | PTE_WRITABLE


def test_pte_create_masks_unaligned_frame():
    entry = pte_create(0x100123, PTE_PRESENT)
    assert frame_address(entry) == 0x100000
    assert entry_flags(entry) == PTE_PRESENT


def test_pte_create_drops_frame_bits_from_flags():
    entry = pte_create(0x200000, 0xFFFFFFFF)
    assert frame_address(entry) == 0x200000
    assert entry_flags(entry) == paging.FLAGS_MASK


def test_pte_set_flags_keeps_frame():
    entry = pte_create(0x500000, PTE_PRESENT | PTE_WRITABLE | PTE_USER)
    updated = pte_set_flags(entry, PTE_PRESENT)
    assert frame_address(updated) == 0x500000
    assert entry_flags(updated) == PTE_PRESENT


def test_pte_clear_flags_only_clears_given():
    entry = pte_create(0x600000, PTE_PRESENT | PTE_WRITABLE | PTE_USER)
    cleared = pte_clear_flags(entry, PTE_WRITABLE)
    assert frame_address(cleared) == 0x600000
    assert entry_flags(cleared) == PTE_PRESENT | PTE_USER


def test_pte_clear_flags_ignores_frame_bits():
    entry = pte_create(0x600000, PTE_PRESENT)
    cleared = pte_clear_flags(entry, PTE_FRAME_MASK | PTE_PRESENT)
    assert frame_address(cleared) == 0x600000
    assert not is_present(cleared)


def test_pde_helpers_match_pte_behaviour():
    pde = pde_create(0x200000, PDE_PRESENT | PDE_WRITABLE | PDE_USER)
    assert frame_address(pde) == 0x200000
    assert is_user(pde)
    pde = pde_clear_flags(pde, PDE_USER)
    assert not is_user(pde)
    pde = pde_set_flags(pde, PDE_PRESENT)
    assert entry_flags(pde) == PDE_PRESENT
    assert frame_address(pde) == 0x200000


@pytest.mark.parametrize(
    "flags, present, writable, user, dirty",
    [
        (0, False, False, False, False),
        (PTE_PRESENT, True, False, False, False),
        (PTE_PRESENT | PTE_WRITABLE, True, True, False, False),
        (PTE_PRESENT | PTE_USER | PTE_DIRTY, True, False, True, True),
    ],
)
def test_predicates(flags, present, writable, user, dirty):
    entry = pte_create(0x1000, flags)
    assert is_present(entry) is present
    assert is_writable(entry) is writable
    assert is_user(entry) is user
    assert is_dirty(entry) is dirty


@pytest.mark.parametrize(
    "addr, index",
    [(0x40000000, 256), (0x40400000, 257), (0x80000000, 512), (0xA0000000, 640)],
)
def test_dir_index(addr, index):
    assert dir_index(addr) == index


def test_same_table_addresses_share_dir_index():
    assert dir_index(0x40000000 + 0x1000) == dir_index(0x40000000)
    assert table_index(0x40000000) == 0
    assert table_index(0x40000000 + 0x1000) == 1


@pytest.mark.parametrize("addr", [0x0, 0x60000100, 0xC0123ABC, 0xFFFFFFFF])
def test_address_decomposition_reassembles(addr):
    rebuilt = (dir_index(addr) << 22) | (table_index(addr) << 12) | page_offset(addr)
    assert rebuilt == addr
    assert 0 <= dir_index(addr) < paging.PAGES_PER_DIR
    assert 0 <= table_index(addr) < paging.PAGES_PER_TABLE
    assert 0 <= page_offset(addr) < paging.PAGE_SIZE