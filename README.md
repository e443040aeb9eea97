# leenix

A small simulation of pieces of a 32-bit x86 hobby kernel, written in plain
Python with no runtime dependencies.

## What is inside

- `leenix.paging` has helpers for 32-bit page directory and page table
  entries. Entries are plain integers and every helper returns a new value.
  - `pte_create` and `pde_create` build an entry from a frame address and flags.
  - `pte_set_flags` and `pde_set_flags` replace the flags of an entry.
  - `pte_clear_flags` and `pde_clear_flags` clear given flags.
  - `frame_address` and `entry_flags` split an entry into its two parts.
  - `is_present`, `is_writable`, `is_user` and `is_dirty` test single flags.
  - `dir_index`, `table_index` and `page_offset` split a virtual address.
  - Flag constants such as `PTE_PRESENT`, `PTE_WRITABLE`, `PTE_USER` and
    `PDE_SIZE_4MB`, and `PAGE_SIZE`, are defined there too.
- `leenix.kmm` covers physical memory.
  - `PhysicalMemory` is byte-addressable memory that is stored sparsely. It has
    `read`, `write`, `read_u32`, `write_u32` and `fill`. Bytes that were never
    written read back as zero. An access outside the memory raises `IndexError`.
  - `E820Entry` and `E801MemSize` decode the BIOS memory-map records.
    `E820Entry` also encodes them.
  - `FrameAllocator` is a bitmap allocator of 4 KiB frames.
    - `frame_alloc` returns the lowest free frame and raises `MemoryError` when
      none is left.
    - `frame_free` releases a frame.
    - `setup_memory_region` marks a region reserved or free.
    - `total_frames`, `used_frames`, `bitmap_size` and `is_used` report on the
      allocator.
    - `FrameAllocator.from_memory_map` builds an allocator from the E801 size
      and E820 map stored in a `PhysicalMemory` at `MEM_SIZE_LOC`,
      `MEM_MAP_ENTRY_COUNT_LOC` and `MEM_MAP_LOC`.
- `leenix.shell` holds a small command `Shell` and the helpers `echo`, `greet`
  and `memory_dump`. `memory_dump` gives a hex and ASCII dump of any object
  that has a `read(addr, size)` method.

## Installation

```
pip install .
```

## Using the shell

```
leenix-shell
```

This reads command lines from standard input. You can also pass each command
line as an argument:

```
leenix-shell "echo hello world" "repeat 3 hi" exit
```

The shell has these commands:

- `help` prints the help text.
- `echo <words>` prints the words back.
- `repeat <n> <words>` prints the words `n` times.
- `mdmp <size> <address>` dumps memory.
- `sd` dumps the stack words around the stack pointer.
- `break` calls the shell's break callback.
- `exit` leaves the shell.

`kinfo`, `color` and `bgcolor` are accepted and do nothing. Any other command
prints `sh: error: Unkown command`. That includes some commands that the help
text lists, such as `ticks` and `clear`.

`mdmp` and `sd` need memory attached to the shell. This is done in code with
`Shell(memory=..., stack_pointer=...)`. The `leenix-shell` command attaches
none, so there these two commands only report that nothing is attached.

```python
import io
from leenix.kmm import PhysicalMemory
from leenix.shell import Shell

memory = PhysicalMemory(0x10000)
memory.write(0x100, b"Hello")
out = io.StringIO()
Shell(memory, out=out).run_cmd("mdmp 16 0x100")
print(out.getvalue())
```

## Quick example

```python
from leenix.kmm import FrameAllocator
from leenix.paging import PTE_PRESENT, PTE_WRITABLE, pte_create, is_present, frame_address

frames = FrameAllocator(16 * 1024 * 1024)
frame = frames.frame_alloc()
entry = pte_create(frame, PTE_PRESENT | PTE_WRITABLE)
assert is_present(entry) and frame_address(entry) == frame
frames.frame_free(frame)
```

## What it does not do

This package has no virtual memory manager: it cannot build address spaces,
map pages through directories or clone page tables. It also has no heap
allocator, no block devices or disk drivers, and no kernel logger. The shell
runs its commands in-process against simulated memory, and nothing here boots
or runs on hardware.

## Running the tests

```
pip install .[test]
pytest
```