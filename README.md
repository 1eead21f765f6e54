# kernelsim

`kernelsim` models pieces of a small teaching kernel for 32-bit x86 in plain
Python. You can use it to study or test how each piece behaves without an
emulator or a cross toolchain.

## Modules

- `kernelsim.layout`: memory-layout and paging constants (`PGSIZE`,
  `KERNBASE`, `PTE_P`, `PTE_W`, `PTE_U`, `NPROC`, and others). Address
  arithmetic: `pdx`, `ptx`, `pgaddr`, `pg_round_up`, `pg_round_down`,
  `pte_addr`, `pte_flags`, `v2p`, `p2v`. The boot-time segment encoding
  `seg_asm`. Two descriptor classes, `SegmentDescriptor` (built with `seg` or
  `seg16`) and `GateDescriptor` (built with `gate`), both of which `pack` to
  and `unpack` from 8 bytes.
- `kernelsim.elf`: `ElfHeader` and `ProgramHeader` with `from_bytes` and
  `pack`, plus `program_headers(data)` to list an image's program headers.
  Malformed input raises `ElfFormatError`.
- `kernelsim.traps`: the `Trap` and `Irq` enums, `irq_vector(irq)`, and
  `trap_name(trapno)`.
- `kernelsim.abi`: `OpenMode`, `FileType` and `Signal`. It also has `Stat`,
  which packs and unpacks, and `SigAction`, plus `access_for_mode(mode)` and
  `is_catchable(signum)`.
- `kernelsim.cstring`: C string and memory routines on `bytes` and
  `bytearray`: `memset`, `memcmp`, `memmove`, `strlen`, `strcmp`, `strncmp`,
  `strncpy`, `safestrcpy`, `strchr`, `atoi` and `gets`.
- `kernelsim.umalloc`: `Heap`, a first-fit, address-ordered free-list
  allocator. It has `sbrk`, `malloc`, `free` and `free_blocks`. Going past an
  optional limit raises `OutOfMemory`.
- `kernelsim.locks`: `SpinLock`, which is owned by the thread that acquired it
  and can be used in a `with` statement. `SleepLock`, which is held on behalf
  of a process id. Acquiring a `SpinLock` twice, or releasing one you do not
  hold, raises `LockError`.
- `kernelsim.syscalls`: the `SyscallNumber` enum. `UserMemory` fetches
  integers, pointers and strings from a process's memory with bounds checks
  and raises `BadAddress` when a check fails. `SyscallTable` registers and
  dispatches handlers and raises `UnknownSyscall` for an unknown number.
- `kernelsim.vm`: `PhysicalMemory`, a pool of 4 KiB frames that raises
  `OutOfPages` when none are left. `KernelMapping`. `AddressSpace`, which has
  two-level page tables with `walk`, `map_pages`, `init_code`, `load`, `grow`,
  `shrink`, `release`, `clear_user`, `copy`, `uva2ka` and `copy_out`.
- `kernelsim.shell`: the shell's tokenizer and recursive-descent parser:
  `tokenize`, `parse_command` and `Parser`. The parser builds a tree of
  `ExecCommand`, `RedirCommand`, `PipeCommand`, `ListCommand` and
  `BackCommand`, and raises `ShellSyntaxError` on bad input.
- `kernelsim.wc`: line, word and byte counts, through `count`, `wc` and
  `main`.

## Install

```
pip install .
```

## Examples

Parse a shell line:

```python
from kernelsim.shell import parse_command

cmd = parse_command("cat < in | grep x > out &")
```

Map and grow a user address space:

```python
from kernelsim.vm import PhysicalMemory, AddressSpace

mem = PhysicalMemory()
space = AddressSpace.create(mem)
size = space.grow(0, 8192)
space.copy_out(0, b"hello")
```

Allocate from a user heap:

```python
from kernelsim.umalloc import Heap

heap = Heap()
addr = heap.malloc(100)
heap.free(addr)
```

## Command line

`kernelsim-wc` counts lines, words and bytes in the files you name. If you name
no files, it reads standard input.

```
kernelsim-wc README.md
```

## What it does not do

`kernelsim` does not boot or run a kernel. It has no processes, scheduler,
file system, disk or console. The shell module parses command lines into
trees but does not execute them. The system call table only dispatches to
handlers you register yourself.

## Tests

```
pip install .[test]
pytest
```