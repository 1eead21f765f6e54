"""A model of a small x86 teaching kernel: paging, locks, syscall arguments, heap, shell parsing and wc."""

__version__ = "0.1.0"