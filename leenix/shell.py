"""A small command shell and the simple user programs that ship with it."""

from __future__ import annotations

import string
import sys
from typing import Callable, Iterable, TextIO

PROMPT = " $ "
LINE_MAX = 127
NAME_MAX = 49
MAX_ARGS = 4
STACK_WORDS_BELOW = 5
STACK_WORDS_ABOVE = 5

EXIT_COMMAND = "exit"
# Commands the shell accepts that have nothing to show in this environment.
SILENT_COMMANDS = frozenset({"kinfo", "color", "bgcolor"})

_RULE = "-----------------------------------------\n"

HELP_TEXT = (
    "\n"
    "Leenix v0.1 shell\n"
    "with a basic Command Line Interface (CLI)\n\n"
    "Supported commands:\n"
    " - ticks: get total system ticks since init\n"
    " - clear: clears the display\n"
    " - kinfo: print kernel memory info\n"
    " - mdmp <address> <size>: dump memory contents at \t\t\t\t\taddress for size bytes\n"
    " - sd: dump current stack contents\n"
    " - heap: dump heap info\n"
    " - ptwalk <vstart> <vend>: walk the PTs from vstart to vend\n"
    " - open: open <filename>\n"
    " - elf: elf <filename>\n"
    " - break: trigger int3 breakpoint\n"
    " - help: displays this message\n"
    " - exit: quits and halts the system\n"
)


def _strtol(text: str, base: int = 0) -> int:
    """Parse the leading integer of ``text`` as C's strtol does; 0 if none."""
    s = text.lstrip(" \t\n\r\f\v")
    sign = 1
    if s and s[0] in "+-":
        sign = -1 if s[0] == "-" else 1
        s = s[1:]
    if base in (0, 16) and s[:2].lower() == "0x" and s[2:3] and s[2] in string.hexdigits:
        s, base = s[2:], 16
    elif base == 0:
        base = 8 if s.startswith("0") else 10
    digits = []
    for ch in s:
        try:
            value = int(ch, 36)
        except ValueError:
            break
        if value >= base:
            break
        digits.append(ch)
    return sign * int("".join(digits), base) if digits else 0


def memory_dump(memory, address: int, count: int) -> str:
    """Hex and ASCII dump of ``count`` bytes, sixteen to a line."""
    data = memory.read(address, count)
    lines = []
    for row in range(0, count, 16):
        chunk = data[row:row + 16]
        hex_part = "".join(f"{byte:02x} " for byte in chunk) + "   " * (16 - len(chunk))
        text = "".join(chr(byte) if 32 <= byte <= 126 else "." for byte in chunk)
        lines.append(f"0x{address + row:08x}: {hex_part} |{text}|\n")
    return "".join(lines)


def echo(argv: Iterable[str]) -> str:
    """Each argument followed by a space, then a newline."""
    return "".join(f"{arg} " for arg in argv) + "\n"


def greet(name: str) -> str:
    """The greeting for ``name``, cut to the length the name buffer holds."""
    return f"Hello, {name[:NAME_MAX]}!\n"


class Shell:
    """Reads command lines and runs the built-in commands.

    ``memory`` backs ``mdmp`` and ``sd``; ``stack_pointer`` is the address
    ``sd`` dumps around; ``on_break`` is called by ``break``.
    """

    def __init__(
        self,
        memory=None,
        *,
        out: TextIO | None = None,
        stack_pointer: int | None = None,
        on_break: Callable[[], None] | None = None,
    ) -> None:
        self.memory = memory
        self.out = out
        self.stack_pointer = stack_pointer
        self.on_break = on_break
        self._commands: dict[str, Callable[[list[str]], None]] = {
            "help": self._help,
            "mdmp": self._mdmp,
            "break": self._break,
            "sd": self._stack_dump,
            "echo": self._echo,
            "repeat": self._repeat,
        }

    def _write(self, text: str) -> None:
        (self.out or sys.stdout).write(text)

    def run_cmd(self, line: str) -> bool:
        """Run one command line; True means the shell should exit."""
        args = [token for token in line.split(" ") if token][:MAX_ARGS]
        if not args:
            return False
        command = args[0]
        if command == EXIT_COMMAND:
            return True
        if command in SILENT_COMMANDS:
            return False
        handler = self._commands.get(command)
        if handler is None:
            self._write("sh: error: Unkown command\n")
            return False
        handler(args[1:])
        return False

    def run(self, lines: Iterable[str]) -> int:
        """Prompt for and run each line until ``exit`` or the input ends."""
        self._write("\n")
        for line in lines:
            self._write(PROMPT)
            if self.run_cmd(line.rstrip("\r\n")[:LINE_MAX]):
                self._write("exiting shell...\n")
                return 0
        return 0

    # -- commands -----------------------------------------------------------

    def _help(self, args: list[str]) -> None:
        self._write(HELP_TEXT)

    def _break(self, args: list[str]) -> None:
        if self.on_break is not None:
            self.on_break()

    def _mdmp(self, args: list[str]) -> None:
        if len(args) < 2:
            self._write("Usage: mdmp <size> <address>\n")
            return
        self._write("\n")
        count = _strtol(args[0]) & 0xFFFFFFFF
        address = _strtol(args[1]) & 0xFFFFFFFF
        if self.memory is None:
            self._write("mdmp: no memory attached\n")
            return
        try:
            self._write(memory_dump(self.memory, address, count))
        except (IndexError, ValueError) as exc:
            self._write(f"mdmp: {exc}\n")

    def _stack_dump(self, args: list[str]) -> None:
        if self.memory is None or self.stack_pointer is None:
            self._write("sd: no stack to dump\n")
            return
        esp = self.stack_pointer
        self._write("\n")
        self._write(f"Stack dump (ESP = 0x{esp:08x}):\n")
        self._write(_RULE)
        self._write("    Address       Value       %esp\n")
        self._write(_RULE)
        for i in range(-STACK_WORDS_BELOW, STACK_WORDS_ABOVE):
            addr = esp + 4 * i
            try:
                value = self.memory.read_u32(addr)
            except IndexError:
                self._write(f"   0x{addr:08x}: ??????????\n")
                continue
            if i == 0:
                self._write(f"-> 0x{addr:08x}: 0x{value:08x}   <-- ESP\n")
            else:
                self._write(f"   0x{addr:08x}: 0x{value:08x}\n")
        self._write(_RULE + "\n")

    def _echo(self, args: list[str]) -> None:
        self._write(" ".join(args) + "\n")

    def _repeat(self, args: list[str]) -> None:
        if args:
            times = _strtol(args[0], 10)
            text = " ".join(args[1:])
            self._write(f"{text} " * max(times, 0))
            self._write("\n")


def main(argv: list[str] | None = None) -> int:
    """Run the shell: each argument is a command line, else standard input."""
    if argv is None:
        argv = sys.argv[1:]
    shell = Shell()
    if argv:
        return shell.run(argv)
    return shell.run(sys.stdin)