#!/usr/bin/env python3
"""
lc3vm - LC-3 Virtual Machine runner

Usage:
    python lc3vm.py <image.obj> [--max-steps N] [--strict] [--trace]
                                [--pc-start 0x3000] [--dump-regs]
                                [--dump-mem 0x3000:32] [-v] [--log-dir DIR]

Loads a big-endian LC-3 object image, starts at x3000 (or --pc-start)
and steps until HALT. Program output goes to stdout; logs and dumps go
to stderr.

Exit codes:
    0  HALT
    1  image could not be opened / bad arguments (including usage errors)
    2  stopped on an illegal opcode or unimplemented trap (--strict)
    3  step budget exhausted

Examples:
    python lc3vm.py hello.obj
    python lc3vm.py hello.obj --trace --max-steps 1000
    python lc3vm.py prog.obj --strict --dump-regs --dump-mem x3000:16
"""

import argparse
import logging
import sys
import os

# Allow running from project root without installing
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from lc3_vm import __version__
from lc3_vm.config import EmulatorConfig
from lc3_vm.emu import LC3Emulator, StopReason
from lc3_vm.log import setup_logging

EXIT_CODES = {
    StopReason.HALT: 0,
    StopReason.ILLEGAL: 2,
    StopReason.TIMEOUT: 3,
}


def parse_int_arg(value: str) -> int:
    """Parse an address: 0x3000, x3000 (LC-3 convention) or decimal."""
    value = value.strip()
    if value.lower().startswith("0x"):
        return int(value, 16)
    if value[:1] in ("x", "X"):
        return int(value[1:], 16)
    return int(value)


def parse_range_arg(value: str) -> tuple:
    """Parse START:LEN for --dump-mem."""
    start, _, length = value.partition(":")
    return parse_int_arg(start), parse_int_arg(length) if length else 64


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with 1; exit code 2 is reserved for ILLEGAL."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="lc3vm",
        description="Run an LC-3 object image",
    )
    parser.add_argument("image", help="Input .obj image (big-endian origin + words)")
    parser.add_argument("--max-steps", type=int, default=None,
                        help="Stop after this many instructions (default: 10,000,000)")
    parser.add_argument("--pc-start", default=None,
                        help="Start address (hex, e.g. x3000)")
    parser.add_argument("--strict", action="store_true",
                        help="Stop on reserved opcodes and unimplemented traps")
    parser.add_argument("--trace", action="store_true",
                        help="Print every executed instruction to stderr")
    parser.add_argument("--dump-regs", action="store_true",
                        help="Print registers to stderr when execution stops")
    parser.add_argument("--dump-mem", default=None, metavar="START:LEN",
                        help="Print a memory range to stderr when execution stops")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Console log level: -v INFO, -vv DEBUG")
    parser.add_argument("--log-dir", default=None,
                        help="Also write a full DEBUG log file into this directory")
    parser.add_argument("--version", action="version",
                        version=f"lc3vm {__version__}")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    console_level = {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    setup_logging(name="lc3_vm", console_level=console_level, log_dir=args.log_dir)
    log = logging.getLogger("lc3_vm.cli")

    try:
        pc_start = parse_int_arg(args.pc_start) if args.pc_start else None
        dump_range = parse_range_arg(args.dump_mem) if args.dump_mem else None
        config_kwargs = dict(strict=args.strict, trace=args.trace,
                             max_steps=args.max_steps)
        if pc_start is not None:
            config_kwargs["pc_start"] = pc_start
        config = EmulatorConfig(**config_kwargs)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    emu = LC3Emulator(config)
    if args.trace:
        emu.enable_trace(stream=sys.stderr)
    result = emu.load_image(args.image)
    if not result:
        print(f"Error: cannot open image: {args.image}", file=sys.stderr)
        return 1
    if result.truncated:
        log.warning("Image truncated: %d word(s) past xFFFF dropped", result.words_dropped)

    reason = emu.run()
    log.info("Stopped: %s after %d step(s)", reason.value, emu.steps)
    if emu.diagnostics.total:
        log.info("Diagnostics: %s", emu.diagnostics.summary())

    if args.dump_regs:
        print(emu.regs.display(), file=sys.stderr)
    if dump_range is not None:
        print(emu.mem.hexdump(*dump_range), file=sys.stderr)

    return EXIT_CODES[reason]


if __name__ == "__main__":
    sys.exit(main())
