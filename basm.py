#!/usr/bin/env python3
"""
basm: BattelASM assembler CLI

Usage:
    python basm.py <input.asm> [-o output.c] [--no-comments] [--var-table]
                               [--decimal] [--obfuscate] [--no-variables]
                               [--listing] [--seed N] [--verbose]

The generated C goes to stdout (or -o), errors go to stderr, so

    python basm.py example.asm > example.c

works as a build step.

Examples:
    python basm.py mars.asm -o mars.c
    python basm.py mars.asm --obfuscate         # decimal words, no comments
    python basm.py mars.asm --var-table -v
    python basm.py mars.asm --listing
"""

import argparse
import logging
import random
import sys
import os

# Allow running from project root or as module
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from battelasm import __version__
from battelasm.assembler import Assembler
from battelasm.emitter import EmitOptions
from battelasm.errors import AssemblerError, ConsistencyError
from battelasm.log_setup import setup_logging, verbosity_level

logger = logging.getLogger("battelasm.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="basm",
        description="Assemble BattelASM source into a C array of 16-bit words",
    )
    parser.add_argument("input", help="Input .asm file")
    parser.add_argument("-o", "--output", help="Output C file (default: stdout)")
    parser.add_argument("--no-comments", action="store_true",
                        help="Don't echo source lines as comments")
    parser.add_argument("--var-table", action="store_true",
                        help="List variable -> register bindings after the array")
    parser.add_argument("--decimal", action="store_true",
                        help="Write words as decimal instead of 0b literals")
    parser.add_argument("--obfuscate", action="store_true",
                        help="Same as --no-comments --decimal")
    parser.add_argument("--no-variables", action="store_true",
                        help="Only accept r0-r31, sp and pc as register operands")
    parser.add_argument("--listing", action="store_true",
                        help="Print an address/word/source listing instead of C")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed used when the header offset is -1")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="Increase verbosity (-v, -vv)")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Only report errors")
    parser.add_argument("--log-file", help="Write a DEBUG log to this file")
    parser.add_argument("--version", action="version",
                        version=f"basm {__version__}")
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbosity_level(args.verbose, args.quiet), args.log_file)

    if args.var_table and args.no_variables:
        parser.error("--var-table requires variables (drop --no-variables)")

    options = EmitOptions(
        comments=not (args.no_comments or args.obfuscate),
        var_table=args.var_table,
        decimal=args.decimal or args.obfuscate,
        variables=not args.no_variables,
    )

    # Read input
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            source = f.read()
    except FileNotFoundError:
        print(f"Error: File not found: {args.input}", file=sys.stderr)
        return 1
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading {args.input}: {e}", file=sys.stderr)
        return 1

    rng = random.Random(args.seed) if args.seed is not None else None
    asm = Assembler(options, rng)

    try:
        asm.assemble(source)
    except ConsistencyError as e:
        print(f"Internal assembler error: {e}", file=sys.stderr)
        return 2
    except AssemblerError as e:
        print(f"Assembler error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        print(f"Internal assembler error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 2

    result = asm.get_listing() + "\n" if args.listing else asm.to_c()

    if args.output:
        try:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(result)
        except OSError as e:
            print(f"Error writing {args.output}: {e}", file=sys.stderr)
            return 1
        logger.info("wrote %s", args.output)
    else:
        sys.stdout.write(result)

    return 0


if __name__ == "__main__":
    sys.exit(main())
