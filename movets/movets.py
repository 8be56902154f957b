"""Command-line entry point."""

from __future__ import annotations

import json
import os
import sys

from .backend import Config, translate_modules
from .diagnostics import Diagnostic
from .ir import Module
from .serialize import load_module, module_entries, serialize

PHASES: list[str] = ["load"]

USAGE: str = """\
movets [OPTIONS] [INPUT]

Reads Move IR as JSON from INPUT (or stdin) and emits one TypeScript file
per module.

Options:
  -o, --out-dir DIR   Write files under DIR instead of printing them
  --test              Mark functions carrying the test attribute
  --stop-at PHASE     Stop after phase: load (prints the loaded IR as JSON)
  --verbose           Report each translated file on stderr
  --help              Show this help message
"""


def read_source(input_file: str | None) -> tuple[str, int]:
    """Read source from file or stdin. Returns (source, exit_code) where exit_code 0 means OK."""
    if input_file is not None:
        try:
            with open(input_file, "rb") as f:
                raw = f.read()
        except OSError:
            print("error: cannot open '" + input_file + "'", file=sys.stderr)
            return ("", 1)
    else:
        raw = sys.stdin.buffer.read()
    if len(raw) > 0:
        try:
            source = raw.decode("utf-8")
        except ValueError:
            print("error: invalid utf-8 in input", file=sys.stderr)
            return ("", 1)
        return (source, 0)
    return ("", 0)


def write_files(files: dict[str, str], out_dir: str | None) -> int:
    """Write generated files under out_dir, or print them. Returns 0 on success, 1 on error."""
    if out_dir is None:
        for path, content in files.items():
            print("// " + path)
            print(content, end="")
        return 0
    for path, content in files.items():
        target = os.path.join(out_dir, path)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, "w") as f:
                f.write(content)
        except OSError:
            print("error: cannot write '" + target + "'", file=sys.stderr)
            return 1
    return 0


def load_source(source: str) -> tuple[list[Module], int]:
    """Decode IR JSON. Returns (modules, exit_code); modules that load are kept when others fail."""
    try:
        data = json.loads(source)
    except ValueError as e:
        print("error: invalid JSON: " + str(e), file=sys.stderr)
        return ([], 1)
    modules: list[Module] = []
    err = 0
    for entry in module_entries(data):
        try:
            modules.append(load_module(entry))
        except Diagnostic as e:
            print(str(e), file=sys.stderr)
            err = 1
        except KeyError as e:
            print("error: missing field " + str(e), file=sys.stderr)
            err = 1
        except (TypeError, ValueError) as e:
            print("error: malformed IR: " + str(e), file=sys.stderr)
            err = 1
    return (modules, err)


def run_pipeline(source: str, config: Config, stop_at: str | None, verbose: bool) -> tuple[int, dict[str, str], str]:
    """Run load and translation. Returns (exit_code, files, dump)."""
    modules, err = load_source(source)
    if stop_at == "load":
        if err != 0:
            return (err, {}, "")
        return (0, {}, json.dumps(serialize({"modules": modules}), indent=2))
    files, errors = translate_modules(modules, config)
    for error in errors:
        print(str(error), file=sys.stderr)
    if verbose:
        for path in files:
            print("translated " + path, file=sys.stderr)
    if err != 0 or len(errors) > 0:
        return (1, files, "")
    return (0, files, "")


def parse_args() -> tuple[Config, str | None, bool, str | None, str | None]:
    """Parse command-line arguments. Returns (config, stop_at, verbose, input_file, out_dir)."""
    args = sys.argv[1:]
    test = False
    stop_at: str | None = None
    verbose = False
    input_file: str | None = None
    out_dir: str | None = None
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--help" or arg == "-h":
            print(USAGE, end="")
            sys.exit(0)
        elif arg == "--stop-at":
            if i + 1 >= len(args):
                print("error: --stop-at requires an argument", file=sys.stderr)
                sys.exit(2)
            stop_at = args[i + 1]
            i += 2
        elif arg == "-o" or arg == "--out-dir":
            if i + 1 >= len(args):
                print("error: " + arg + " requires an argument", file=sys.stderr)
                sys.exit(2)
            out_dir = args[i + 1]
            i += 2
        elif arg == "--test":
            test = True
            i += 1
        elif arg == "--verbose":
            verbose = True
            i += 1
        elif arg.startswith("-"):
            print("error: unknown flag '" + arg + "'", file=sys.stderr)
            sys.exit(2)
        else:
            if input_file is not None:
                print("error: unexpected argument '" + arg + "'", file=sys.stderr)
                sys.exit(2)
            input_file = arg
            i += 1
    if stop_at is not None and stop_at not in PHASES:
        print("error: unknown phase '" + stop_at + "'", file=sys.stderr)
        sys.exit(2)
    return (Config(test=test), stop_at, verbose, input_file, out_dir)


def main() -> int:
    """Main entry point."""
    config, stop_at, verbose, input_file, out_dir = parse_args()
    source, err = read_source(input_file)
    if err != 0:
        return err
    if len(source) == 0:
        print("error: no input provided", file=sys.stderr)
        return 2
    exit_code, files, dump = run_pipeline(source, config, stop_at, verbose)
    if len(dump) > 0:
        print(dump)
        return exit_code
    # modules that translated are still written when others failed
    write_code = write_files(files, out_dir)
    if exit_code != 0:
        return exit_code
    return write_code


if __name__ == "__main__":
    sys.exit(main())
