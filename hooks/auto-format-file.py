#!/usr/bin/env python3
# /// script
# requires-python = ">=3.10"
# dependencies = []
# ///
"""
auto-format-file: Format and lint a file right after Claude writes it.

Event: PostToolUse (Write, Edit, MultiEdit)

Purpose: Keeps written files in canonical style and sends lint errors that
cannot be auto-fixed straight back to Claude, so they get fixed in the same
turn instead of surfacing later in CI.

Behavior:
- Reads tool_input.file_path from the hook input
- Picks a formatter (and optional linter) from the file extension
- Rewrites the file in place with that formatter
- On failure, prints a diagnostic block to stderr and exits 2 so Claude sees it
- On success, prints a one-line confirmation and exits 0

Supported file types:
- .json        → re-serialized in-process (2-space indent), swapped in atomically
- .tf, .hcl    → terraform fmt
- .py          → ruff format, then ruff check --fix
- .go          → goimports -w
- .sh, .bash   → shfmt -w, then shellcheck when it is installed

Does NOT trigger when:
- No file_path in the tool input
- The path is not an existing regular file
- The extension is not in the table above

Exit codes:
- 0: nothing to do, or formatting succeeded
- 1: the hook itself failed (malformed input)
- 2: a formatter or linter reported a problem Claude must fix

Limitations:
- Tools are located through PATH; a missing tool is reported as a failure
- Only ruff findings left over after --fix are reported for Python
"""
import json
import math
import os
import re
import shutil
import subprocess
import sys
import tempfile
from pathlib import Path
from types import MappingProxyType
from typing import Callable, NamedTuple

# Exit code that makes Claude Code feed stderr back to the model
BLOCKING_EXIT_CODE = 2

# Exit status a shell reports for a command it cannot find
COMMAND_NOT_FOUND = 127


class ToolFailure(Exception):
    """A formatter or linter rejected the file."""

    def __init__(self, tool: str, output: str):
        super().__init__(f"{tool} failed")
        self.tool = tool
        self.output = output


class ToolRule(NamedTuple):
    label: str
    formatter: Callable[[Path], None]
    linter: Callable[[Path], None] | None = None


def run_tool(argv: list[str], merge_stderr: bool = True) -> subprocess.CompletedProcess:
    """
    Run an external tool and capture its output.

    With merge_stderr, stderr is folded into stdout (like `2>&1`). A binary
    that cannot be executed comes back as a failed process with the same
    message a shell would print, so callers never see OSError.
    """
    try:
        return subprocess.run(
            argv,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT if merge_stderr else subprocess.PIPE,
            text=True,
        )
    except (FileNotFoundError, PermissionError):
        return subprocess.CompletedProcess(
            argv, COMMAND_NOT_FOUND, stdout=f"{argv[0]}: command not found\n", stderr=""
        )


def check_tool(tool: str, argv: list[str]) -> None:
    """Run argv and raise ToolFailure with its output if it exits non-zero."""
    result = run_tool(argv)
    if result.returncode != 0:
        raise ToolFailure(tool, result.stdout.strip())


JSON_TOOL = "json (JSON formatter)"

# Unpaired UTF-16 surrogates can only appear inside strings
LONE_SURROGATE = re.compile(r"[\ud800-\udfff]")


def reject_constant(name: str):
    """NaN and Infinity are not JSON."""
    raise ValueError(f"Invalid JSON constant: {name}")


def parse_number(literal: str) -> float:
    """Parse a float, clamping overflow to the largest double like `jq .` does."""
    value = float(literal)
    if math.isinf(value):
        return math.copysign(sys.float_info.max, value)
    return value


def canonical_json(text: str) -> str:
    """Re-serialize a JSON document the way `jq .` prints it."""
    document = json.loads(text, parse_constant=reject_constant, parse_float=parse_number)
    formatted = json.dumps(document, indent=2, ensure_ascii=False, allow_nan=False)
    formatted = LONE_SURROGATE.sub(lambda m: f"\\u{ord(m.group()):04x}", formatted)
    return formatted + "\n"


def format_json(path: Path) -> None:
    """Rewrite the file as canonical JSON, swapping it in only on success."""
    try:
        formatted = canonical_json(path.read_text(encoding="utf-8")).encode("utf-8")
    except ValueError as e:
        raise ToolFailure(JSON_TOOL, str(e)) from e

    # Stage next to the original so the rename stays on one filesystem
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f"{path.name}.", suffix=".tmp")
    replaced = False
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(formatted)
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
        replaced = True
    finally:
        if not replaced:
            Path(tmp_name).unlink(missing_ok=True)


def format_terraform(path: Path) -> None:
    """Run terraform fmt in place."""
    check_tool("terraform fmt", ["terraform", "fmt", str(path)])


def format_python(path: Path) -> None:
    """Run ruff format in place."""
    check_tool("ruff format", ["ruff", "format", str(path)])


def render_ruff_diagnostics(diagnostics: list[dict]) -> str:
    """Turn ruff's JSON diagnostics into `file:row:col: CODE message` lines."""
    lines = []
    for diag in diagnostics:
        location = diag.get("location") or {}
        code = diag.get("code") or ""
        message = diag.get("message", "")
        text = f"{code} {message}" if code else message
        lines.append(
            f"{diag.get('filename', '')}:{location.get('row', 0)}:{location.get('column', 0)}: {text}"
        )
    return "\n".join(lines)


def lint_python(path: Path) -> None:
    """
    Apply ruff's autofixes, then report whatever is left.

    Anything still listed by the read-only re-check could not be fixed
    automatically. Ruff has no warning level for rule violations, so each
    remaining diagnostic is treated as an error.
    """
    if run_tool(["ruff", "check", "--fix", str(path)]).returncode == 0:
        return

    tool = "ruff check (unfixable issues)"
    recheck = run_tool(["ruff", "check", "--output-format=json", str(path)], merge_stderr=False)
    try:
        diagnostics = json.loads(recheck.stdout)
    except ValueError:
        diagnostics = None

    if not isinstance(diagnostics, list):
        if recheck.returncode != 0:
            raise ToolFailure(tool, (recheck.stdout + recheck.stderr).strip())
        return

    if diagnostics:
        raise ToolFailure(tool, render_ruff_diagnostics(diagnostics))


def format_go(path: Path) -> None:
    """Run goimports in place."""
    check_tool("goimports", ["goimports", "-w", str(path)])


def format_shell(path: Path) -> None:
    """Run shfmt in place."""
    check_tool("shfmt", ["shfmt", "-w", str(path)])


def lint_shell(path: Path) -> None:
    """Run shellcheck read-only when it is installed."""
    # shellcheck has no autofix
    if shutil.which("shellcheck") is None:
        return
    check_tool("shellcheck (requires manual fixes)", ["shellcheck", str(path)])


def build_rules(table: dict[tuple[str, ...], ToolRule]) -> MappingProxyType:
    """Expand extension groups into a read-only extension → rule mapping."""
    rules = {}
    for extensions, rule in table.items():
        for extension in extensions:
            rules[extension] = rule
    return MappingProxyType(rules)


TOOL_RULES = build_rules({
    ("json",): ToolRule("JSON", format_json),
    ("tf", "hcl"): ToolRule("Terraform", format_terraform),
    ("py",): ToolRule("Python", format_python, lint_python),
    ("go",): ToolRule("Go", format_go),
    ("sh", "bash"): ToolRule("Shell", format_shell, lint_shell),
})


def get_extension(path: Path) -> str:
    """Return the text after the last dot of the file name, or ''."""
    name = path.name
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1]


def format_error(tool: str, file: str, error_output: str) -> str:
    """Build the diagnostic block Claude receives on stderr."""
    return f"""🔴 Linting Error in {file}

Tool: {tool}
File: {file}

Error Output:
{error_output}

Claude Instructions:
1. Read the file at: {file}
2. Fix the formatting/linting issues reported above
3. Use the Edit or MultiEdit tool to apply the fixes
4. The errors above indicate what needs to be fixed
"""


def get_file_path(input_data) -> str | None:
    """Pull tool_input.file_path out of the hook input, if it is usable."""
    if not isinstance(input_data, dict):
        raise ValueError("hook input must be a JSON object")
    tool_input = input_data.get("tool_input")
    if not isinstance(tool_input, dict):
        return None
    file_path = tool_input.get("file_path")
    if not isinstance(file_path, str) or not file_path:
        return None
    return file_path


def main():
    raw = sys.stdin.read()
    input_data = json.loads(raw) if raw.strip() else {}

    file_path = get_file_path(input_data)
    if file_path is None:
        sys.exit(0)

    path = Path(file_path)
    if not path.is_file():
        sys.exit(0)

    rule = TOOL_RULES.get(get_extension(path))
    if rule is None:
        sys.exit(0)

    try:
        rule.formatter(path)
        if rule.linter is not None:
            rule.linter(path)
    except ToolFailure as failure:
        print(format_error(failure.tool, file_path, failure.output), file=sys.stderr)
        sys.exit(BLOCKING_EXIT_CODE)

    print(f"✓ Auto-formatted {rule.label}: {path.name}")
    sys.exit(0)


if __name__ == "__main__":
    try:
        main()
    except Exception as e:
        print(f"Error in auto-format-file hook: {e}", file=sys.stderr)
        sys.exit(1)
