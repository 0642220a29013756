#!/usr/bin/env python3
# /// script
# requires-python = ">=3.10"
# dependencies = []
# ///
"""
desktop-notify: Pop a desktop notification when Claude needs attention.

Event: Notification, Stop

Purpose: Lets you switch away from the terminal while Claude works. When the
session needs input, a notification naming the project directory appears.

Behavior:
- Detects the OS from `uname -s` (platform.system() if uname is unavailable)
- macOS: osascript
- Linux: notify-send, falling back to dunstify
- Uses the first backend found on PATH and exits 0
- Prints a single error line and exits 1 if no backend is available or the
  OS is not supported

The hook input on stdin is not read.
"""
import os
import platform
import shutil
import subprocess
import sys
from typing import NamedTuple

TITLE = "Claude CLI"
MESSAGE_TEMPLATE = "Claude needs your attention in {cwd}"


class NotifyError(Exception):
    """No way to show a notification on this host."""


class NotifyBackend(NamedTuple):
    command: str
    package: str


MACOS_BACKENDS = (NotifyBackend("osascript", "osascript"),)
LINUX_BACKENDS = (
    NotifyBackend("notify-send", "libnotify-bin"),
    NotifyBackend("dunstify", "dunst"),
)


def get_os_name() -> str:
    """Return the kernel name, as `uname -s` prints it."""
    try:
        result = subprocess.run(["uname", "-s"], capture_output=True, text=True)
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip()
    except OSError:
        pass
    return platform.system()


def applescript_string(value: str) -> str:
    """Quote a value as an AppleScript string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_command(backend: NotifyBackend, title: str, message: str) -> list[str]:
    if backend.command == "osascript":
        script = (
            f"display notification {applescript_string(message)} "
            f"with title {applescript_string(title)}"
        )
        return ["osascript", "-e", script]
    return [backend.command, title, message]


def find_backend(backends) -> NotifyBackend | None:
    """Return the first backend whose command is on PATH."""
    for backend in backends:
        if shutil.which(backend.command) is not None:
            return backend
    return None


def select_backend(os_name: str) -> NotifyBackend:
    if os_name.startswith("Darwin"):
        backend = find_backend(MACOS_BACKENDS)
        if backend is None:
            raise NotifyError("osascript not found on macOS")
        return backend

    if os_name.startswith("Linux"):
        backend = find_backend(LINUX_BACKENDS)
        if backend is None:
            commands = " nor ".join(b.command for b in LINUX_BACKENDS)
            packages = " or ".join(b.package for b in LINUX_BACKENDS)
            raise NotifyError(
                f"Neither {commands} found on Linux. Please install {packages}"
            )
        return backend

    raise NotifyError(f"Unsupported operating system: {os_name}")


def main():
    message = MESSAGE_TEMPLATE.format(cwd=os.getcwd())

    try:
        backend = select_backend(get_os_name())
    except NotifyError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Notifier exit status is not checked
    subprocess.run(build_command(backend, TITLE, message), check=False)
    sys.exit(0)


if __name__ == "__main__":
    main()
