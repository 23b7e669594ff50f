"""Filesystem tool — read, write, list, check and delete files in a sandbox."""

from __future__ import annotations

import logging
import os
import shutil
from typing import ClassVar

from reloop.tool.base import BaseTool, ToolParameter
from reloop.tool.value import Arguments

logger = logging.getLogger(__name__)

ENCODINGS = ("utf-8", "ascii", "utf-16")


class SandboxViolationError(ValueError):
    """A path resolved to somewhere outside the sandbox root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Path is outside the sandbox: {path}")


class FileSystemTool(BaseTool):
    """File operations confined to a sandbox directory.

    Every path is resolved against the sandbox root (symlinks included)
    and must stay inside it; ``..`` and absolute paths that lead out are
    rejected before anything touches the disk.
    """

    name: ClassVar[str] = "filesystem"
    description: ClassVar[str] = (
        "Read and write files. Supports reading a file, writing a file "
        "(creating parent directories), listing a directory, checking "
        "whether a path exists and deleting a file or directory. Paths are "
        "relative to the sandbox root."
    )
    parameters: ClassVar[tuple[ToolParameter, ...]] = (
        ToolParameter(
            name="action",
            type="string",
            description="Operation to perform",
            enum_values=("read", "write", "list", "exists", "delete"),
        ),
        ToolParameter(
            name="path",
            type="string",
            description="File or directory path, relative to the sandbox root",
        ),
        ToolParameter(
            name="content",
            type="string",
            description="Content to write (for write)",
            required=False,
        ),
        ToolParameter(
            name="encoding",
            type="string",
            description="Text encoding, default 'utf-8'",
            required=False,
            enum_values=ENCODINGS,
        ),
    )

    def __init__(self, sandbox_root: str | os.PathLike[str] | None = None) -> None:
        self._root = os.path.realpath(os.fspath(sandbox_root or os.getcwd()))

    @property
    def sandbox_root(self) -> str:
        return self._root

    def resolve(self, path: str) -> str:
        """Resolve ``path`` inside the sandbox.

        Raises:
            SandboxViolationError: the path leaves the sandbox root.
        """
        full = os.path.realpath(os.path.join(self._root, os.path.expanduser(path)))
        if os.path.commonpath([self._root, full]) != self._root:
            logger.warning("Rejected path outside sandbox %s: %s", self._root, path)
            raise SandboxViolationError(path)
        return full

    async def execute(self, arguments: Arguments) -> str:
        action = arguments["action"]
        path = _string_arg(arguments, "path")
        if path is None:
            raise ValueError("'path' must be a string")
        target = self.resolve(path)
        encoding = _string_arg(arguments, "encoding") or "utf-8"

        if action == "read":
            return self._read(target, encoding)
        if action == "write":
            content = _string_arg(arguments, "content")
            if content is None:
                raise ValueError("'content' is required for the 'write' action")
            return self._write(target, content, encoding)
        if action == "list":
            return self._list(target)
        if action == "exists":
            return self._exists(target)
        if action == "delete":
            return self._delete(target)
        raise ValueError(f"Unsupported action: {action}")

    def _display(self, target: str) -> str:
        return os.path.relpath(target, self._root)

    def _read(self, target: str, encoding: str) -> str:
        if not os.path.exists(target):
            raise ValueError(f"File not found: {self._display(target)}")
        if os.path.isdir(target):
            raise ValueError(f"Is a directory: {self._display(target)} (use 'list')")
        try:
            with open(target, "r", encoding=encoding) as f:
                content = f.read()
        except UnicodeDecodeError as e:
            raise ValueError(f"Cannot decode {self._display(target)} as {encoding}") from e
        return "\n".join(
            [
                f"Contents of {self._display(target)} ({len(content)} characters):",
                content,
            ]
        )

    def _write(self, target: str, content: str, encoding: str) -> str:
        if os.path.isdir(target):
            raise ValueError(f"Is a directory: {self._display(target)}")
        os.makedirs(os.path.dirname(target), exist_ok=True)
        try:
            with open(target, "w", encoding=encoding) as f:
                f.write(content)
        except UnicodeEncodeError as e:
            raise ValueError(f"Content cannot be encoded as {encoding}") from e
        return f"Wrote {len(content)} characters to {self._display(target)} ({encoding})"

    def _list(self, target: str) -> str:
        if not os.path.isdir(target):
            raise ValueError(f"Directory not found: {self._display(target)}")
        entries = sorted(os.listdir(target))
        lines = [f"Contents of {self._display(target)}:"]
        for entry in entries:
            full = os.path.join(target, entry)
            if os.path.isdir(full):
                lines.append(f"{entry}/")
            else:
                lines.append(f"{entry} ({os.path.getsize(full)} bytes)")
        lines.append(f"Total: {len(entries)} entries")
        return "\n".join(lines)

    def _exists(self, target: str) -> str:
        if os.path.isdir(target):
            return f"Directory exists: {self._display(target)}"
        if os.path.exists(target):
            return f"File exists: {self._display(target)}"
        return f"Does not exist: {self._display(target)}"

    def _delete(self, target: str) -> str:
        if target == self._root:
            raise ValueError("Refusing to delete the sandbox root")
        if not os.path.exists(target):
            raise ValueError(f"File not found: {self._display(target)}")
        if os.path.isdir(target):
            shutil.rmtree(target)
        else:
            os.remove(target)
        logger.info("Deleted %s", target)
        return f"Deleted: {self._display(target)}"


def _string_arg(arguments: Arguments, key: str) -> str | None:
    value = arguments.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value
