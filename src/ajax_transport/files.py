"""File selection behind a picker capability.

`FileSelector` owns the single file input it ever creates. The input is
created on first use, reconfigured on every call and never destroyed.
Selections run one at a time on a dedicated worker, so a second call made
while a prompt is open waits for the first to finish instead of rewriting
the input's ``accept``/``multiple`` attributes under it.

A prompt the user never answers never resolves: there is no timeout and
no cancellation event to observe.
"""

from __future__ import annotations

import logging
import mimetypes
import shlex
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import typer

from .config import DEFAULT_ACCEPT_FILTER

logger = logging.getLogger(__name__)

ChangeListener = Callable[[Sequence["FileHandle"]], None]


@dataclass(frozen=True, slots=True)
class FileHandle:
    """A user-chosen file."""

    name: str
    path: Path
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: str | Path) -> FileHandle:
        resolved = Path(path).expanduser()
        guessed, _ = mimetypes.guess_type(resolved.name)
        return cls(
            name=resolved.name,
            path=resolved,
            content_type=guessed or "application/octet-stream",
        )

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


def matches_accept(handle: FileHandle, accept: str) -> bool:
    """Check a file against an HTML ``accept`` list (``image/*,.pdf``)."""

    patterns = [part.strip().lower() for part in accept.split(",") if part.strip()]
    if not patterns:
        return True
    content_type = handle.content_type.split(";", 1)[0].strip().lower()
    name = handle.name.lower()
    for pattern in patterns:
        if pattern in {"*", "*/*"}:
            return True
        if pattern.startswith("."):
            if name.endswith(pattern):
                return True
        elif pattern.endswith("/*"):
            if content_type.startswith(pattern[:-1]):
                return True
        elif content_type == pattern:
            return True
    return False


class FileInput(ABC):
    """A hidden file input: configurable, clickable, emits a change event."""

    accept: str = DEFAULT_ACCEPT_FILTER
    multiple: bool = False

    @abstractmethod
    def click(self, on_change: ChangeListener) -> None:
        """Open the native prompt; call `on_change` with the chosen files."""


class FilePicker(ABC):
    """Capability able to create file inputs."""

    @abstractmethod
    def create_file_input(self) -> FileInput:
        """Return a new, unconfigured file input."""


class PromptFileInput(FileInput):
    """File input answered on the terminal with whitespace separated paths."""

    def __init__(
        self,
        prompt: Callable[..., str] = typer.prompt,
        echo: Callable[..., None] = typer.secho,
    ) -> None:
        self._prompt = prompt
        self._echo = echo

    def click(self, on_change: ChangeListener) -> None:
        label = "Files to upload" if self.multiple else "File to upload"
        if self.accept != DEFAULT_ACCEPT_FILTER:
            label += f" ({self.accept})"
        while True:
            answer = self._prompt(label)
            handles = self._parse(answer)
            if handles:
                on_change(handles)
                return

    def _parse(self, answer: str) -> list[FileHandle]:
        try:
            paths = shlex.split(answer)
        except ValueError as exc:
            self._echo(f"Could not parse paths: {exc}", err=True, fg=typer.colors.RED)
            return []
        if not paths:
            return []
        if len(paths) > 1 and not self.multiple:
            self._echo("Only one file may be selected.", err=True, fg=typer.colors.RED)
            return []
        handles: list[FileHandle] = []
        for raw in paths:
            handle = FileHandle.from_path(raw)
            if not handle.path.is_file():
                self._echo(f"File not found: {raw}", err=True, fg=typer.colors.RED)
                return []
            if not matches_accept(handle, self.accept):
                self._echo(
                    f"{handle.name} does not match {self.accept}", err=True, fg=typer.colors.RED
                )
                return []
            handles.append(handle)
        return handles


class PromptFilePicker(FilePicker):
    """Create terminal-backed file inputs."""

    def __init__(
        self,
        prompt: Callable[..., str] = typer.prompt,
        echo: Callable[..., None] = typer.secho,
    ) -> None:
        self._prompt = prompt
        self._echo = echo

    def create_file_input(self) -> FileInput:
        return PromptFileInput(prompt=self._prompt, echo=self._echo)


class FileSelector:
    """Drive a single cached file input and hand back the chosen files."""

    def __init__(self, picker: FilePicker | None = None) -> None:
        self._picker = picker or PromptFilePicker()
        self._input: FileInput | None = None
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ajax-file-selector")

    def select_files(
        self,
        *,
        accept: str = DEFAULT_ACCEPT_FILTER,
        multiple: bool = False,
    ) -> Future[list[FileHandle]]:
        """Queue a selection; the future resolves with files in reported order."""

        return self._executor.submit(self._select, accept, multiple)

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _select(self, accept: str, multiple: bool) -> list[FileHandle]:
        file_input = self._file_input()
        file_input.accept = accept
        file_input.multiple = multiple
        logger.debug("File input configured (accept=%s, multiple=%s)", accept, multiple)

        changed: Future[list[FileHandle]] = Future()
        file_input.click(lambda chosen: changed.set_result(list(chosen)))
        files = changed.result()
        logger.info("Selected %d file(s)", len(files))
        return files

    def _file_input(self) -> FileInput:
        if self._input is None:
            self._input = self._picker.create_file_input()
        return self._input
