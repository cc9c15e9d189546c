"""Command-line interface for issuing AJAX-style requests."""
from __future__ import annotations

import json
import os
from collections.abc import Callable, Sequence
from concurrent.futures import Future
from pathlib import Path
from typing import Any

import typer

try:  # pragma: no cover - exercised in runtime environments
    from rich.console import Console
    from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn
except ImportError as exc:  # pragma: no cover - optional dependency guard
    raise RuntimeError(
        "The CLI requires Rich for progress rendering. Install the CLI extras via "
        "'pip install ajax-transport[cli]' to enable this command."
    ) from exc

from .client import AjaxClient
from .config import ContentType
from .exceptions import EncodingError, ResponseRejected, TransportError, ValidationError
from .files import FileHandle, FileInput, FilePicker, matches_accept
from .http import Response

app = typer.Typer(help="Send AJAX-style HTTP requests with progress output.", no_args_is_help=True)

_CONTENT_TYPES = {
    "json": ContentType.JSON,
    "urlencoded": ContentType.URLENCODED,
    "form": ContentType.FORM,
}

err_console = Console(stderr=True, force_terminal=False, color_system=None)


class _PresetFileInput(FileInput):
    """File input answered up front from ``--file`` options."""

    def __init__(self, paths: Sequence[Path]) -> None:
        self._paths = list(paths)

    def click(self, on_change) -> None:
        handles = [FileHandle.from_path(path) for path in self._paths]
        for handle in handles:
            if not handle.path.is_file():
                raise typer.BadParameter(f"File not found: {handle.path}")
            if not matches_accept(handle, self.accept):
                raise typer.BadParameter(f"{handle.name} does not match {self.accept}")
        if len(handles) > 1 and not self.multiple:
            raise typer.BadParameter("Pass --multiple to upload more than one file.")
        on_change(handles)


class _PresetFilePicker(FilePicker):
    def __init__(self, paths: Sequence[Path]) -> None:
        self._paths = paths

    def create_file_input(self) -> FileInput:
        return _PresetFileInput(self._paths)


def _build_client(
    base_url: str | None,
    verify_ssl: bool,
    cert_path: Path | None,
    file_picker: FilePicker | None = None,
) -> AjaxClient:
    verify_target: bool | str
    if cert_path:
        expanded_cert = cert_path.expanduser()
        if not expanded_cert.exists():
            raise typer.BadParameter("Certificate file not found for --cert option.")
        if not verify_ssl:
            raise typer.BadParameter("Cannot combine --cert with --no-verify.")
        verify_target = str(expanded_cert)
    else:
        verify_target = verify_ssl

    return AjaxClient(base_url=base_url, verify_ssl=verify_target, file_picker=file_picker)


def _coerce_simple(value: str):
    v = value.strip()
    if not v:
        return ""
    low = v.lower()
    if low in {"true", "yes", "on"}:
        return True
    if low in {"false", "no", "off"}:
        return False
    if low in {"null", "none"}:
        return None
    try:
        if "." in v:
            return float(v)
        return int(v)
    except ValueError:
        return v


def parse_pairs(pairs: Sequence[str], *, coerce: bool = False) -> dict[str, Any]:
    """Parse ``key=value`` items; a bare ``key`` maps to True."""

    out: dict[str, Any] = {}
    for part in pairs:
        if "=" in part:
            key, val = part.split("=", 1)
            out[key.strip()] = _coerce_simple(val) if coerce else val
        else:
            out[part.strip()] = True
    return out


def parse_headers(lines: Sequence[str]) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in lines:
        name, separator, value = line.partition(":")
        if not separator or not name.strip():
            raise typer.BadParameter(f"Header must look like 'Name: value', got {line!r}")
        headers[name.strip()] = value.strip()
    return headers


def _echo_body(response: Response) -> None:
    if isinstance(response.body, (dict, list)):
        typer.echo(json.dumps(response.body, indent=2))
    else:
        typer.echo(response.body)


def _run(send: Callable[[Callable[[int], None]], Future[Response]], quiet: bool) -> None:
    with Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=err_console,
        transient=True,
        disable=quiet,
    ) as progress:
        task = progress.add_task("Transferring", total=100)
        try:
            future = send(lambda percentage: progress.update(task, completed=percentage))
            response = future.result()
        except (ValidationError, EncodingError) as exc:
            typer.secho(str(exc), err=True, fg=typer.colors.RED)
            raise typer.Exit(code=2) from exc
        except ResponseRejected as exc:
            typer.secho(
                f"Request failed (status {exc.status_code})", err=True, fg=typer.colors.RED
            )
            _echo_body(exc.response)
            raise typer.Exit(code=1) from exc
        except TransportError as exc:
            typer.secho(str(exc), err=True, fg=typer.colors.RED)
            raise typer.Exit(code=1) from exc
    _echo_body(response)


def _shared_options() -> dict[str, Any]:  # pragma: no cover - helper indirection
    env_verify = os.getenv("AJAX_VERIFY_SSL")
    default_verify = env_verify is None or env_verify.strip().lower() not in {
        "0",
        "false",
        "no",
        "off",
    }

    return {
        "base_url": typer.Option(
            None, "--base-url", envvar="AJAX_BASE_URL", help="Base URL for relative request URLs."
        ),
        "verify_ssl": typer.Option(
            default_verify,
            "--verify/--no-verify",
            envvar="AJAX_VERIFY_SSL",
            help="Enable or disable TLS certificate verification.",
            show_default=True,
        ),
        "cert_path": typer.Option(
            None,
            "--cert",
            envvar="AJAX_CA_CERT",
            help="Path to a custom CA bundle for TLS verification.",
        ),
        "header": typer.Option([], "--header", "-H", help="Request header as 'Name: value'."),
        "data": typer.Option([], "--data", "-d", help="Payload field in key=value form."),
        "ratio": typer.Option(
            90, "--ratio", help="Share of the progress bar given to the upload phase.", show_default=True
        ),
        "quiet": typer.Option(False, "--quiet", "-q", help="Hide the progress bar."),
    }


_SHARED_OPTIONS = _shared_options()


@app.command("get")
def get_command(
    url: str = typer.Argument(..., help="Request URL."),
    base_url: str | None = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    header: list[str] = _SHARED_OPTIONS["header"],
    data: list[str] = _SHARED_OPTIONS["data"],
    ratio: int = _SHARED_OPTIONS["ratio"],
    quiet: bool = _SHARED_OPTIONS["quiet"],
) -> None:
    """Send a GET request; --data fields go into the query string."""

    headers = parse_headers(header)
    with _build_client(base_url, verify_ssl, cert_path) as client:
        _run(
            lambda progress: client.get(
                {
                    "url": url,
                    "headers": headers,
                    "data": parse_pairs(data) or None,
                    "upload_ratio": ratio,
                    "progress_callback": progress,
                }
            ),
            quiet,
        )


@app.command("post")
def post_command(
    url: str = typer.Argument(..., help="Request URL."),
    base_url: str | None = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    header: list[str] = _SHARED_OPTIONS["header"],
    data: list[str] = _SHARED_OPTIONS["data"],
    json_body: str | None = typer.Option(
        None, "--json-body", help="Raw JSON document to send instead of --data fields."
    ),
    content_type: str = typer.Option(
        "json", "--type", "-t", help="Body encoding: json, urlencoded or form.", show_default=True
    ),
    method: str = typer.Option("POST", "--method", "-X", help="HTTP method.", show_default=True),
    ratio: int = _SHARED_OPTIONS["ratio"],
    quiet: bool = _SHARED_OPTIONS["quiet"],
) -> None:
    """Send a request with a body (POST by default)."""

    selected = _CONTENT_TYPES.get(content_type.lower())
    if selected is None:
        raise typer.BadParameter("--type must be one of json, urlencoded or form.")
    if json_body is not None:
        try:
            payload: Any = json.loads(json_body)
        except ValueError as exc:
            raise typer.BadParameter(f"--json-body is not valid JSON: {exc}") from exc
    else:
        payload = parse_pairs(data, coerce=selected is ContentType.JSON)

    headers = parse_headers(header)
    with _build_client(base_url, verify_ssl, cert_path) as client:
        _run(
            lambda progress: client.request(
                {
                    "url": url,
                    "method": method,
                    "headers": headers,
                    "data": payload,
                    "content_type": selected,
                    "upload_ratio": ratio,
                    "progress_callback": progress,
                }
            ),
            quiet,
        )


@app.command("upload")
def upload_command(
    url: str = typer.Argument(..., help="Upload URL."),
    base_url: str | None = _SHARED_OPTIONS["base_url"],
    verify_ssl: bool = _SHARED_OPTIONS["verify_ssl"],
    cert_path: Path | None = _SHARED_OPTIONS["cert_path"],
    header: list[str] = _SHARED_OPTIONS["header"],
    data: list[str] = _SHARED_OPTIONS["data"],
    files: list[Path] = typer.Option(
        [], "--file", "-f", help="File to upload; prompts interactively when omitted."
    ),
    accept: str = typer.Option("*/*", "--accept", help="Accepted MIME types or extensions."),
    multiple: bool = typer.Option(False, "--multiple", help="Allow several files."),
    field_name: str = typer.Option("files", "--field-name", help="Multipart field for the files."),
    ratio: int = _SHARED_OPTIONS["ratio"],
    quiet: bool = _SHARED_OPTIONS["quiet"],
) -> None:
    """Choose files and POST them as multipart form data."""

    picker = _PresetFilePicker(files) if files else None
    headers = parse_headers(header)

    def announce(chosen: list[FileHandle]) -> None:
        if not quiet:
            names = ", ".join(handle.name for handle in chosen)
            err_console.print(f"Uploading {names}")

    with _build_client(base_url, verify_ssl, cert_path, picker) as client:
        _run(
            lambda progress: client.transport(
                {
                    "url": url,
                    "headers": headers,
                    "data": parse_pairs(data) or None,
                    "accept_filter": accept,
                    "allow_multiple_files": multiple,
                    "file_field_name": field_name,
                    "before_send_hook": announce,
                    "upload_ratio": ratio,
                    "progress_callback": progress,
                }
            ),
            quiet,
        )
