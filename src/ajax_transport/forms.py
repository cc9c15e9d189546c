"""Multipart containers and form markup extraction."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from html.parser import HTMLParser
from typing import Any, Union

from .exceptions import EncodingError
from .files import FileHandle

FieldValue = Union[str, bytes, FileHandle]

_SKIPPED_INPUT_TYPES = frozenset({"submit", "button", "reset", "image", "file"})


class FormData:
    """Ordered multipart container; field names may repeat."""

    def __init__(self, fields: Iterable[tuple[str, FieldValue]] | None = None) -> None:
        self._fields: list[tuple[str, FieldValue]] = []
        if fields:
            self.extend(fields)

    def append(self, name: str, value: Any) -> None:
        self._fields.append((str(name), _coerce_value(value)))

    def extend(self, fields: Iterable[tuple[str, Any]]) -> None:
        for name, value in fields:
            self.append(name, value)

    def get(self, name: str, default: FieldValue | None = None) -> FieldValue | None:
        for key, value in self._fields:
            if key == name:
                return value
        return default

    def getall(self, name: str) -> list[FieldValue]:
        return [value for key, value in self._fields if key == name]

    def files(self) -> list[FileHandle]:
        return [value for _, value in self._fields if isinstance(value, FileHandle)]

    def to_fields(self) -> list[tuple[str, Any]]:
        """Return urllib3-compatible field tuples, reading attached files."""

        encoded: list[tuple[str, Any]] = []
        for name, value in self._fields:
            if isinstance(value, FileHandle):
                try:
                    content = value.read_bytes()
                except OSError as exc:
                    raise EncodingError(
                        f"Cannot read file {value.name}: {exc}", details=str(value.path)
                    ) from exc
                encoded.append((name, (value.name, content, value.content_type)))
            else:
                encoded.append((name, value))
        return encoded

    def __iter__(self) -> Iterator[tuple[str, FieldValue]]:
        return iter(list(self._fields))

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FormData):
            return NotImplemented
        return self._fields == other._fields

    def __repr__(self) -> str:
        return f"FormData({self._fields!r})"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> FormData:
        """Build a form from a mapping; sequence values become repeated fields."""

        form = cls()
        for key, value in data.items():
            if isinstance(value, (list, tuple)):
                for item in value:
                    form.append(key, item)
            else:
                form.append(key, value)
        return form


def _coerce_value(value: Any) -> FieldValue:
    if isinstance(value, (str, bytes, FileHandle)):
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class HTMLForm:
    """A `<form>` markup fragment, exposing its successful controls.

    Controls are collected in document order: named and enabled inputs,
    checked checkboxes and radios (value defaults to ``on``), textareas and
    the selected options of each select. Buttons and file inputs are left
    out.
    """

    def __init__(self, markup: str) -> None:
        self.markup = markup
        parser = _FormParser()
        parser.feed(markup)
        parser.close()
        self._fields = parser.fields

    def fields(self) -> list[tuple[str, str]]:
        return list(self._fields)

    def to_form_data(self) -> FormData:
        return FormData(self._fields)

    def __repr__(self) -> str:
        return f"HTMLForm(fields={self._fields!r})"


class _FormParser(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.fields: list[tuple[str, str]] = []
        self._textarea: str | None = None
        self._text: list[str] = []
        self._select: dict[str, Any] | None = None
        self._option: dict[str, Any] | None = None

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        attributes = dict(attrs)
        if tag == "input":
            self._handle_input(attributes)
        elif tag == "textarea":
            name = attributes.get("name")
            if name and "disabled" not in attributes:
                self._textarea = name
                self._text = []
        elif tag == "select":
            self._close_option()
            name = attributes.get("name")
            if name and "disabled" not in attributes:
                self._select = {
                    "name": name,
                    "multiple": "multiple" in attributes,
                    "options": [],
                }
        elif tag == "option" and self._select is not None:
            self._close_option()
            self._option = {
                "value": attributes.get("value"),
                "selected": "selected" in attributes,
                "disabled": "disabled" in attributes,
                "text": [],
            }

    def handle_endtag(self, tag: str) -> None:
        if tag == "textarea" and self._textarea is not None:
            text = "".join(self._text)
            if text.startswith("\n"):
                text = text[1:]
            self.fields.append((self._textarea, text))
            self._textarea = None
        elif tag == "option":
            self._close_option()
        elif tag == "select" and self._select is not None:
            self._close_option()
            self._emit_select(self._select)
            self._select = None

    def handle_data(self, data: str) -> None:
        if self._textarea is not None:
            self._text.append(data)
        elif self._option is not None:
            self._option["text"].append(data)

    def _handle_input(self, attributes: dict[str, str | None]) -> None:
        name = attributes.get("name")
        if not name or "disabled" in attributes:
            return
        kind = (attributes.get("type") or "text").lower()
        if kind in _SKIPPED_INPUT_TYPES:
            return
        if kind in {"checkbox", "radio"}:
            if "checked" not in attributes:
                return
            self.fields.append((name, attributes.get("value") or "on"))
            return
        self.fields.append((name, attributes.get("value") or ""))

    def _close_option(self) -> None:
        if self._option is None or self._select is None:
            return
        option = self._option
        if option["value"] is None:
            option["value"] = " ".join("".join(option["text"]).split())
        self._select["options"].append(option)
        self._option = None

    def _emit_select(self, select: dict[str, Any]) -> None:
        options = [option for option in select["options"] if not option["disabled"]]
        chosen = [option for option in options if option["selected"]]
        if not chosen and not select["multiple"] and options:
            chosen = options[:1]
        if not select["multiple"]:
            chosen = chosen[-1:]
        for option in chosen:
            self.fields.append((select["name"], option["value"]))
