"""Field extractor: turns a loaded form document into field descriptors.

Extraction is a pure function of the captured HTML. Fetching the page is
the browser layer's job; this module never touches the network.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from bs4 import BeautifulSoup, Tag
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from udyam.errors import CatalogNotFoundError, CatalogUnreadableError

logger = logging.getLogger(__name__)

FIELD_TAGS = ["input", "select", "textarea"]


class FieldDescriptor(BaseModel):
    """Normalized metadata for one form control."""

    label: str = ""
    name: str = ""
    type: str = ""
    placeholder: str = ""


_CATALOG_ADAPTER = TypeAdapter(list[FieldDescriptor])


def _collapse(text: str | None) -> str:
    if not text:
        return ""
    return " ".join(text.split())


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return str(value)


def _resolve_label(element: Tag, soup: BeautifulSoup) -> str:
    candidates: list[str] = []

    enclosing = element.find_parent("label")
    if enclosing is not None:
        candidates.append(enclosing.get_text(" "))

    element_id = _attr(element, "id")
    if element_id:
        referencing = soup.find("label", attrs={"for": element_id})
        if isinstance(referencing, Tag):
            candidates.append(referencing.get_text(" "))

    candidates.append(_attr(element, "aria-label"))
    candidates.append(_attr(element, "placeholder"))
    candidates.append(_attr(element, "name"))

    for candidate in candidates:
        text = _collapse(candidate)
        if text:
            return text
    return ""


def describe_element(element: Tag, soup: BeautifulSoup) -> FieldDescriptor:
    """Build the descriptor for a single input/select/textarea element."""
    return FieldDescriptor(
        label=_resolve_label(element, soup),
        name=_attr(element, "name") or _attr(element, "id"),
        type=element.name.lower(),
        placeholder=_attr(element, "placeholder"),
    )


def extract_fields(html: str) -> list[FieldDescriptor]:
    """Extract every form control from ``html`` in document order."""
    soup = BeautifulSoup(html or "", "html.parser")
    fields = [describe_element(element, soup) for element in soup.find_all(FIELD_TAGS)]
    logger.debug("Extracted %d form fields", len(fields))
    return fields


def write_catalog(path: Path, fields: list[FieldDescriptor]) -> Path:
    """Overwrite the catalog at ``path`` with ``fields``.

    The JSON is written to a sibling temp file first and moved into place,
    so readers see either the previous catalog or the new one.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.name}.tmp")
    payload = [field.model_dump() for field in fields]
    tmp_path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp_path.replace(path)
    logger.info("Saved %d fields to %s", len(fields), path)
    return path


def load_catalog(path: Path) -> list[FieldDescriptor]:
    """Read the catalog written by :func:`write_catalog`."""
    if not path.is_file():
        raise CatalogNotFoundError()
    try:
        return _CATALOG_ADAPTER.validate_json(path.read_bytes())
    except (OSError, PydanticValidationError) as exc:
        raise CatalogUnreadableError() from exc
