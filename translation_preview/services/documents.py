"""Markdown document helpers: loading, section extraction and heading discovery."""
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Union

from ..models.translation import HeadingInfo

HEADING_PATTERN = re.compile(r"^(#+)\s")
MAX_SECTION_HEADING_LEVEL = 2
FENCE_MARKERS = ("```", "~~~")


def read_document(path: Union[str, Path]) -> str:
    """Read a Markdown document as UTF-8 text.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the path is not a regular file
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"Document not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Not a file: {file_path}")
    return file_path.read_text(encoding="utf-8")


def heading_level(line: str) -> Optional[int]:
    """Return the heading level of a line, or None if it is not a ``# heading``."""
    match = HEADING_PATTERN.match(line)
    return len(match.group(1)) if match else None


def extract_section(text: str, line: int) -> Optional[str]:
    """Extract the section that starts at a heading line.

    The section runs from the heading to the line before the next heading of
    the same or a higher level (fewer ``#``), or to the end of the document.

    Args:
        text: Full document text
        line: 0-based line number of the heading

    Returns:
        Section text, or None if ``line`` is out of range or not a heading
    """
    lines = text.splitlines()
    if line < 0 or line >= len(lines):
        return None

    level = heading_level(lines[line])
    if level is None:
        return None

    section = [lines[line]]
    for current in lines[line + 1 :]:
        current_level = heading_level(current)
        if current_level is not None and current_level <= level:
            break
        section.append(current)

    return "\n".join(section)


def find_translatable_headings(
    text: str, max_level: int = MAX_SECTION_HEADING_LEVEL
) -> List[HeadingInfo]:
    """Find headings that can be translated as standalone sections.

    Uses the same heading rule as ``extract_section``, so every returned line
    is a valid section start. Lines inside fenced code blocks are skipped.

    Args:
        text: Full document text
        max_level: Deepest heading level to include (``#`` and ``##`` by default)

    Returns:
        Headings in document order
    """
    headings = []
    in_fence = False
    for number, raw in enumerate(text.splitlines()):
        if raw.lstrip().startswith(FENCE_MARKERS):
            in_fence = not in_fence
            continue
        if in_fence:
            continue
        level = heading_level(raw)
        if level is not None and level <= max_level:
            headings.append(HeadingInfo(line=number, level=level, title=raw[level:].strip()))
    return headings


def section_document_id(path: Union[str, Path], line: int) -> str:
    """Identity of a section request, used to tell superseded requests apart."""
    return f"{Path(path)}#L{line}"
