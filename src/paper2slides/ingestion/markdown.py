"""Structure extraction for Markdown-flavoured text."""

import re

from paper2slides.ingestion.models import CodeBlock, ImageReference, TableData

HEADER_PATTERN = re.compile(r"^(#{1,6})\s+(.+)$", re.MULTILINE)
IMAGE_PATTERN = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
CODE_BLOCK_PATTERN = re.compile(r"```(\w+)?\n([\s\S]*?)```")
FENCED_CODE_PATTERN = re.compile(r"```[\s\S]*?```")
TABLE_ROW_PATTERN = re.compile(r"^\|(.+)\|$", re.MULTILINE)


def extract_headers(content: str) -> list[str]:
    """Return heading texts (levels 1-6) in document order."""
    return [match.group(2).strip() for match in HEADER_PATTERN.finditer(content)]


def extract_images(content: str) -> list[ImageReference]:
    """Return image references written as ``![alt](src)``."""
    images = []
    for match in IMAGE_PATTERN.finditer(content):
        alt = match.group(1).strip()
        images.append(
            ImageReference(
                src=match.group(2).strip(),
                alt=alt or "Image",
                caption=alt,
            )
        )
    return images


def extract_code_blocks(content: str) -> list[CodeBlock]:
    """Return fenced code blocks; untagged fences default to ``text``."""
    return [
        CodeBlock(language=match.group(1) or "text", code=match.group(2).strip())
        for match in CODE_BLOCK_PATTERN.finditer(content)
    ]


def extract_tables(content: str) -> list[TableData]:
    """Return pipe-delimited tables of at least two rows.

    The first row is the header and the second the separator; anything after
    is data.
    """
    tables: list[TableData] = []
    current: list[str] = []

    for line in content.split("\n"):
        if re.match(r"^\|(.+)\|$", line.strip()):
            current.append(line)
            continue
        if current:
            table = _parse_table(current)
            if table:
                tables.append(table)
            current = []

    if current:
        table = _parse_table(current)
        if table:
            tables.append(table)

    return tables


def _split_row(line: str) -> list[str]:
    cells = line.strip().split("|")[1:-1]
    return [cell.strip() for cell in cells if cell.strip()]


def _parse_table(lines: list[str]) -> TableData | None:
    if len(lines) < 2:
        return None

    headers = _split_row(lines[0])
    rows = [row for row in (_split_row(line) for line in lines[2:]) if row]
    return TableData(headers=headers, rows=rows)


def contains_code(content: str) -> bool:
    """Check for a complete fenced code block."""
    return FENCED_CODE_PATTERN.search(content) is not None


def contains_table(content: str) -> bool:
    """Check for at least one pipe-delimited table row."""
    return TABLE_ROW_PATTERN.search(content) is not None


def contains_image(content: str) -> bool:
    """Check for an image reference."""
    return IMAGE_PATTERN.search(content) is not None
