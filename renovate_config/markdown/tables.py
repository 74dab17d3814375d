"""Markdown table extraction for renovate pull request bodies.

Renovate describes each pull request with a GitHub-flavoured pipe table::

    | Package | Type | Update | Change |
    |---|---|---|---|
    | [dotnet-sdk](https://redirect.github.com/dotnet/sdk) | dotnet-sdk | patch | `8.0.100` -> `8.0.404` |

Only the first table of a body is read. Cells are reduced to their plain
text: link targets, code markers, emphasis and HTML tags are dropped.
"""

import re

from renovate_config.models.domain import PackageUpdateInfo

_IMAGE = re.compile(r"!\[([^\]]*)\]\([^)]*\)")
_LINK = re.compile(r"\[([^\]]*)\]\([^)]*\)")
_HTML_TAG = re.compile(r"<[^>]+>")
_MARKERS = re.compile(r"`|\*\*|~~")
_CELL_SEPARATOR = re.compile(r"(?<!\\)\|")
_DELIMITER_ROW = re.compile(r"^\s*\|?\s*:?-+:?\s*(\|\s*:?-+:?\s*)*\|?\s*$")
_SOURCE_LINK = re.compile(r"\(\s*source\s*\)")


def inner_text(cell: str) -> str:
    """Return the plain text of a Markdown table cell.

    Example:
        >>> inner_text("[Foo](https://example.com) ([source](https://example.com/src))")
        'Foo (source)'
    """
    text = _IMAGE.sub(r"\1", cell)
    text = _LINK.sub(r"\1", text)
    text = _HTML_TAG.sub(" ", text)
    text = _MARKERS.sub("", text)
    return " ".join(text.split())


def _split_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    return [cell.replace("\\|", "|").strip() for cell in _CELL_SEPARATOR.split(row)]


def parse_first_table(markdown: str) -> list[dict[str, str]]:
    """Parse the first pipe table found in ``markdown``.

    Args:
        markdown: Markdown document, typically a pull request body

    Returns:
        One dict per body row mapping header text to cell text. Rows with
        fewer cells than headers simply lack the trailing keys. An empty list
        when the document contains no table.
    """
    lines = markdown.splitlines()

    for index in range(len(lines) - 1):
        if "|" not in lines[index] or not _DELIMITER_ROW.match(lines[index + 1]):
            continue

        headers = [inner_text(cell) for cell in _split_row(lines[index])]
        rows: list[dict[str, str]] = []

        for line in lines[index + 2 :]:
            if not line.strip() or "|" not in line:
                break

            row: dict[str, str] = {}
            for header, cell in zip(headers, _split_row(line)):
                # First column wins when a header repeats.
                row.setdefault(header, inner_text(cell))
            rows.append(row)

        return rows

    return []


def _collation_key(value: str | None) -> tuple[str, str]:
    # Missing cells first, then case-insensitive order, then lowercase before uppercase.
    value = value or ""
    return value.casefold(), value.swapcase()


def extract_package_updates(body: str) -> list[PackageUpdateInfo]:
    """Read the ``Package``, ``Type`` and ``Update`` columns of a PR body.

    The ``(source)`` link renovate appends to package names is removed.
    Rows are sorted by package, then type, then update, ignoring case first
    the way a human-readable listing does; lowercase wins a case-only tie.
    """
    updates: list[PackageUpdateInfo] = []

    for row in parse_first_table(body):
        package = row.get("Package")
        if package is not None:
            package = _SOURCE_LINK.sub("", package).strip()

        updates.append(PackageUpdateInfo(package=package, type=row.get("Type"), update=row.get("Update")))

    return sorted(updates, key=lambda u: (_collation_key(u.package), _collation_key(u.type), _collation_key(u.update)))
