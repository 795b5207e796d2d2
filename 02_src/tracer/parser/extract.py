"""Header/body extraction for request and response blocks."""

import re

BODY_MARKER = re.compile(r"^Body:\s*(.*)$", re.IGNORECASE)
HEADER_LINE = re.compile(r"^([^:]+):\s*(.*)$")


def extract_headers_and_body(lines: list[str]) -> tuple[dict[str, str], str]:
    """
    Split block lines into headers and body.

    Lines before the first ``Body:`` line are ``Name: value`` headers (blank
    lines and lines without a colon are skipped). The ``Body:`` remainder and
    every following line, blank ones included, form the body.

    Args:
        lines: Block lines after the request/status line.

    Returns:
        (headers, body) with the body trimmed as a whole
    """
    headers: dict[str, str] = {}
    body_chunks: list[str] = []
    in_body = False

    for raw in lines:
        if in_body:
            body_chunks.append(raw)
            continue

        trimmed = raw.strip()
        if not trimmed:
            continue

        body_match = BODY_MARKER.match(trimmed)
        if body_match:
            body_chunks.append(body_match.group(1))
            in_body = True
            continue

        header_match = HEADER_LINE.match(trimmed)
        if header_match:
            headers[header_match.group(1)] = header_match.group(2)

    return headers, "\n".join(body_chunks).strip()
