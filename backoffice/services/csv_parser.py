"""
CSV parsing for the legacy ledgers.

Quoted fields may span physical lines: lines are re-joined until the
number of double quotes seen is even. Doubled quotes inside a quoted field
are an escaped quote. Fields are trimmed; missing trailing columns read
as empty strings.
"""
from typing import Dict, List


def parse_csv_line(line: str) -> List[str]:
    fields = []
    current = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    fields.append("".join(current).strip())
    return fields


def split_records(text: str) -> List[List[str]]:
    """Split CSV text into records of fields, skipping blank lines."""
    text = text.lstrip("\ufeff").replace("\r\n", "\n")
    records = []
    pending = None
    for line in text.split("\n"):
        pending = line if pending is None else f"{pending}\n{line}"
        if pending.count('"') % 2:
            continue
        if pending.strip():
            records.append(parse_csv_line(pending))
        pending = None
    # Unterminated quote at end of input
    if pending is not None and pending.strip():
        records.append(parse_csv_line(pending))
    return records


def parse_csv(text: str) -> List[Dict[str, str]]:
    """Header row supplies the keys for every following record."""
    records = split_records(text)
    if not records:
        return []
    headers, rows = records[0], records[1:]
    return [
        {header: (row[i] if i < len(row) else "") for i, header in enumerate(headers)}
        for row in rows
    ]
