from __future__ import annotations

import csv
from pathlib import Path

from batch_groups.models import DEFAULT_GROUP_PREFIX, Group, Partition

DEFAULT_EXPORT_FILENAME = "batch-groups.txt"
NAME_HEADERS = {"name", "names", "participant", "participant name"}
XLSX_HEADER = ["group", "member"]


def format_group_text(group: Group, prefix: str = DEFAULT_GROUP_PREFIX) -> str:
    lines = [f"{prefix} {group.id}:"]
    lines.extend(f"- {member}" for member in group.members)
    return "\n".join(lines)


def format_partition_text(partition: Partition, prefix: str = DEFAULT_GROUP_PREFIX) -> str:
    ordered = sorted(partition.groups, key=lambda group: group.id)
    return "\n\n".join(format_group_text(group, prefix) for group in ordered)


def write_partition_text(path: Path, partition: Partition, prefix: str = DEFAULT_GROUP_PREFIX) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_partition_text(partition, prefix) + "\n", encoding="utf-8")


def write_partition_xlsx(path: Path, partition: Partition, prefix: str = DEFAULT_GROUP_PREFIX) -> None:
    try:
        from openpyxl import Workbook
    except ImportError as exc:
        raise RuntimeError(
            "Writing .xlsx files requires openpyxl. Install with: pip install openpyxl"
        ) from exc

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = "groups"
    worksheet.append(XLSX_HEADER)
    for group in sorted(partition.groups, key=lambda group: group.id):
        for member in group.members:
            worksheet.append([f"{prefix} {group.id}", member])
    path.parent.mkdir(parents=True, exist_ok=True)
    workbook.save(path)


def write_partition(path: Path, partition: Partition, prefix: str = DEFAULT_GROUP_PREFIX) -> None:
    if path.suffix.lower() == ".xlsx":
        write_partition_xlsx(path, partition, prefix)
    else:
        write_partition_text(path, partition, prefix)


def _strip_header(names: list[str]) -> list[str]:
    if names and names[0].strip().lower() in NAME_HEADERS:
        return names[1:]
    return names


def _read_xlsx_firstcol(path: Path, sheet_name: str | None = None) -> list[str]:
    try:
        from openpyxl import load_workbook
    except ImportError as exc:
        raise RuntimeError(
            "Reading .xlsx files requires openpyxl. Install with: pip install openpyxl"
        ) from exc

    workbook = load_workbook(path, data_only=True, read_only=True)
    if sheet_name:
        if sheet_name not in workbook.sheetnames:
            raise ValueError(
                f"Sheet '{sheet_name}' not found in {path}. Available sheets: {workbook.sheetnames}"
            )
        worksheet = workbook[sheet_name]
    else:
        worksheet = workbook[workbook.sheetnames[0]]

    names: list[str] = []
    for row in worksheet.iter_rows(values_only=True):
        if not row or row[0] is None:
            continue
        value = str(row[0]).strip()
        if value:
            names.append(value)
    workbook.close()
    return names


def read_names_file(path: Path, sheet_name: str | None = None) -> list[str]:
    """Read participant names from the first column of a .txt, .csv or .xlsx file."""
    suffix = path.suffix.lower()
    if suffix == ".xlsx":
        return _strip_header(_read_xlsx_firstcol(path, sheet_name=sheet_name))
    if suffix == ".csv":
        with path.open("r", newline="", encoding="utf-8-sig") as handle:
            reader = csv.reader(handle)
            names = [row[0].strip() for row in reader if row and row[0].strip()]
        return _strip_header(names)
    if suffix in {".txt", ""}:
        text = path.read_text(encoding="utf-8-sig")
        return [line.strip() for line in text.splitlines() if line.strip()]
    raise ValueError(f"Unsupported file type '{path.suffix}'. Use .txt, .csv or .xlsx")
