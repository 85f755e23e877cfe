#!/usr/bin/env python
from __future__ import annotations

import argparse
import csv
from pathlib import Path
from xml.etree import ElementTree as ET

from openpyxl import Workbook


HEADER = ["Titel", "Antragsteller", "Betrag", "Status", "Eingereicht"]

ROWS = [
    ["Neue Sitzbänke Innenhof", "AStA", "1200", "offen", "2024-04-02"],
    ["Fahrradreparaturstation", "Fachschaft Informatik", "850", "angenommen", "2024-04-11"],
    ["Lesesaal länger öffnen", "Studierendenrat", "", "in Prüfung", "2024-05-06"],
]


def _write_csv(output: Path, delimiter: str) -> None:
    with output.open("w", newline="", encoding="utf-8") as fp:
        writer = csv.writer(fp, delimiter=delimiter)
        writer.writerow(HEADER)
        writer.writerows(ROWS)


def _write_xlsx(output: Path) -> None:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Anträge"
    sheet.append(HEADER)
    for row in ROWS:
        sheet.append([int(value) if value.isdigit() else value for value in row])
    workbook.save(output)


def _write_xml(output: Path) -> None:
    root = ET.Element("proposals")
    for index, row in enumerate(ROWS, start=1):
        node = ET.SubElement(root, "proposal", id=str(index))
        for field, value in zip(HEADER, row):
            ET.SubElement(node, field.lower()).text = value
    ET.ElementTree(root).write(output, encoding="utf-8", xml_declaration=True)


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample proposals file for the WebDAV share")
    parser.add_argument("--output", required=True, help="Output path (.csv, .xlsx or .xml)")
    parser.add_argument("--delimiter", default=";", help="CSV delimiter")
    args = parser.parse_args()

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    suffix = output.suffix.lower()
    if suffix == ".csv":
        _write_csv(output, args.delimiter)
    elif suffix == ".xlsx":
        _write_xlsx(output)
    elif suffix == ".xml":
        _write_xml(output)
    else:
        parser.error(f"unsupported output format: {suffix}")

    print(f"Sample proposals file written: {output}")


if __name__ == "__main__":
    main()
