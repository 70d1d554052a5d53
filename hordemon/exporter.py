from __future__ import annotations
import csv
import io
from typing import Iterable, List

from .models import DataPoint
from .utils import iso_from_ms, plain_number

HEADER = ["Timestamp", "Kudos", "Kudos Change", "Image Requests", "Text Requests"]


def to_table(points: Iterable[DataPoint]) -> List[list]:
    # a missing change is written as 0, not left blank
    return [
        [
            iso_from_ms(p.timestamp),
            plain_number(p.kudos),
            plain_number(p.kudos_change or 0),
            p.image_requests,
            p.text_requests,
        ]
        for p in points
    ]


def to_csv(points: Iterable[DataPoint]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(HEADER)
    writer.writerows(to_table(points))
    return buf.getvalue()


def export_filename(now_ms: int) -> str:
    return f"horde-monitor-data-{iso_from_ms(now_ms)}.csv"
