"""Dashboard summaries computed from a user's stored parameters."""
from __future__ import annotations

import re
from collections import OrderedDict
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from labdash.models.lab_parameter import LabParameter

# Leading number only, like parseFloat: "13.5 g/dL" -> 13.5. A comma before
# exactly three digits groups thousands ("7,500"); any other comma is a decimal.
_NUMBER = re.compile(
    r"^[<>]?=?\s*(?P<int>-?(?:\d{1,3}(?:,\d{3})+(?!\d)|\d+))(?:[.,](?P<frac>\d+))?"
)


def parse_numeric(value: str) -> Optional[float]:
    """Read the leading number of a lab value, or None when there is none."""
    m = _NUMBER.match((value or "").strip())
    if not m:
        return None
    number = m.group("int").replace(",", "")
    if m.group("frac"):
        number = f"{number}.{m.group('frac')}"
    return float(number)


def _formatted_date(iso: str) -> str:
    d = date.fromisoformat(iso)
    return f"{d.strftime('%b')} {d.day}, {d.year}"


def compute_stats(parameters: Iterable[LabParameter]) -> Dict[str, Any]:
    params = list(parameters)
    return {
        "totalParameters": len(params),
        "totalReports": len({p.test_date for p in params}),
        "abnormalCount": sum(1 for p in params if p.status in ("Low", "High")),
        "lastUpdated": datetime.now(timezone.utc).isoformat(),
    }


def build_trends(parameters: Iterable[LabParameter]) -> List[Dict[str, Any]]:
    """Group numeric values per parameter name, oldest first."""
    grouped: "OrderedDict[str, List[LabParameter]]" = OrderedDict()
    for p in sorted(parameters, key=lambda p: (p.parameter_name, p.test_date)):
        grouped.setdefault(p.parameter_name, []).append(p)

    trends: List[Dict[str, Any]] = []
    for name, rows in grouped.items():
        points = []
        latest = None
        for row in rows:
            number = parse_numeric(row.value)
            if number is None:
                continue
            try:
                formatted = _formatted_date(row.test_date)
            except ValueError:
                continue
            points.append({"date": row.test_date, "value": number, "formattedDate": formatted})
            latest = row
        if not points:
            continue
        trends.append({
            "parameterName": name,
            "unit": latest.unit,
            "normalRange": latest.normal_range,
            "data": points,
        })
    return trends


__all__ = ["compute_stats", "build_trends", "parse_numeric"]
