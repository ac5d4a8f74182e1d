"""
Accumulator - receives measurements and error reports from a collection cycle.

Errors reported here never stop collection; they are logged and kept so the
caller can see what went wrong in the cycle. Measurements can be rendered as
InfluxDB line protocol.
"""

import logging
import math
import time
from typing import Dict, List, Optional

from cloudstack_collector.exceptions import CollectorError
from cloudstack_collector.models import FieldValue, NormalizedRecord

log = logging.getLogger(__name__)


def _escape_key(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


def _escape_measurement(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace(" ", "\\ ")


def _format_field(value: FieldValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class Accumulator:
    def __init__(self):
        self.records: List[NormalizedRecord] = []
        self.errors: List[Exception] = []
        self.timestamp_ns = time.time_ns()

    def add_fields(self, measurement: str, fields: Dict[str, FieldValue],
                   tags: Optional[Dict[str, str]] = None) -> NormalizedRecord:
        record = NormalizedRecord(measurement=measurement, tags=dict(tags or {}), fields=dict(fields))
        self.records.append(record)
        return record

    def add_error(self, err: Exception) -> None:
        self.errors.append(err)
        if isinstance(err, CollectorError):
            log.warning("%s", err, extra={"error_type": type(err).__name__, **err.context})
        else:
            log.warning("%s: %s", type(err).__name__, err)

    def to_line_protocol(self) -> str:
        """Render every record with fields as one line each.

        nan/inf floats have no line protocol form and are left out.
        """
        lines = []
        for record in self.records:
            fields = {
                k: v for k, v in record.fields.items()
                if not (isinstance(v, float) and not math.isfinite(v))
            }
            if not fields:
                continue
            head = _escape_measurement(record.measurement)
            for key in sorted(record.tags):
                value = record.tags[key]
                if value == "":
                    continue
                head += f",{_escape_key(key)}={_escape_key(value)}"
            body = ",".join(
                f"{_escape_key(k)}={_format_field(v)}" for k, v in sorted(fields.items())
            )
            lines.append(f"{head} {body} {self.timestamp_ns}")
        return "\n".join(lines)
