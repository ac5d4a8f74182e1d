"""
Domain collector - turns listDomains output into cs_domain measurements.

For each domain: total its VMs' CPU and memory, fold the totals into the
record as cputotal/memorytotal, then split every attribute into tags and
fields. One bad attribute or one unreachable VM listing never costs more
than that attribute or that domain's totals.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from cloudstack_collector.accumulator import Accumulator
from cloudstack_collector.aggregator import aggregate_vm_totals
from cloudstack_collector.cs_common import CloudStackClient
from cloudstack_collector.exceptions import CollectorError, UnexpectedValueType
from cloudstack_collector.models import FieldValue, NormalizedRecord, ResourceTotals
from cloudstack_collector.normalize import (
    AttributeClass,
    JsonKind,
    classify,
    coerce,
    kind_of,
)

log = logging.getLogger(__name__)

MEASUREMENT = "cs_domain"


def domain_totals(client: CloudStackClient, domain_raw: Dict[str, Any], acc: Accumulator) -> ResourceTotals:
    domain_id = domain_raw.get("id")
    if domain_id is None or domain_id == "" or kind_of(domain_id) is not JsonKind.STRING:
        kind = "missing" if domain_id in (None, "") else kind_of(domain_id).value
        acc.add_error(UnexpectedValueType(
            f"domain record has no usable id ({kind}); VM totals skipped", "id", kind
        ))
        return ResourceTotals()
    return aggregate_vm_totals(client, domain_id, acc)


def normalize_attributes(raw: Dict[str, Any], totals: ResourceTotals, acc: Accumulator):
    """Split raw attributes into (tags, fields), reporting and dropping failures."""
    tags: Dict[str, str] = {}
    fields: Dict[str, FieldValue] = {}
    for name, value in raw.items():
        try:
            coerced = coerce(name, value, totals)
        except CollectorError as e:
            acc.add_error(e)
            continue
        if classify(name) is AttributeClass.TAG:
            tags[name] = coerced
        else:
            fields[name] = coerced
    return tags, fields


def build_record(client: CloudStackClient, domain_raw: Dict[str, Any], acc: Accumulator) -> NormalizedRecord:
    totals = domain_totals(client, domain_raw, acc)

    raw = dict(domain_raw)
    raw["cputotal"] = totals.cpu_total
    raw["memorytotal"] = totals.memory_total

    tags, fields = normalize_attributes(raw, totals, acc)
    return acc.add_fields(MEASUREMENT, fields, tags)


def gather(
    client: CloudStackClient,
    acc: Accumulator,
    list_all: bool = True,
    domain_ids: Optional[Sequence[str]] = None,
) -> List[NormalizedRecord]:
    """
    Run one collection cycle.

    A failed listDomains call is reported and re-raised; nothing is
    emitted. Everything below that is reported per domain.
    """
    try:
        domains = client.list_domains(list_all=list_all)
    except CollectorError as e:
        acc.add_error(e)
        raise

    wanted = set(domain_ids or ())
    records = []
    for domain_raw in domains:
        if kind_of(domain_raw) is not JsonKind.OBJECT:
            acc.add_error(UnexpectedValueType(
                "listDomains entry is not an object", "domain", kind_of(domain_raw).value
            ))
            continue
        if wanted:
            domain_id = domain_raw.get("id")
            if domain_id is not None and kind_of(domain_id) is not JsonKind.STRING:
                acc.add_error(UnexpectedValueType(
                    "domain id is not a string; cannot apply domain filter", "id",
                    kind_of(domain_id).value,
                ))
                continue
            if domain_id not in wanted:
                continue
        try:
            records.append(build_record(client, domain_raw, acc))
        except CollectorError as e:
            acc.add_error(e)

    log.info("Collected %d domain records (%d errors reported)", len(records), len(acc.errors))
    return records
