"""
VM aggregation - sums CPU and memory over a domain's virtual machines.
"""

import logging

from cloudstack_collector.accumulator import Accumulator
from cloudstack_collector.cs_common import CloudStackClient
from cloudstack_collector.exceptions import CollectorError
from cloudstack_collector.models import ResourceTotals
from cloudstack_collector.normalize import JsonKind, kind_of

log = logging.getLogger(__name__)


def aggregate_vm_totals(client: CloudStackClient, domain_id: str, acc: Accumulator) -> ResourceTotals:
    """
    Refresh the domain's resource counters, then total cpunumber and
    memory across its VMs.

    A failed refresh is reported and the VM listing still runs. A failed
    listing is reported and yields zero totals. VMs that are not objects,
    or lack numeric cpunumber/memory, contribute nothing.
    """
    try:
        client.update_resource_count(domain_id)
    except CollectorError as e:
        acc.add_error(e)

    try:
        vms = client.list_virtual_machines(domain_id)
    except CollectorError as e:
        acc.add_error(e)
        return ResourceTotals()

    cpu_total = 0.0
    memory_total = 0.0
    for vm in vms:
        if kind_of(vm) is not JsonKind.OBJECT:
            continue
        cpu = vm.get("cpunumber")
        if cpu is not None and kind_of(cpu) is JsonKind.NUMBER:
            cpu_total += cpu
        memory = vm.get("memory")
        if memory is not None and kind_of(memory) is JsonKind.NUMBER:
            memory_total += memory

    log.debug("Domain %s: %d VMs, cpu=%s memory=%s", domain_id, len(vms), cpu_total, memory_total)
    return ResourceTotals(cpu_total=cpu_total, memory_total=memory_total)
