from typing import Dict, Union

from pydantic import BaseModel, Field

FieldValue = Union[int, float, str]


class ResourceTotals(BaseModel):
    """Per-domain resource totals summed over the domain's VMs"""
    cpu_total: float = Field(0.0, description="Sum of cpunumber over all VMs")
    memory_total: float = Field(0.0, description="Sum of memory (MB) over all VMs")


class NormalizedRecord(BaseModel):
    """One measurement ready for the accumulator"""
    measurement: str
    tags: Dict[str, str] = Field(default_factory=dict)
    fields: Dict[str, FieldValue] = Field(default_factory=dict)
