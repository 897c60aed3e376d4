"""Binding discovery for service offerings."""

from mysql_tools.bindings.correlator import BindingCorrelator, InstanceContext
from mysql_tools.bindings.finder import BindingFinder
from mysql_tools.bindings.models import BindingRecord, BindingType

__all__ = [
    "BindingCorrelator",
    "BindingFinder",
    "BindingRecord",
    "BindingType",
    "InstanceContext",
]
