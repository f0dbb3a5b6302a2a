"""Lenovo firmware preparation for OS deployment task sequences."""

from .reconciler import FirmwareReconciler
from .wmi import ManagementInterface, read_profile

__all__ = [
    "FirmwareReconciler",
    "ManagementInterface",
    "read_profile",
]
