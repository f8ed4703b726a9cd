"""
Service interfaces for dependency inversion.
Allows swapping implementations without changing business logic.
"""

from .admission import AdmissionGate
from .local_admission import LocalAdmissionGate

__all__ = ['AdmissionGate', 'LocalAdmissionGate']
