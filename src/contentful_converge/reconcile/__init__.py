"""Declarative reconciliation of Contentful entities."""

from .base import EntityReconciler, ReconcileResult
from .diagnostics import Diagnostic, Severity, has_error, translate_error
from .lifecycle import LifecycleState, LifecycleStateMachine, Transition
from .mapper import LocalizedField, LocalizedFieldMapper

__all__ = [
    "Diagnostic",
    "EntityReconciler",
    "LifecycleState",
    "LifecycleStateMachine",
    "LocalizedField",
    "LocalizedFieldMapper",
    "ReconcileResult",
    "Severity",
    "Transition",
    "has_error",
    "translate_error",
]
