from .apikey import APIKeyReconciler
from .asset import AssetReconciler
from .entry import EntryReconciler
from .environment import EnvironmentReconciler
from .locale import LocaleReconciler
from .space import SpaceReconciler
from .webhook import WebhookReconciler

__all__ = [
    "APIKeyReconciler",
    "AssetReconciler",
    "EntryReconciler",
    "EnvironmentReconciler",
    "LocaleReconciler",
    "SpaceReconciler",
    "WebhookReconciler",
]
