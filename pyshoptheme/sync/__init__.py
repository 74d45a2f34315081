"""Sync engine for pyshoptheme - upload/download/remove and watch mode."""

from .classifier import (
    FilterPolicy,
    is_binary_content,
    is_binary_data,
    is_ignored,
    is_valid_upload_path,
    is_whitelisted,
)
from .engine import SyncDispatcher
from .operations import LocalAssetStore
from .scanner import AssetScanner, enumerate_local_assets
from .watcher import ChangeWatcher

__all__ = [
    "SyncDispatcher",
    "ChangeWatcher",
    "AssetScanner",
    "enumerate_local_assets",
    "LocalAssetStore",
    "FilterPolicy",
    "is_binary_content",
    "is_binary_data",
    "is_ignored",
    "is_valid_upload_path",
    "is_whitelisted",
]
