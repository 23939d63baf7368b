"""Utility functions for parley."""

from parley.utils.helpers import ensure_dir, get_data_path, get_policy_path, setup_logging

__all__ = ["ensure_dir", "get_data_path", "get_policy_path", "setup_logging"]
