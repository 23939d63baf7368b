"""Permission policy storage."""

from parley.policy.store import MemoryPolicyStore, StoredPermission, evaluate_filter

__all__ = ["MemoryPolicyStore", "StoredPermission", "evaluate_filter"]
