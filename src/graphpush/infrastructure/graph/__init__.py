"""In-memory graph traversal: structural flattening and save planning."""

from graphpush.infrastructure.graph.flatten import flatten, flatten_tree
from graphpush.infrastructure.graph.plan import SavePlan, build_save_plan

__all__ = ["SavePlan", "build_save_plan", "flatten", "flatten_tree"]
