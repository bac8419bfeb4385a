"""Role-aware and static permission checks."""

from warden_core.evaluator.evaluator import Evaluator, has_permission

__all__ = ["Evaluator", "has_permission"]
