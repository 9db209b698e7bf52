"""AI rewrite of article bodies."""

from .orchestrator import RewriteOrchestrator, estimate_cost, split_metadata, strip_code_fence

__all__ = ["RewriteOrchestrator", "estimate_cost", "split_metadata", "strip_code_fence"]
