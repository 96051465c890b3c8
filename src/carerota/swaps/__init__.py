# carerota/swaps - Shift swap lifecycle
from .manager import ApprovalOutcome, SwapExecution, SwapManager, SwapRequestOutcome

__all__ = ["SwapManager", "SwapRequestOutcome", "ApprovalOutcome", "SwapExecution"]
