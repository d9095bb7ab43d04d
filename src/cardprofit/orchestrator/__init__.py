"""Analysis run orchestration."""
from .processor import AnalysisRun, ProfitabilityOrchestrator, list_cached_codes

__all__ = ["AnalysisRun", "ProfitabilityOrchestrator", "list_cached_codes"]
