"""Cohort discovery under the transaction data directory."""
from pathlib import Path
from typing import List

from .models import Cohort
from cardprofit.utils.logger import get_logger
from cardprofit.utils.exceptions import ConfigError

logger = get_logger()


def discover_cohorts(mydata_dir: str, max_groups: int = 50) -> List[Cohort]:
    """
    Discover cohort directories and their customer batch files.

    Args:
        mydata_dir: Directory holding one sub-directory per cohort
        max_groups: Upper bound on cohorts returned (sorted by name)

    Returns:
        Cohorts with their *.json customer files, sorted

    Raises:
        ConfigError: max_groups below 1, directory missing or without any cohort
    """
    if max_groups < 1:
        raise ConfigError(f"max_groups must be at least 1, got {max_groups}")

    root = Path(mydata_dir)
    if not root.is_dir():
        raise ConfigError(f"Transaction data directory not found: {root}")

    cohort_dirs = sorted(p for p in root.iterdir() if p.is_dir())
    if not cohort_dirs:
        raise ConfigError(f"No customer groups found in {root}")

    limit = min(max_groups, len(cohort_dirs))
    cohorts = []
    for cohort_dir in cohort_dirs[:limit]:
        customer_files = sorted(p for p in cohort_dir.iterdir() if p.is_file() and p.suffix == ".json")
        cohorts.append(Cohort(name=cohort_dir.name, path=cohort_dir, customer_files=customer_files))

    logger.info(f"Discovered {len(cohort_dirs)} customer groups, analyzing {len(cohorts)}")
    return cohorts
