"""Merchant-to-industry-code cache."""
import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import Levenshtein

from cardprofit.utils.logger import get_logger

logger = get_logger()


class MerchantCodeCache:
    """
    Key-value store of merchant name -> {industry_code, certainty}.

    Loaded once per run, refreshed from the classifier before analysis and
    persisted at the end. Customer analyses only read from it.
    """

    def __init__(self, path: Optional[Path] = None, fuzzy_threshold: int = 1):
        """
        Initialize merchant code cache.

        Args:
            path: JSON file backing the cache; None keeps it in memory only
            fuzzy_threshold: Maximum Levenshtein distance for fuzzy match
        """
        self.path = Path(path) if path else None
        self.fuzzy_threshold = fuzzy_threshold
        self._entries: Dict[str, dict] = {}
        # normalized name -> first cached merchant with that normalization
        self._normalized: Dict[str, str] = {}
        # normalized query -> resolved cached merchant (None for a miss)
        self._resolved: Dict[str, Optional[str]] = {}
        self._dirty = False

    @classmethod
    def load(cls, path: Optional[str], fuzzy_threshold: int = 1) -> "MerchantCodeCache":
        """Load the cache file; a missing or unreadable file yields an empty cache."""
        cache = cls(Path(path) if path else None, fuzzy_threshold)
        if cache.path is None or not cache.path.exists():
            return cache

        try:
            with open(cache.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except Exception as e:
            logger.warning(f"Failed to load merchant code cache {cache.path}: {e}")
            return cache

        if isinstance(data, dict):
            for merchant, entry in data.items():
                if not isinstance(entry, dict):
                    entry = {"industry_code": entry, "certainty": None}
                cache._put(merchant, entry)
        logger.debug(f"Loaded {len(cache._entries)} merchant codes from {cache.path}")
        return cache

    def __contains__(self, merchant: str) -> bool:
        return merchant in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def dirty(self) -> bool:
        return self._dirty

    def missing(self, merchants: Iterable[str]) -> List[str]:
        """Merchants (deduplicated, in first-seen order) without a cached entry."""
        seen = set()
        result = []
        for merchant in merchants:
            if merchant in seen or merchant in self._entries:
                continue
            seen.add(merchant)
            result.append(merchant)
        return result

    def lookup(self, merchant: str) -> Optional[dict]:
        """
        Look up the cached classification of a merchant.

        Args:
            merchant: Merchant name

        Returns:
            {"industry_code", "certainty"} entry or None if not found
        """
        if merchant in self._entries:
            return self._entries[merchant]

        normalized = self._normalize_merchant(merchant)
        if not normalized:
            return None

        if normalized not in self._resolved:
            self._resolved[normalized] = self._resolve(merchant, normalized)

        cached_merchant = self._resolved[normalized]
        return self._entries[cached_merchant] if cached_merchant is not None else None

    def _resolve(self, merchant: str, normalized: str) -> Optional[str]:
        if normalized in self._normalized:
            return self._normalized[normalized]

        if self.fuzzy_threshold <= 0:
            return None

        for cached_normalized, cached_merchant in self._normalized.items():
            # Short names are too ambiguous to fuzzy match
            if min(len(cached_normalized), len(normalized)) <= self.fuzzy_threshold * 2:
                continue
            distance = Levenshtein.distance(normalized, cached_normalized)
            if distance <= self.fuzzy_threshold:
                logger.debug(f"Fuzzy merchant match: {merchant} -> {cached_merchant} (distance: {distance})")
                return cached_merchant

        return None

    def industry_code(self, merchant: str) -> Optional[str]:
        entry = self.lookup(merchant)
        if not entry or entry.get("industry_code") is None:
            return None
        return str(entry["industry_code"])

    def update(self, mappings: Dict[str, dict]) -> int:
        """Merge classifier results; returns the number of new or changed entries."""
        changed = 0
        for merchant, entry in mappings.items():
            if self._entries.get(merchant) != entry:
                self._put(merchant, entry)
                changed += 1
        if changed:
            self._dirty = True
            self._resolved = {}
        return changed

    def clear(self) -> int:
        count = len(self._entries)
        self._entries = {}
        self._normalized = {}
        self._resolved = {}
        self._dirty = True
        return count

    def _put(self, merchant: str, entry: dict) -> None:
        self._entries[merchant] = entry
        normalized = self._normalize_merchant(merchant)
        if normalized:
            self._normalized.setdefault(normalized, merchant)

    def as_dict(self) -> Dict[str, dict]:
        return dict(self._entries)

    def save(self) -> bool:
        """Persist the cache if it changed since loading; returns True when written."""
        if self.path is None or not self._dirty:
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._entries, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logger.warning(f"Failed to save merchant code cache {self.path}: {e}")
            return False

        self._dirty = False
        logger.info(f"Merchant code cache saved ({len(self._entries)} entries)")
        return True

    @staticmethod
    def _normalize_merchant(merchant: str) -> str:
        """Normalize merchant name for matching."""
        return "".join(merchant.split()).lower()
