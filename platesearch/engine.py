"""Multi-stage plate search engine for member car records."""

import logging
from typing import Iterable

from platesearch import (
    EXACT,
    FUZZY,
    NORMALIZED,
    MaskedView,
    MatchResult,
    MemberRecord,
    SearchIndex,
)
from platesearch.scoring import (
    DEFAULT_MIN_CONFIDENCE,
    EXACT_CONFIDENCE,
    FUZZY_THRESHOLD,
    NORMALIZED_CONFIDENCE,
    is_searchable_length,
    normalize_plate,
    similarity,
    to_confidence,
)

log = logging.getLogger(__name__)

ACTIVE_STATUS = 'Active Member'
INACTIVE_STATUS = 'Non-Member'

# Number of leading last-name characters left unmasked
VISIBLE_LAST_NAME_CHARS = 2

MIN_SUGGEST_LENGTH = 2


def build_index(records: Iterable[MemberRecord]) -> SearchIndex:
    """Build the exact and normalized plate indexes.

    Records with a blank plate are skipped. Duplicate keys are not an
    error: the last record for a key wins.
    """
    index = SearchIndex()
    for record in records:
        raw = (record.plate_number or '').strip()
        if not raw:
            continue
        index.exact[raw.upper()] = record
        key = normalize_plate(raw)
        if key:
            index.normalized[key] = record
    return index


def mask_last_name(last_name: str) -> str:
    """Keep the first two characters of a last name and star out the rest.

    Names shorter than two characters are returned unchanged.
    """
    if len(last_name) < VISIBLE_LAST_NAME_CHARS:
        return last_name
    hidden = max(0, len(last_name) - VISIBLE_LAST_NAME_CHARS)
    return last_name[:VISIBLE_LAST_NAME_CHARS] + '*' * hidden


def mask_personal_info(record: MemberRecord) -> MaskedView:
    """Produce the display-safe view of a member record.

    The full first name is kept, the last name is masked. No field
    besides name, plate, manufacturer, car type and membership status
    is carried over.

    Args:
        record: Member record from the roster.

    Returns:
        MaskedView of the record.
    """
    return MaskedView(
        display_name=f"{record.first_name} {mask_last_name(record.last_name)}",
        plate_number=record.plate_number,
        manufacturer=record.manufacturer,
        car_type=record.car_type,
        member_status=ACTIVE_STATUS if record.is_active_member else INACTIVE_STATUS,
    )


class PlateSearchEngine:
    """Answers 'who owns this plate' queries over a roster snapshot.

    The indexes are built once in the constructor. When the roster
    changes, build a new engine instead of mutating this one.
    """

    def __init__(
        self,
        records: Iterable[MemberRecord],
        min_acceptable_confidence: int = DEFAULT_MIN_CONFIDENCE,
    ) -> None:
        if not 0 <= min_acceptable_confidence <= 100:
            raise ValueError(
                f"min_acceptable_confidence muss zwischen 0 und 100 liegen: "
                f"{min_acceptable_confidence}"
            )
        self._records = tuple(records)
        self._index = build_index(self._records)
        self.min_acceptable_confidence = min_acceptable_confidence
        log.info(
            "Suchindex aufgebaut: %d Eintraege, %d Kennzeichen",
            len(self._records), len(self._index.normalized),
        )

    @property
    def records(self) -> tuple[MemberRecord, ...]:
        return self._records

    @property
    def size(self) -> int:
        """Number of distinct normalized plates in the index."""
        return len(self._index.normalized)

    def search(self, query) -> MatchResult | None:
        """Look up the owner of a plate.

        Uses a multi-stage approach, first hit wins:
        1. Exact match on the uppercased query (confidence 100)
        2. Normalized match on the alphanumeric-only query (confidence 95)
        3. Fuzzy match by Levenshtein similarity (> 0.8)

        Queries that normalize to fewer than 3 or more than 10 characters
        stop before stage 2.

        Args:
            query: Plate as typed by the user.

        Returns:
            MatchResult, or None if nothing matched.
        """
        if not isinstance(query, str) or not query.strip():
            return None

        # Stage 1: Exact match
        record = self._index.exact.get(query.strip().upper())
        if record is not None:
            return MatchResult(record=record, match_type=EXACT, confidence=EXACT_CONFIDENCE)

        normalized = normalize_plate(query)
        if not is_searchable_length(normalized):
            return None

        # Stage 2: Normalized match
        record = self._index.normalized.get(normalized)
        if record is not None:
            return MatchResult(
                record=record, match_type=NORMALIZED, confidence=NORMALIZED_CONFIDENCE,
            )

        # Stage 3: Fuzzy match
        return self._try_fuzzy_match(normalized)

    def _try_fuzzy_match(self, normalized: str) -> MatchResult | None:
        """Find the most similar indexed plate.

        Ties keep the key seen first in index order.
        """
        best_key: str | None = None
        best_sim = 0.0

        for key in self._index.normalized:
            sim = similarity(normalized, key)
            if sim > best_sim:
                best_sim = sim
                best_key = key

        if best_key is None or best_sim <= FUZZY_THRESHOLD:
            return None

        return MatchResult(
            record=self._index.normalized[best_key],
            match_type=FUZZY,
            confidence=to_confidence(best_sim),
        )

    def is_acceptable(self, result: MatchResult | None) -> bool:
        """Apply the caller-side confidence cutoff to a search result."""
        return result is not None and result.confidence >= self.min_acceptable_confidence

    def lookup(self, query) -> MaskedView | None:
        """Search a plate and return the masked owner view of a usable hit."""
        result = self.search(query)
        if not self.is_acceptable(result):
            return None
        return mask_personal_info(result.record)

    def mask_personal_info(self, record: MemberRecord) -> MaskedView:
        return mask_personal_info(record)

    def suggest(self, partial, limit: int = 5) -> list[MaskedView]:
        """Suggest roster plates starting with a partial input.

        Args:
            partial: Partially typed plate (at least two characters).
            limit: Maximum number of suggestions.

        Returns:
            Masked views of matching records, in roster order.
        """
        prefix = normalize_plate(partial)
        if len(prefix) < MIN_SUGGEST_LENGTH or limit <= 0:
            return []

        suggestions: list[MaskedView] = []
        for record in self._records:
            if normalize_plate(record.plate_number).startswith(prefix):
                suggestions.append(mask_personal_info(record))
                if len(suggestions) >= limit:
                    break
        return suggestions

    def by_manufacturer(self, name) -> list[MaskedView]:
        """List the masked records of one car manufacturer (case-insensitive)."""
        if not isinstance(name, str) or not name.strip():
            return []
        wanted = name.strip().casefold()
        return [
            mask_personal_info(record) for record in self._records
            if record.manufacturer.casefold() == wanted
        ]

    def active_members(self) -> list[MaskedView]:
        """List the masked records of all active members, in roster order."""
        return [mask_personal_info(r) for r in self._records if r.is_active_member]
