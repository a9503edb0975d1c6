"""Core module for plate-search."""

from dataclasses import dataclass, field

# Match types, ordered by priority
EXACT = 'exact'
NORMALIZED = 'normalized'
FUZZY = 'fuzzy'


@dataclass(frozen=True)
class MemberRecord:
    """Represents a member car record from the roster."""

    first_name: str
    last_name: str
    plate_number: str     # Raw, as stored
    manufacturer: str
    car_type: str
    is_active_member: bool


@dataclass
class MatchResult:
    """Result of looking up a plate query in the roster."""

    record: MemberRecord
    match_type: str       # exact, normalized, fuzzy
    confidence: int       # 0 – 100


@dataclass(frozen=True)
class MaskedView:
    """Privacy-masked representation of a member record, safe for display."""

    display_name: str
    plate_number: str
    manufacturer: str
    car_type: str
    member_status: str


@dataclass
class SearchIndex:
    """Lookup indexes derived from a roster snapshot."""

    exact: dict[str, MemberRecord] = field(default_factory=dict)       # uppercased raw plate
    normalized: dict[str, MemberRecord] = field(default_factory=dict)  # alphanumeric-only plate
