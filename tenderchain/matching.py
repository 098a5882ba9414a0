"""
Category to bidder-type matching.

A tender's category (and optional sector/specification text) is matched
against a small fixed keyword vocabulary by case-insensitive substring.
There is no ranking or weighting; an unmatched tender is offered to
bidders of every type.
"""
import logging
from types import MappingProxyType
from typing import FrozenSet, List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from tenderchain.models import BidderType, User, UserType

logger = logging.getLogger(__name__)

CATEGORY_BIDDER_TYPES: Mapping[str, FrozenSet[BidderType]] = MappingProxyType({
    "Construction": frozenset({BidderType.CONTRACTOR}),
    "Infrastructure": frozenset({BidderType.CONTRACTOR}),
    "Renovation": frozenset({BidderType.CONTRACTOR}),
    "Software Development": frozenset({BidderType.DEVELOPER}),
    "IT Services": frozenset({BidderType.DEVELOPER}),
    "Digital Solutions": frozenset({BidderType.DEVELOPER}),
    "Technology": frozenset({BidderType.DEVELOPER}),
    "Equipment": frozenset({BidderType.SUPPLIER}),
    "Materials": frozenset({BidderType.SUPPLIER}),
    "Goods": frozenset({BidderType.SUPPLIER}),
    "Supply Chain": frozenset({BidderType.SUPPLIER}),
    "Professional Services": frozenset({BidderType.CONSULTANT}),
    "Advisory": frozenset({BidderType.CONSULTANT}),
    "Design": frozenset({BidderType.CONSULTANT}),
    "Consulting": frozenset({BidderType.CONSULTANT}),
})

# Categories shown to each bidder type when browsing tenders
BIDDER_TYPE_CATEGORIES: Mapping[BidderType, Tuple[str, ...]] = MappingProxyType({
    BidderType.CONTRACTOR: ("Construction", "Infrastructure", "Renovation", "Maintenance", "Civil Works"),
    BidderType.DEVELOPER: ("Software Development", "IT Services", "Digital Solutions", "Technology", "Web Development"),
    BidderType.SUPPLIER: ("Equipment", "Materials", "Goods", "Supply Chain", "Procurement"),
    BidderType.CONSULTANT: ("Professional Services", "Advisory", "Design", "Consulting", "Management"),
})

ALL_BIDDER_TYPES: FrozenSet[BidderType] = frozenset(BidderType)


def match_bidder_types(tender_category: str, tender_sector: Optional[str] = None) -> FrozenSet[BidderType]:
    """Return the bidder types whose keywords occur in the category or sector text.

    Falls back to every bidder type when nothing matches, so a tender with
    an unusual category still reaches the whole bidder pool.
    """
    category_text = (tender_category or "").lower()
    sector_text = tender_sector.lower() if tender_sector else None

    matched = set()
    for keyword, bidder_types in CATEGORY_BIDDER_TYPES.items():
        needle = keyword.lower()
        if needle in category_text or (sector_text and needle in sector_text):
            matched.update(bidder_types)

    if not matched:
        return ALL_BIDDER_TYPES
    return frozenset(matched)


def get_interested_bidders(db: Session, tender_category: str, tender_sector: Optional[str] = None) -> List[str]:
    bidder_types = match_bidder_types(tender_category, tender_sector)
    logger.debug(
        "Tender category %r matched bidder types %s",
        tender_category,
        sorted(t.value for t in bidder_types),
    )

    bidders = db.query(User.id).filter(
        User.user_type == UserType.BIDDER,
        User.bidder_type.in_([t.value for t in bidder_types]),
        User.is_verified.is_(True),
    ).all()
    return [str(row.id) for row in bidders]
