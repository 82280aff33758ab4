"""
Vendor Resolver

Decides whether a free-text vendor name from an invoice matches an existing Zoho Books
vendor, or whether a new vendor has to be created. Matching rules:
- several directory lookups (exact, uppercased, first three words, first word)
- normalized exact match scores 1.0, substring containment scores 0.8
- a score of 0.8 or more is a match
"""
import logging
import re
from typing import Dict, List, Optional

from app.schemas.vendor import VendorDetails, VendorMatchCandidate, VendorResolution
from app.services.exceptions import VendorResolutionError

logger = logging.getLogger(__name__)

MATCH_THRESHOLD = 0.8
EXACT_SCORE = 1.0
CONTAINS_SCORE = 0.8


def normalize_vendor_name(name: Optional[str]) -> str:
    """Uppercase, strip punctuation, collapse whitespace"""
    if not name:
        return ''
    normalized = re.sub(r'[^\w\s]', '', name.upper())
    return ' '.join(normalized.split())


def calculate_similarity(name_a: Optional[str], name_b: Optional[str]) -> float:
    a = normalize_vendor_name(name_a)
    b = normalize_vendor_name(name_b)
    if not a or not b:
        return 0.0
    if a == b:
        return EXACT_SCORE
    if a in b or b in a:
        return CONTAINS_SCORE
    return 0.0


def _is_vendor(contact: Dict) -> bool:
    return contact.get("contact_type") == "vendor" or bool(contact.get("is_vendor"))


class VendorResolver:
    """
    Args:
        directory: external contact directory exposing search_contacts(params) and
            create_vendor(details), normally a ZohoBooksClient
    """

    def __init__(self, directory):
        self.directory = directory

    def build_queries(self, vendor_name: str) -> List[Dict[str, str]]:
        name = vendor_name.strip()
        words = name.split()
        queries = [
            {"contact_name": name},
            {"contact_name": name.upper()},
            {"contact_name_contains": ' '.join(words[:3])},
            {"contact_name_contains": words[0]},
        ]
        unique = []
        for query in queries:
            if query not in unique:
                unique.append(query)
        return unique

    async def find_candidates(self, vendor_name: str) -> List[VendorMatchCandidate]:
        """Run every lookup, keep vendor contacts, dedupe by id in merge order, and score them"""
        seen = set()
        candidates = []
        for query in self.build_queries(vendor_name):
            contacts = await self.directory.search_contacts(query)
            for contact in contacts:
                contact_id = contact.get("contact_id")
                if not contact_id or contact_id in seen or not _is_vendor(contact):
                    continue
                seen.add(contact_id)
                name = contact.get("contact_name") or contact.get("vendor_name") or ''
                candidates.append(VendorMatchCandidate(
                    contact_id=str(contact_id),
                    name=name,
                    score=calculate_similarity(vendor_name, name)
                ))
        return candidates

    @staticmethod
    def best_candidate(candidates: List[VendorMatchCandidate]) -> Optional[VendorMatchCandidate]:
        # Strict comparison: on equal scores the first candidate in merge order wins
        best = None
        for candidate in candidates:
            if best is None or candidate.score > best.score:
                best = candidate
        return best

    async def resolve(self, vendor_name: Optional[str], create_if_missing: bool = True) -> VendorResolution:
        """
        Resolve a vendor name to a Zoho vendor id.

        Args:
            vendor_name: Vendor name as extracted from the invoice
            create_if_missing: Create the vendor when nothing matches. When False the
                result has found=False and the caller must confirm creation.

        Returns:
            VendorResolution
        """
        if not vendor_name or not vendor_name.strip():
            raise VendorResolutionError("No vendor name on invoice; cannot find or create vendor", status_code=400)

        candidates = await self.find_candidates(vendor_name)
        best = self.best_candidate(candidates)

        if best and best.score >= MATCH_THRESHOLD:
            logger.info(f"Vendor '{vendor_name}' matched '{best.name}' ({best.contact_id}, score {best.score})")
            return VendorResolution(
                found=True,
                vendor_id=best.contact_id,
                matched_name=best.name,
                created=False,
                score=best.score
            )

        if not create_if_missing:
            logger.info(f"No vendor match for '{vendor_name}' among {len(candidates)} candidates")
            return VendorResolution(found=False, suggested_name=vendor_name.strip().upper())

        contact = await self.create_vendor(VendorDetails(name=vendor_name))
        return VendorResolution(
            found=True,
            vendor_id=str(contact["contact_id"]),
            matched_name=contact.get("contact_name"),
            created=True
        )

    async def create_vendor(self, details: VendorDetails) -> Dict:
        """Create a vendor; the name is stored uppercased for consistency"""
        name = details.name.strip().upper()
        if not name:
            raise VendorResolutionError("Vendor name is required", status_code=400)
        contact = await self.directory.create_vendor(details.model_copy(update={"name": name}))
        logger.info(f"Created vendor '{name}' ({contact.get('contact_id')})")
        return contact
