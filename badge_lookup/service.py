import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Optional

from .config import BadgeConfig
from .errors import ValidationError
from .models import Assignment, Badge, BadgesResponse, ResolvedAssignment
from .store import AirtableStore, RecordStore

logger = logging.getLogger(__name__)

# Checked after the configured issued-at field
ISSUED_AT_FALLBACK_FIELDS = ["Date Assigned", "IssuedAt"]


def image_url(fields: Dict, image_field: str, image_url_field: str) -> Optional[str]:
    """Pick the badge image: first attachment's url, else a plain url value"""
    value = fields.get(image_field) or fields.get(image_url_field)
    if isinstance(value, list):
        first = value[0] if value else None
        if isinstance(first, dict):
            return first.get("url")
        return first or None
    return value or None


def _issued_at_key(item: ResolvedAssignment):
    """Comparable form of issuedAt: numbers by value, everything else as text"""
    value = item.issuedAt
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, float(value), "")
    return (0, 0.0, "" if value is None else str(value))


class BadgeLookupService:
    """
    Resolves a user's badge assignments into full badge details.

    Stateless: one instance can serve any number of requests. Badge
    references are resolved one at a time unless config.concurrency > 1.
    """

    def __init__(self, config: BadgeConfig, store: RecordStore):
        config.validate()
        self.config = config
        self.fields = config.fields
        self.store = store

    # ==================== ASSIGNMENTS ====================

    def fetch_assignments(self, user_id: str, session_id: Optional[str] = None) -> List[Dict]:
        """Fetch up to max_assignments rows for this user (and session), newest first"""
        filters = {self.fields.assignment_user: user_id}
        if session_id:
            filters[self.fields.assignment_session] = session_id

        sort = None
        if self.fields.assignment_issued_at:
            sort = ["-" + self.fields.assignment_issued_at]

        return self.store.select(
            self.config.tables.assignments,
            filters,
            sort=sort,
            limit=self.config.max_assignments,
        )

    def badge_ref(self, fields: Dict) -> Optional[str]:
        """Linked badge record id if present, else the explicit badge id field"""
        linked = fields.get(self.fields.assignment_badge_link)
        if isinstance(linked, list) and linked:
            return linked[0]
        badge_id = fields.get(self.fields.assignment_badge_id)
        return str(badge_id) if badge_id else None

    def to_assignment(self, record: Dict) -> Assignment:
        fields = record.get("fields", {})

        issued_at = None
        for name in [self.fields.assignment_issued_at] + ISSUED_AT_FALLBACK_FIELDS:
            if name and fields.get(name):
                issued_at = fields[name]
                break

        return Assignment(
            id=record["id"],
            userId=fields.get(self.fields.assignment_user),
            sessionId=fields.get(self.fields.assignment_session),
            status=fields.get(self.fields.assignment_status) or "issued",
            issuedAt=issued_at,
            badgeRef=self.badge_ref(fields),
        )

    # ==================== BADGES ====================

    def to_badge(self, record: Dict) -> Badge:
        fields = record.get("fields", {})
        return Badge(
            id=record["id"],
            badgeId=str(fields.get(self.fields.badge_id) or record["id"]),
            name=fields.get(self.fields.badge_name),
            description=fields.get(self.fields.badge_description),
            imageUrl=image_url(fields, self.fields.badge_image, self.fields.badge_image_url),
            criteria=fields.get(self.fields.badge_criteria),
        )

    def lookup_badge(self, ref: str) -> Optional[Badge]:
        """
        Resolve a badge reference: by record id first, then by the badge id
        column. Returns None when neither matches.
        """
        table = self.config.tables.badges
        record = self.store.find(table, ref)
        if record is None:
            matches = self.store.select(table, {self.fields.badge_id: ref}, limit=1)
            record = matches[0] if matches else None

        if record is None:
            logger.info("Badge reference %r did not resolve", ref)
            return None
        return self.to_badge(record)

    def resolve_refs(self, refs: List[str]) -> Dict[str, Badge]:
        """Look up each reference once; unresolved references are left out"""
        if self.config.concurrency > 1 and len(refs) > 1:
            with ThreadPoolExecutor(max_workers=self.config.concurrency) as pool:
                badges = list(pool.map(self.lookup_badge, refs))
        else:
            badges = [self.lookup_badge(ref) for ref in refs]
        return {ref: badge for ref, badge in zip(refs, badges) if badge is not None}

    # ==================== LOOKUP ====================

    def resolve_badges(self, user_id: Optional[str], session_id: Optional[str] = None) -> List[ResolvedAssignment]:
        """
        Return the user's assignments joined with their badges.

        Assignments whose badge reference is missing or unresolved are
        dropped. Output is ordered by issuedAt descending with undated rows
        last; rows with equal dates keep the order Airtable returned them in.
        """
        user_id = (user_id or "").strip()
        if not user_id:
            raise ValidationError("userId required")
        session_id = (session_id or "").strip() or None

        records = self.fetch_assignments(user_id, session_id)
        assignments = [self.to_assignment(record) for record in records]

        unique_refs = list(dict.fromkeys(a.badgeRef for a in assignments if a.badgeRef))
        badges = self.resolve_refs(unique_refs)

        resolved = [
            ResolvedAssignment(**assignment.model_dump(), badge=badges[assignment.badgeRef])
            for assignment in assignments
            if assignment.badgeRef in badges
        ]

        # Two stable passes: dated rows newest first, then undated rows last
        resolved.sort(key=_issued_at_key, reverse=True)
        resolved.sort(key=lambda item: item.issuedAt is None)

        logger.info(
            "Resolved %d of %d assignments for user %r (session %r)",
            len(resolved), len(assignments), user_id, session_id,
        )
        return resolved

    def lookup(self, user_id: Optional[str], session_id: Optional[str] = None) -> BadgesResponse:
        assignments = self.resolve_badges(user_id, session_id)
        return BadgesResponse(count=len(assignments), assignments=assignments)


def build_service(config: BadgeConfig) -> BadgeLookupService:
    """Create a service talking to the configured Airtable base"""
    return BadgeLookupService(config, AirtableStore.from_config(config))
