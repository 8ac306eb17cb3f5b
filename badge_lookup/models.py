from typing import Any, List, Optional

from pydantic import BaseModel

# ==================== RECORD MODELS ====================

class Badge(BaseModel):
    id: str
    badgeId: str
    name: Optional[Any] = None
    description: Optional[Any] = None
    imageUrl: Optional[str] = None
    criteria: Optional[Any] = None

class Assignment(BaseModel):
    id: str
    # Plain text or linked-record lists, as stored in Airtable
    userId: Optional[Any] = None
    sessionId: Optional[Any] = None
    status: Any = "issued"
    issuedAt: Optional[Any] = None
    badgeRef: Optional[str] = None

class ResolvedAssignment(Assignment):
    badge: Badge

# ==================== RESPONSE MODELS ====================

class BadgesResponse(BaseModel):
    count: int
    assignments: List[ResolvedAssignment]

class HealthResponse(BaseModel):
    ok: bool = True
    hasAirtable: bool

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
