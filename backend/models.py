from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional, Dict, Any, List
from datetime import datetime
from enum import Enum
import uuid

# ============================================================================
# ENUMS (System Constants)
# ============================================================================

class UserRole(str, Enum):
    ROLE_CLIENT = "client"
    ROLE_FREELANCER = "freelancer"
    ROLE_ADMIN = "admin"

class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"

class FreelancerStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

class Availability(str, Enum):
    FULL_TIME = "Full-time"
    PART_TIME = "Part-time"
    WEEKENDS = "Weekends"

# Display labels shown by the UI; "Weekends" doubles as the project-based option.
AVAILABILITY_LABELS = {
    Availability.FULL_TIME.value: "Full-time",
    Availability.PART_TIME.value: "Part-time",
    Availability.WEEKENDS.value: "Weekends/Project-based",
}

class AuditAction(str, Enum):
    # Auth
    USER_LOGIN_SUCCESS = "USER_LOGIN_SUCCESS"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"

    # Route Guards
    ROUTE_GUARD_REDIRECT = "ROUTE_GUARD_REDIRECT"

    # Freelancer onboarding
    FREELANCER_APPLICATION_SUBMITTED = "FREELANCER_APPLICATION_SUBMITTED"
    FREELANCER_APPLICATION_FAILED = "FREELANCER_APPLICATION_FAILED"
    FREELANCER_APPROVED = "FREELANCER_APPROVED"
    FREELANCER_REJECTED = "FREELANCER_REJECTED"

# ============================================================================
# DRAFT (onboarding wizard state)
# ============================================================================

class EducationEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    institution: str = ""
    degree: str = ""
    field: str = ""
    year: str = ""

class CertificationEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    issuer: str = ""
    year: str = ""

class FreelancerDraft(BaseModel):
    """In-progress "become a freelancer" form state.

    Serialized with the camelCase aliases the UI uses; either spelling is
    accepted on input.
    """
    model_config = ConfigDict(extra="ignore", populate_by_name=True, validate_assignment=True)

    skills: List[str] = Field(default_factory=list)
    bio: str = ""
    education: List[EducationEntry] = Field(default_factory=list)
    certifications: List[CertificationEntry] = Field(default_factory=list)
    portfolio_link: str = Field(default="", alias="portfolioLink")
    availability: str = ""
    working_hours: str = Field(default="", alias="workingHours")
    agree_to_freelancer_terms: bool = Field(default=False, alias="agreeToFreelancerTerms")
    agree_to_quality_standards: bool = Field(default=False, alias="agreeToQualityStandards")

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

# ============================================================================
# DOCUMENT MODELS
# ============================================================================

class FreelancerProfile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    user_id: str
    skills: List[str]
    bio: str
    education: List[EducationEntry] = Field(default_factory=list)
    certifications: List[CertificationEntry] = Field(default_factory=list)
    portfolio_link: Optional[str] = None
    availability: Availability
    working_hours: str
    agreed_to_terms_at: datetime
    created_at: datetime = Field(default_factory=lambda: datetime.now(datetime.now().astimezone().tzinfo))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(datetime.now().astimezone().tzinfo))

class SkillSuggestion(BaseModel):
    id: str
    name: str

class AuditLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    audit_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    action: AuditAction
    actor_role: Optional[str] = None
    actor_id: Optional[str] = None
    resource_type: Optional[str] = None
    resource_id: Optional[str] = None
    before_state: Optional[Dict[str, Any]] = None
    after_state: Optional[Dict[str, Any]] = None
    metadata: Optional[Dict[str, Any]] = None
    reason_code: Optional[str] = None
    ip_address: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(datetime.now().astimezone().tzinfo))

# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Dict[str, Any]

class FieldUpdateRequest(BaseModel):
    fields: Dict[str, Any]

class FreelancerReviewRequest(BaseModel):
    reason: Optional[str] = None
