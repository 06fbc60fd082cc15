"""
Freelancer Onboarding Wizard - controller and session registry.

The controller owns the step index and the draft for one wizard session:

    step 1 (skills, bio) -> 2 (education) -> 3 (availability) -> 4 (agreement)

- advance() gates on the active step's rules and moves forward by one.
- retreat() moves back by one and never validates.
- submit_final() calls the submission gateway once; a second call while the
  first is pending is a no-op.

Drafts live in process memory only. Nothing is written until the final
submit succeeds; sessions are dropped on completion, on abandon and after
WIZARD_SESSION_TTL_MINUTES of inactivity.
"""
import logging
import os
import time
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional

from models import FreelancerDraft
from services.freelancer_service import FreelancerApplicationError, apply_as_freelancer
from services.onboarding_steps import fields_for_step, render_step
from services.onboarding_validation import (
    DEFAULT_LOCALE,
    FIRST_STEP,
    LAST_STEP,
    validate_step,
)

logger = logging.getLogger(__name__)

WIZARD_SESSION_TTL_MINUTES = int(os.getenv("WIZARD_SESSION_TTL_MINUTES", "60"))

SUBMIT_FAILED_BANNER = "Failed to submit application."

Gateway = Callable[[Dict[str, Any], FreelancerDraft], Awaitable[Dict[str, Any]]]


class WizardSessionNotFound(Exception):
    pass


class UnknownDraftField(Exception):
    pass


class FieldNotEditable(Exception):
    """Field belongs to a different step than the active one."""


class WizardBusy(Exception):
    """A final submission is in flight."""


class WizardCompleted(Exception):
    pass


# Wire name -> model attribute, e.g. "portfolioLink" -> "portfolio_link".
DRAFT_FIELD_NAMES = {
    (info.alias or name): name for name, info in FreelancerDraft.model_fields.items()
}


def build_initial_draft(user: Optional[Dict[str, Any]]) -> FreelancerDraft:
    """Defaults for a new wizard, seeded from the user's existing profile."""
    return FreelancerDraft(bio=(user or {}).get("bio") or "")


class WizardController:
    def __init__(
        self,
        identity: Dict[str, Any],
        draft: Optional[FreelancerDraft] = None,
        suggestions: Optional[List[Dict[str, str]]] = None,
        gateway: Gateway = apply_as_freelancer,
        locale: str = DEFAULT_LOCALE,
    ):
        self.session_id = str(uuid.uuid4())
        self.identity = identity
        self.user_id = identity["user_id"]
        self.draft = draft or FreelancerDraft()
        self.suggestions = list(suggestions or [])
        self.gateway = gateway
        self.locale = locale

        self.step = FIRST_STEP.value
        self.errors: Dict[str, str] = {}
        self.banner: Optional[str] = None
        self.in_flight = False
        self.completed = False
        self.result: Optional[Dict[str, Any]] = None
        self.last_activity = time.monotonic()

    def _touch(self):
        self.last_activity = time.monotonic()

    def _ensure_editable(self):
        if self.completed:
            raise WizardCompleted(self.session_id)
        if self.in_flight:
            raise WizardBusy(self.session_id)

    def set_field(self, name: str, value: Any) -> None:
        """Overwrite one draft field owned by the active step."""
        self.set_fields({name: value})

    def set_fields(self, fields: Dict[str, Any]) -> None:
        """
        Overwrite several draft fields owned by the active step.

        The batch is all-or-nothing: every name and value is checked before
        the draft changes. A wrongly typed value raises pydantic's
        ValidationError and leaves the draft untouched.
        """
        self._ensure_editable()
        owned = fields_for_step(self.step)
        for name in fields:
            if name not in DRAFT_FIELD_NAMES:
                raise UnknownDraftField(name)
            if name not in owned:
                raise FieldNotEditable(name)

        self.draft = FreelancerDraft.model_validate({
            **self.draft.model_dump(by_alias=True),
            **fields,
        })

        self.errors = {
            key: message for key, message in self.errors.items()
            if key.split(".")[0] not in fields
        }
        self._touch()

    def advance(self) -> Dict[str, Any]:
        self._ensure_editable()
        self._touch()

        errors = validate_step(self.step, self.draft, self.locale)
        if errors:
            self.errors = errors
            return {"advanced": False, "step": self.step, "errors": errors}

        self.step = min(self.step + 1, LAST_STEP.value)
        self.errors = {}
        self.banner = None
        return {"advanced": True, "step": self.step, "errors": {}}

    def retreat(self) -> Dict[str, Any]:
        # Back navigation is locked while a write is pending.
        if self.in_flight:
            return {"retreated": False, "step": self.step, "busy": True}
        if self.completed:
            raise WizardCompleted(self.session_id)
        self._touch()

        self.step = max(self.step - 1, FIRST_STEP.value)
        self.errors = {}
        return {"retreated": True, "step": self.step, "busy": False}

    async def submit_final(self) -> Dict[str, Any]:
        """
        Submit the draft through the gateway.

        Returns a dict whose ``status`` is one of:
        in_flight, completed, not_ready, invalid, failed, submitted.
        """
        if self.in_flight:
            return {"status": "in_flight", "step": self.step}
        if self.completed:
            return {"status": "completed", "step": self.step, "result": self.result}
        self._touch()

        if self.step != LAST_STEP.value:
            return {"status": "not_ready", "step": self.step}

        errors = validate_step(self.step, self.draft, self.locale)
        if errors:
            self.errors = errors
            return {"status": "invalid", "step": self.step, "errors": errors}

        self.in_flight = True
        self.banner = None
        try:
            result = await self.gateway(self.identity, self.draft.model_copy(deep=True))
        except FreelancerApplicationError as e:
            self.banner = f"{SUBMIT_FAILED_BANNER} {e.detail}".strip()
            logger.warning(f"Wizard {self.session_id} submit failed: {e.detail}")
            return {"status": "failed", "step": self.step, "banner": self.banner}
        finally:
            self.in_flight = False
            self._touch()

        self.completed = True
        self.result = result
        logger.info(f"Wizard {self.session_id} submitted for user {self.user_id}")
        return {"status": "submitted", "step": self.step, "result": result}

    def view(self, search: Optional[str] = None) -> Dict[str, Any]:
        view = render_step(self.step, self.draft, self.errors, self.suggestions, search)
        view.update({
            "session_id": self.session_id,
            "total_steps": LAST_STEP.value,
            "banner": self.banner,
            "submitting": self.in_flight,
            "can_retreat": self.step > FIRST_STEP.value and not self.in_flight,
            "completed": self.completed,
        })
        return view


class WizardSessionRegistry:
    """In-memory wizard sessions, one per user."""

    def __init__(self):
        self._sessions: Dict[str, WizardController] = {}

    def create(
        self,
        identity: Dict[str, Any],
        draft: Optional[FreelancerDraft] = None,
        suggestions: Optional[List[Dict[str, str]]] = None,
        gateway: Gateway = apply_as_freelancer,
        locale: str = DEFAULT_LOCALE,
    ) -> WizardController:
        user_id = identity["user_id"]
        own = [(sid, c) for sid, c in self._sessions.items() if c.user_id == user_id]
        if any(c.in_flight for _, c in own):
            raise WizardBusy(user_id)

        # A fresh mount replaces any earlier idle wizard of the same user.
        for session_id, _ in own:
            del self._sessions[session_id]

        controller = WizardController(
            identity,
            draft=draft,
            suggestions=suggestions,
            gateway=gateway,
            locale=locale,
        )
        self._sessions[controller.session_id] = controller
        logger.info(f"Wizard session {controller.session_id} created for user {user_id}")
        return controller

    def get(self, session_id: str, user_id: str) -> WizardController:
        controller = self._sessions.get(session_id)
        if controller is None or controller.user_id != user_id:
            raise WizardSessionNotFound(session_id)
        return controller

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def sweep_expired(self, ttl_seconds: Optional[float] = None) -> int:
        """Drop sessions idle longer than the TTL; pending submits are kept."""
        ttl = ttl_seconds if ttl_seconds is not None else WIZARD_SESSION_TTL_MINUTES * 60
        cutoff = time.monotonic() - ttl
        expired = [
            session_id for session_id, controller in self._sessions.items()
            if controller.last_activity < cutoff and not controller.in_flight
        ]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def __len__(self):
        return len(self._sessions)


wizard_sessions = WizardSessionRegistry()
