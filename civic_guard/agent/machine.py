"""
Guided Report State Machine

Language -> District -> Panchayat -> Village -> Street -> Landmark -> Title
-> Category -> Urgency -> Description -> Evidence -> Processing -> Summary
-> Completed, with Edit going from Summary back to District.

`reduce(state, event, catalog)` is pure: it returns a new ConversationState or
raises ValidationError / InvalidTransitionError. Remote calls (summary,
emotion) happen outside and come back in as SummaryReady / SummaryFailed.
"""
from enum import Enum
from typing import Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field

from ..domain.errors import InvalidTransitionError, ValidationError
from ..domain.models import GeneratedSummary, IssueCategory, Language, Urgency, User
from ..infrastructure.locations import LocationCatalog
from .evidence_store import EvidenceSnapshot
from .fields import (
    CATEGORY_OPTIONS,
    URGENCY_OPTIONS,
    ReportFields,
    location_options,
    require_text,
    validate_evidence,
)
from .matching import find_best_match
from .translations import t


class Stage(str, Enum):
    LANGUAGE = "language"
    DISTRICT = "district"
    PANCHAYAT = "panchayat"
    VILLAGE = "village"
    STREET = "street"
    LANDMARK = "landmark"
    TITLE = "title"
    CATEGORY = "category"
    URGENCY = "urgency"
    DESCRIPTION = "description"
    EVIDENCE = "evidence"
    PROCESSING = "processing"
    SUMMARY = "summary"
    COMPLETED = "completed"


FIELD_STAGES = [
    Stage.DISTRICT,
    Stage.PANCHAYAT,
    Stage.VILLAGE,
    Stage.STREET,
    Stage.LANDMARK,
    Stage.TITLE,
    Stage.CATEGORY,
    Stage.URGENCY,
    Stage.DESCRIPTION,
]
SELECT_STAGES = {Stage.DISTRICT, Stage.PANCHAYAT, Stage.VILLAGE, Stage.CATEGORY, Stage.URGENCY}
OPTIONAL_STAGES = {Stage.LANDMARK}

NEXT_STAGE: Dict[Stage, Stage] = {
    stage: (FIELD_STAGES[i + 1] if i + 1 < len(FIELD_STAGES) else Stage.EVIDENCE)
    for i, stage in enumerate(FIELD_STAGES)
}

PROMPT_KEYS: Dict[Stage, str] = {
    **{stage: f"{stage.value}_prompt" for stage in FIELD_STAGES},
    Stage.EVIDENCE: "evidence_prompt_message",
}


# --- Events ---

class SelectLanguage(BaseModel):
    kind: Literal["select_language"] = "select_language"
    language: Language


class SubmitValue(BaseModel):
    """Typed or selected value; None submits the pending/prefilled value"""
    kind: Literal["submit"] = "submit"
    value: Optional[str] = None


class Skip(BaseModel):
    kind: Literal["skip"] = "skip"


class SpeechTranscript(BaseModel):
    kind: Literal["speech"] = "speech"
    transcript: str
    is_final: bool = True


class RequestSummary(BaseModel):
    kind: Literal["request_summary"] = "request_summary"
    evidence: EvidenceSnapshot


class SummaryReady(BaseModel):
    kind: Literal["summary_ready"] = "summary_ready"
    summary: GeneratedSummary


class SummaryFailed(BaseModel):
    kind: Literal["summary_failed"] = "summary_failed"
    message: str = ""


class Confirm(BaseModel):
    kind: Literal["confirm"] = "confirm"


class Edit(BaseModel):
    kind: Literal["edit"] = "edit"


Event = Union[
    SelectLanguage,
    SubmitValue,
    Skip,
    SpeechTranscript,
    RequestSummary,
    SummaryReady,
    SummaryFailed,
    Confirm,
    Edit,
]

_FIELD_EVENTS = {SubmitValue: None, SpeechTranscript: None}

# stage -> event type -> target stage (None = the stage's NEXT_STAGE)
TRANSITIONS: Dict[Stage, Dict[type, Optional[Stage]]] = {
    Stage.LANGUAGE: {SelectLanguage: Stage.DISTRICT},
    **{stage: dict(_FIELD_EVENTS) for stage in FIELD_STAGES},
    Stage.EVIDENCE: {RequestSummary: Stage.PROCESSING},
    Stage.PROCESSING: {SummaryReady: Stage.SUMMARY, SummaryFailed: Stage.EVIDENCE},
    Stage.SUMMARY: {Confirm: Stage.COMPLETED, Edit: Stage.DISTRICT},
    Stage.COMPLETED: {},
}
TRANSITIONS[Stage.LANDMARK][Skip] = None


# --- State ---

class Turn(BaseModel):
    role: Literal["bot", "user"]
    content: str


class ConversationState(BaseModel):
    stage: Stage = Stage.LANGUAGE
    language: Language = Language.EN
    fields: ReportFields = Field(default_factory=ReportFields)
    transcript: List[Turn] = Field(default_factory=list)
    pending_input: str = ""
    last_error: Optional[str] = None
    summary: Optional[GeneratedSummary] = None

    @property
    def field_name(self) -> Optional[str]:
        return self.stage.value if self.stage in FIELD_STAGES else None

    def prompt(self) -> Optional[str]:
        key = PROMPT_KEYS.get(self.stage)
        return t(self.language, key) if key else None


def _bot(content: str) -> Turn:
    return Turn(role="bot", content=content)


def _user(content: str) -> Turn:
    return Turn(role="user", content=content)


def cascade_location(fields: ReportFields, catalog: LocationCatalog) -> ReportFields:
    """Snap panchayat/village to the first valid option when the parent changed"""
    if not len(catalog):
        return fields
    panchayats = catalog.panchayat_names(fields.district)
    panchayat = fields.panchayat if fields.panchayat in panchayats else (panchayats[0] if panchayats else "")
    villages = catalog.village_names(fields.district, panchayat)
    village = fields.village if fields.village in villages else (villages[0] if villages else "")
    return fields.model_copy(update={"panchayat": panchayat, "village": village})


def initial_state(user: Optional[User], catalog: LocationCatalog) -> ConversationState:
    """Fresh conversation with location fields prefilled from the user profile"""
    fields = ReportFields()
    if user is not None:
        fields = ReportFields(
            district=user.district,
            panchayat=user.panchayat,
            village=user.village,
            street=user.street,
        )
    if len(catalog) and fields.district not in catalog.district_names():
        districts = catalog.district_names()
        fields = fields.model_copy(update={"district": districts[0] if districts else ""})
    return ConversationState(
        fields=cascade_location(fields, catalog),
        transcript=[_bot(t(Language.EN, "welcome"))],
    )


def stage_options(state: ConversationState, catalog: LocationCatalog) -> Optional[List[str]]:
    """Valid values for select stages, None for free-text stages"""
    if state.stage in (Stage.DISTRICT, Stage.PANCHAYAT, Stage.VILLAGE):
        return location_options(state.stage.value, state.fields, catalog)
    if state.stage == Stage.CATEGORY:
        return CATEGORY_OPTIONS
    if state.stage == Stage.URGENCY:
        return URGENCY_OPTIONS
    return None


def current_value(state: ConversationState) -> str:
    name = state.field_name
    if name is None:
        return ""
    value = getattr(state.fields, name)
    return value.value if isinstance(value, Enum) else value


# --- Reducer ---

def reduce(state: ConversationState, event: Event, catalog: LocationCatalog) -> ConversationState:
    allowed = TRANSITIONS[state.stage]
    if type(event) not in allowed:
        if state.stage == Stage.COMPLETED:
            raise InvalidTransitionError("This report has already been submitted.")
        raise InvalidTransitionError(
            f"'{event.kind}' is not allowed during the {state.stage.value} stage."
        )

    if isinstance(event, SelectLanguage):
        return _select_language(state, event)
    if isinstance(event, SubmitValue):
        return _submit(state, event.value, catalog)
    if isinstance(event, Skip):
        return _advance(state, "", t(state.language, "skipped"), catalog)
    if isinstance(event, SpeechTranscript):
        return _speech(state, event, catalog)
    if isinstance(event, RequestSummary):
        return _request_summary(state, event)
    if isinstance(event, SummaryReady):
        return state.model_copy(update={
            "stage": Stage.SUMMARY,
            "summary": event.summary,
            "last_error": None,
        })
    if isinstance(event, SummaryFailed):
        message = t(state.language, "ai_error")
        return state.model_copy(update={
            "stage": Stage.EVIDENCE,
            "last_error": message,
            "transcript": [*state.transcript, _bot(message)],
        })
    if isinstance(event, Confirm):
        return state.model_copy(update={
            "stage": Stage.COMPLETED,
            "transcript": [*state.transcript, _bot(t(state.language, "completed"))],
        })
    # Edit: restart data entry, evidence stays with the session
    return state.model_copy(update={
        "stage": Stage.DISTRICT,
        "summary": None,
        "pending_input": "",
        "last_error": None,
        "transcript": [
            _bot(t(state.language, "edit_prompt")),
            _bot(t(state.language, "district_prompt")),
        ],
    })


def _select_language(state: ConversationState, event: SelectLanguage) -> ConversationState:
    language = event.language
    return state.model_copy(update={
        "stage": Stage.DISTRICT,
        "language": language,
        "transcript": [
            *state.transcript,
            _user(language.value.upper()),
            _bot(t(language, "district_prompt")),
        ],
    })


def _submit(state: ConversationState, value: Optional[str], catalog: LocationCatalog) -> ConversationState:
    spoken = value is None and bool(state.pending_input.strip())
    if value is None:
        value = state.pending_input or current_value(state)
    value = value.strip()

    if state.stage in OPTIONAL_STAGES and not value:
        return _advance(state, "", t(state.language, "skipped"), catalog)

    options = stage_options(state, catalog)
    if options and spoken:
        # interim speech is matched the same way a final transcript would be
        value = find_best_match(value, options) or value
    if options is not None:
        # an empty location dataset leaves location stages unconstrained
        if (options or state.stage in (Stage.CATEGORY, Stage.URGENCY)) and value not in options:
            raise ValidationError(f"'{value}' is not a valid {state.stage.value}.", state.stage.value)
        if not value:
            raise ValidationError(f"Please select a {state.stage.value}.", state.stage.value)
    elif state.stage not in OPTIONAL_STAGES:
        value = require_text(state.stage.value, value)

    return _advance(state, value, value, catalog)


def _speech(state: ConversationState, event: SpeechTranscript, catalog: LocationCatalog) -> ConversationState:
    transcript = event.transcript.strip()
    if not event.is_final:
        return state.model_copy(update={"pending_input": transcript})

    options = stage_options(state, catalog)
    if options is None:
        if not transcript:
            return state
        return _advance(state, transcript, transcript, catalog)

    match = find_best_match(transcript, options)
    if match is None:
        message = t(state.language, "speech_error", transcript)
        return state.model_copy(update={
            "pending_input": "",
            "last_error": message,
            "transcript": [*state.transcript, _bot(message)],
        })
    return _advance(state, match, match, catalog)


def _advance(state: ConversationState, value: str, shown: str, catalog: LocationCatalog) -> ConversationState:
    name = state.stage.value
    if state.stage == Stage.CATEGORY:
        stored = IssueCategory(value)
    elif state.stage == Stage.URGENCY:
        stored = Urgency(value)
    else:
        stored = value

    fields = state.fields.model_copy(update={name: stored})
    if state.stage in (Stage.DISTRICT, Stage.PANCHAYAT):
        fields = cascade_location(fields, catalog)

    next_stage = NEXT_STAGE[state.stage]
    return state.model_copy(update={
        "stage": next_stage,
        "fields": fields,
        "pending_input": "",
        "last_error": None,
        "transcript": [
            *state.transcript,
            _user(shown),
            _bot(t(state.language, PROMPT_KEYS[next_stage])),
        ],
    })


def _request_summary(state: ConversationState, event: RequestSummary) -> ConversationState:
    validate_evidence(event.evidence)
    return state.model_copy(update={
        "stage": Stage.PROCESSING,
        "last_error": None,
        "transcript": [*state.transcript, _bot(t(state.language, "generating_summary"))],
    })
