"""Guided report agent and the manual report form"""
from .evidence_store import EvidenceStore, EvidenceSnapshot
from .fields import ReportFields, build_draft, validate_evidence, validate_fields
from .form import ManualReportForm
from .machine import (
    Stage,
    ConversationState,
    SelectLanguage,
    SubmitValue,
    Skip,
    SpeechTranscript,
    RequestSummary,
    SummaryReady,
    SummaryFailed,
    Confirm,
    Edit,
    initial_state,
    reduce,
    stage_options,
)
from .matching import find_best_match
from .session import ReportSession
from .translations import TRANSLATIONS, t

__all__ = [
    "EvidenceStore",
    "EvidenceSnapshot",
    "ReportFields",
    "build_draft",
    "validate_evidence",
    "validate_fields",
    "ManualReportForm",
    "Stage",
    "ConversationState",
    "SelectLanguage",
    "SubmitValue",
    "Skip",
    "SpeechTranscript",
    "RequestSummary",
    "SummaryReady",
    "SummaryFailed",
    "Confirm",
    "Edit",
    "initial_state",
    "reduce",
    "stage_options",
    "find_best_match",
    "ReportSession",
    "TRANSLATIONS",
    "t",
]
