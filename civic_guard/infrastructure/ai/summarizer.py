"""
Report Summarizer
Turns the collected report fields into the official structured summary.
"""
import structlog
from openai import AsyncOpenAI

from ...domain.models import GeneratedSummary, ReportDraft
from .client import complete_json

logger = structlog.get_logger()

SERVICE = "summarization"

SYSTEM_INSTRUCTION = (
    "You are an AI assistant for a civic reporting app. Your task is to process a user's raw text "
    "report about a local issue and convert it into a structured, official summary. The user will "
    "provide details like location, category, urgency, and a description. You MUST return ONLY a JSON "
    "object with the following exact schema: { \"reporterDetails\": \"string\", \"issueDescription\": "
    "\"string\", \"district\": \"string\", \"panchayat\": \"string\", \"village\": \"string\", "
    "\"street\": \"string\", \"locationDetails\": \"string\", \"dateTime\": \"string\", "
    "\"affectedPeopleCommunity\": \"string\", \"urgencyLevel\": \"'Low' | 'Medium' | 'High'\", "
    "\"finalSummaryRecommendation\": \"string\" }. Use the user's input to fill these fields. "
    "For 'reporterDetails', combine the provided contact info or state 'Not provided'. "
    "For 'dateTime', use the current date and time in a readable format (e.g., 'July 26, 2024, 10:30 AM'). "
    "For 'affectedPeopleCommunity', infer from the description (e.g., 'Local residents', 'Commuters'). "
    "For 'urgencyLevel', use the user's selection but you may upgrade it to 'High' if the description "
    "contains keywords like 'dangerous', 'hazard', 'urgent', 'fire', 'accident'. "
    "For 'finalSummaryRecommendation', write a concise, one-sentence summary of the issue and a "
    "recommended action (e.g., 'A large pothole on Main Street requires immediate repair to prevent "
    "accidents.'). Be professional and clear."
)


def build_report_text(draft: ReportDraft) -> str:
    loc = draft.location
    return (
        "Issue Report:\n"
        f"- Title: {draft.title}\n"
        f"- Category: {draft.category.value}\n"
        f"- Urgency: {draft.urgency.value}\n"
        "Location:\n"
        f"- District: {loc.district}\n"
        f"- Panchayat: {loc.panchayat}\n"
        f"- Village: {loc.village}\n"
        f"- Street/Locality: {loc.street}\n"
        f"- Landmark (optional): {loc.landmark or 'Not provided'}\n"
        "Description:\n"
        f"- {draft.description}"
    )


class ReportSummarizer:
    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def summarize(self, report_text: str) -> GeneratedSummary:
        """Raises RemoteServiceError on transport failure or a non-conforming reply"""
        messages = [
            {"role": "system", "content": SYSTEM_INSTRUCTION},
            {"role": "user", "content": report_text},
        ]
        summary = await complete_json(self.client, SERVICE, self.model, messages, GeneratedSummary)
        logger.info(
            "report_summarized",
            district=summary.district,
            urgency=summary.urgency_level,
        )
        return summary
