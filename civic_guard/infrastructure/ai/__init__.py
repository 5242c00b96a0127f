"""Remote AI collaborators (OpenAI-compatible endpoint)"""
from .client import build_openai_client, build_whisper_client, complete_json, complete_text, parse_json_reply
from .authenticity import AuthenticityClassifier
from .summarizer import ReportSummarizer, build_report_text
from .emotion import EmotionAnalyzer
from .assistant import CivicAssistant, FALLBACK_REPLY
from .speech import WhisperSpeechRecognizer

__all__ = [
    "build_openai_client",
    "build_whisper_client",
    "complete_json",
    "complete_text",
    "parse_json_reply",
    "AuthenticityClassifier",
    "ReportSummarizer",
    "build_report_text",
    "EmotionAnalyzer",
    "CivicAssistant",
    "FALLBACK_REPLY",
    "WhisperSpeechRecognizer",
]
