"""Supported interface languages"""
from enum import Enum


class Language(str, Enum):
    EN = "en"
    TA = "ta"
    HI = "hi"

    @property
    def speech_code(self) -> str:
        """BCP-47 tag used for speech recognition"""
        return SPEECH_CODES[self]


SPEECH_CODES = {
    Language.EN: "en-US",
    Language.TA: "ta-IN",
    Language.HI: "hi-IN",
}
