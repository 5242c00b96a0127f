"""
CivicGPT
App-help assistant. Answers only questions about using CivicGuard.
"""
from typing import Dict, List, Optional

import structlog
from openai import AsyncOpenAI

from ...domain.errors import RemoteServiceError
from ...domain.models import Language
from .client import complete_text

logger = structlog.get_logger()

SERVICE = "assistant"

FALLBACK_REPLY = "Sorry, I'm having trouble connecting right now."

WELCOME = {
    Language.EN: "Hello! I'm CivicGPT, your dedicated assistant for the CivicGuard AI app. If you have any questions about the app's features or how to use it, please ask. I'm here to help!",
    Language.TA: "வணக்கம்! நான் சிவிக்ஜிபிடி, சிவிக் கார்டு AI செயலிக்கான உங்கள் சிறப்பு உதவியாளர். சிவிக் கார்டு செயலியின் அம்சங்கள் மற்றும் பயன்பாடு குறித்து உங்களுக்கு ஏதேனும் கேள்விகள் இருந்தால், தயவுசெய்து கேளுங்கள். நான் உங்களுக்கு உதவ இங்கே இருக்கிறேன்!",
    Language.HI: "नमस्ते! मैं सिविकजीपीटी हूँ, सिविक गार्ड एआई ऐप के लिए आपका विशेष सहायक। यदि आपके पास सिविक गार्ड ऐप की सुविधाओं और उपयोग के बारे में कोई प्रश्न हैं, तो कृपया पूछें। मैं आपकी मदद करने के लिए यहाँ हूँ!",
}

SYSTEM_INSTRUCTIONS = {
    Language.EN: (
        "You are CivicGPT, a specialized AI assistant for the CivicGuard AI application. Your ONLY purpose "
        "is to answer questions about how to use the CivicGuard app and the features within it. For example, "
        "you can explain how to report an issue, what issue statuses mean ('Pending', 'In-progress', etc.), "
        "how the leaderboard works, or how to view your profile. If a user asks a question that is NOT about "
        "the CivicGuard app (e.g., general knowledge, news, personal opinions), you MUST politely decline and "
        "state that you can only answer questions about the CivicGuard app. Respond in English."
    ),
    Language.TA: (
        "நீங்கள் சிவிக்ஜிபிடி, சிவிக் கார்டு AI செயலிக்கான ஒரு சிறப்பு AI உதவியாளர். உங்கள் ஒரே நோக்கம் சிவிக் கார்டு "
        "செயலியை எவ்வாறு பயன்படுத்துவது மற்றும் அதிலுள்ள அம்சங்கள் பற்றிய கேள்விகளுக்கு பதிலளிப்பது மட்டுமே. "
        "எடுத்துக்காட்டாக, ஒரு சிக்கலை எவ்வாறு புகாரளிப்பது, சிக்கல் நிலைகளின் அர்த்தம் என்ன ('நிலுவையில் உள்ளது', "
        "'செயல்பாட்டில் உள்ளது' போன்றவை), லீடர்போர்டு எவ்வாறு செயல்படுகிறது, அல்லது உங்கள் சுயவிவரத்தை எவ்வாறு "
        "பார்ப்பது என்பதை நீங்கள் விளக்கலாம். ஒரு பயனர் சிவிக் கார்டு செயலி பற்றி இல்லாத ஒரு கேள்வியைக் கேட்டால் "
        "(எ.கா., பொது அறிவு, செய்திகள், தனிப்பட்ட கருத்துக்கள்), நீங்கள் பணிவுடன் மறுத்து, சிவிக் கார்டு செயலி பற்றிய "
        "கேள்விகளுக்கு மட்டுமே பதிலளிக்க முடியும் என்று கூற வேண்டும். தமிழில் பதிலளிக்கவும்."
    ),
    Language.HI: (
        "आप सिविकजीपीटी हैं, जो सिविकगार्ड एआई एप्लिकेशन के लिए एक विशेष एआई सहायक है। आपका एकमात्र उद्देश्य "
        "सिविकगार्ड ऐप का उपयोग कैसे करें और इसके भीतर की सुविधाओं के बारे में सवालों का जवाब देना है। उदाहरण के लिए, "
        "आप बता सकते हैं कि किसी मुद्दे की रिपोर्ट कैसे करें, मुद्दे की स्थितियों का क्या मतलब है ('लंबित', 'प्रगति में', "
        "आदि), लीडरबोर्ड कैसे काम करता है, या अपनी प्रोफ़ाइल कैसे देखें। यदि कोई उपयोगकर्ता ऐसा प्रश्न पूछता है जो "
        "सिविकगार्ड ऐप के बारे में नहीं है (जैसे, सामान्य ज्ञान, समाचार, व्यक्तिगत राय), तो आपको विनम्रतापूर्वक मना "
        "करना चाहिए और कहना चाहिए कि आप केवल सिविकगार्ड ऐप के बारे में सवालों का जवाब दे सकते हैं। हिंदी में जवाब दें।"
    ),
}


class CivicAssistant:
    def __init__(self, client: AsyncOpenAI, model: str):
        self.client = client
        self.model = model

    async def reply(
        self,
        message: str,
        language: Language = Language.EN,
        history: Optional[List[Dict[str, str]]] = None,
    ) -> str:
        """
        Free-text answer. Connection problems produce FALLBACK_REPLY
        instead of an exception, the chat simply shows the apology.

        Args:
            message: the user's question
            language: reply language; also selects the system instruction
            history: earlier turns as [{"role": "user"|"assistant", "content": ...}]
        """
        messages = [{"role": "system", "content": SYSTEM_INSTRUCTIONS[language]}]
        messages.extend(history or [])
        messages.append({"role": "user", "content": message})

        try:
            text = await complete_text(self.client, SERVICE, self.model, messages, temperature=0.4)
        except RemoteServiceError as e:
            logger.error("assistant_unavailable", error=str(e))
            return FALLBACK_REPLY

        text = text.strip()
        if not text:
            logger.warning("assistant_empty_reply", language=language.value)
            return FALLBACK_REPLY
        return text
