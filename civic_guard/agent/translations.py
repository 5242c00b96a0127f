"""Localized agent prompts (English, Tamil, Hindi)"""
from typing import Dict

from ..domain.models import Language

TRANSLATIONS: Dict[Language, Dict[str, str]] = {
    Language.EN: {
        "welcome": "Hello. I am Arya, an AI social service investigator with CivicGuard. I'm here to help document the issue you are reporting. To start, please choose your preferred language below.",
        "district_prompt": "Which district are you reporting from?",
        "panchayat_prompt": "Please tell me your Panchayat name.",
        "village_prompt": "Which village is this issue located in?",
        "street_prompt": "Enter the street or locality.",
        "landmark_prompt": "Do you want to add a nearby landmark? (Optional)",
        "title_prompt": "Give a short title for the issue.",
        "category_prompt": "Select the issue category. Example: Roads, Water, Electricity.",
        "urgency_prompt": "How urgent is this issue? (Low / Medium / High)",
        "description_prompt": "Please describe the issue in detail.",
        "evidence_prompt_message": "Thank you for the details. Now, let's add some evidence.",
        "edit_prompt": "Of course. Let's make corrections. Please describe the issue again from the beginning, including any changes you'd like to make.",
        "ai_error": "I'm sorry, I'm having trouble connecting to my AI services. Please try again in a moment.",
        "completed": "Thank you for sharing this issue. Your report has been recorded.",
        "generating_summary": "Generating AI Summary...",
        "evidence_description": "Please add up to 3 photos. ({0}/3)",
        "skipped": "(Skipped)",
        "listening": "Listening...",
        "speech_error": 'Sorry, I couldn\'t find a match for "{0}". Please try again or select from the list.',
    },
    Language.TA: {
        "welcome": "வணக்கம். நான் ஆர்யா, சிவிக் கார்டின் AI சமூக சேவை ஆய்வாளர். நீங்கள் புகாரளிக்கும் சிக்கலைப் ஆவணப்படுத்த நான் இங்கு இருக்கிறேன். தொடங்க, கீழே உங்கள் விருப்பமான மொழியைத் தேர்ந்தெடுக்கவும்.",
        "district_prompt": "நீங்கள் எந்த மாவட்டத்தில் இருந்து புகார் தெரிவிக்கிறீர்கள்?",
        "panchayat_prompt": "தயவுசெய்து உங்கள் பஞ்சாயத்தின் பெயரை சொல்லுங்கள்.",
        "village_prompt": "இந்த பிரச்சினை எந்த கிராமத்தில் உள்ளது?",
        "street_prompt": "தெரு அல்லது பகுதியை உள்ளிடுங்கள்.",
        "landmark_prompt": "அருகிலுள்ள ஒரு அடையாள இடத்தை சேர்க்க விரும்புகிறீர்களா? (விருப்பத்தேர்வு)",
        "title_prompt": "பிரச்சினைக்கு ஒரு சுருக்கமான தலைப்பை கொடுங்கள்.",
        "category_prompt": "பிரச்சினை வகையைத் தேர்ந்தெடுக்கவும். உதாரணம்: சாலைகள், தண்ணீர், மின்சாரம்.",
        "urgency_prompt": "இந்த பிரச்சினை எவ்வளவு அவசரமானது? (குறைவு / நடுத்தரம் / அதிகம்)",
        "description_prompt": "தயவுசெய்து பிரச்சினையை விரிவாக விவரிக்கவும்.",
        "evidence_prompt_message": "விவரங்களுக்கு நன்றி. இப்போது, சில ஆதாரங்களைச் சேர்ப்போம்.",
        "edit_prompt": "நிச்சயமாக. திருத்தங்கள் செய்வோம். நீங்கள் செய்ய விரும்பும் மாற்றங்கள் உட்பட, சிக்கலை மீண்டும் முதலில் இருந்து விவரிக்கவும்.",
        "ai_error": "மன்னிக்கவும், எனது AI சேவைகளுடன் இணைவதில் சிக்கல் உள்ளது. சிறிது நேரத்தில் மீண்டும் முயற்சிக்கவும்.",
        "completed": "இந்தச் சிக்கலைப் பகிர்ந்தமைக்கு நன்றி. உங்கள் அறிக்கை பதிவு செய்யப்பட்டுள்ளது.",
        "generating_summary": "AI சுருக்கம் உருவாக்கப்படுகிறது...",
        "evidence_description": "தயவுசெய்து 3 புகைப்படங்கள் வரை சேர்க்கவும். ({0}/3)",
        "skipped": "(Skipped)",
        "listening": "கேட்கிறது...",
        "speech_error": 'மன்னிக்கவும், "{0}"க்கு பொருத்தம் காணப்படவில்லை. மீண்டும் முயற்சிக்கவும் அல்லது பட்டியலிலிருந்து தேர்ந்தெடுக்கவும்.',
    },
    Language.HI: {
        "welcome": "नमस्ते। मैं आर्या, सिविकगार्ड की एक एआई सामाजिक सेवा अन्वेषक हूँ। मैं आपकी रिपोर्ट की गई समस्या का दस्तावेजीकरण करने में मदद करने के लिए यहाँ हूँ। शुरू करने के लिए, कृपया नीचे अपनी पसंदीदा भाषा चुनें।",
        "district_prompt": "आप किस ज़िले से रिपोर्ट कर रहे हैं?",
        "panchayat_prompt": "कृपया अपने पंचायत का नाम बताइए।",
        "village_prompt": "यह समस्या किस गाँव में है?",
        "street_prompt": "गली या क्षेत्र का नाम दर्ज करें।",
        "landmark_prompt": "क्या आप पास का कोई लैंडमार्क जोड़ना चाहते हैं? (वैकल्पिक)",
        "title_prompt": "समस्या के लिए एक छोटा शीर्षक दीजिए।",
        "category_prompt": "समस्या का प्रकार चुनें। उदाहरण: सड़कें, पानी, बिजली।",
        "urgency_prompt": "यह समस्या कितनी ज़रूरी है? (कम / मध्यम / अधिक)",
        "description_prompt": "कृपया समस्या का विस्तार से वर्णन करें।",
        "evidence_prompt_message": "विवरण के लिए धन्यवाद। अब, कुछ सबूत जोड़ते हैं।",
        "edit_prompt": "बेशक। सुधार करते हैं। कृपया आप जो भी बदलाव करना चाहते हैं, उन्हें शामिल करते हुए, समस्या का फिर से शुरू से वर्णन करें।",
        "ai_error": "मुझे खेद है, मुझे अपनी एआई सेवाओं से जुड़ने में समस्या हो रही है। कृपया कुछ देर में पुनः प्रयास करें।",
        "completed": "इस मुद्दे को साझा करने के लिए धन्यवाद। आपकी रिपोर्ट दर्ज कर ली गई है।",
        "generating_summary": "एआई सारांश उत्पन्न हो रहा है...",
        "evidence_description": "कृपया 3 फ़ोटो तक जोड़ें। ({0}/3)",
        "skipped": "(Skipped)",
        "listening": "सुन रहा है...",
        "speech_error": 'क्षमा करें, मुझे "{0}" के लिए कोई मेल नहीं मिला। कृपया पुनः प्रयास करें या सूची से चयन करें।',
    },
}


def t(language: Language, key: str, *args) -> str:
    """Translated string, with {0}, {1}... filled from args"""
    text = TRANSLATIONS[language].get(key) or TRANSLATIONS[Language.EN][key]
    for index, value in enumerate(args):
        text = text.replace("{%d}" % index, str(value))
    return text
