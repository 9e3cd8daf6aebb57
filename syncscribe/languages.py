"""Language code normalization for audio track tags and API requests."""

import re
from typing import Optional

# ISO 639-2 -> ISO 639-1, as accepted by the transcription API
_THREE_TO_TWO = {
    'eng': 'en',
    'jpn': 'ja',
    'spa': 'es',
    'fra': 'fr',
    'deu': 'de',
    'ita': 'it',
    'por': 'pt',
    'zho': 'zh',
    'kor': 'ko',
    'rus': 'ru',
    'ara': 'ar',
}

# Container tags may carry 2-letter codes or English names
_TAG_TO_THREE = {
    'en': 'eng', 'english': 'eng',
    'ja': 'jpn', 'jp': 'jpn', 'japanese': 'jpn',
    'es': 'spa', 'spanish': 'spa',
    'fr': 'fra', 'french': 'fra',
    'de': 'deu', 'german': 'deu',
    'it': 'ita', 'italian': 'ita',
    'pt': 'por', 'portuguese': 'por',
    'zh': 'zho', 'chinese': 'zho',
    'ko': 'kor', 'korean': 'kor',
    'ru': 'rus', 'russian': 'rus',
    'ar': 'ara', 'arabic': 'ara',
}

_TITLE_PATTERNS = [
    (re.compile(r'english|eng', re.IGNORECASE), 'eng'),
    (re.compile(r'japanese|jpn|japan', re.IGNORECASE), 'jpn'),
    (re.compile(r'spanish|spa|español', re.IGNORECASE), 'spa'),
    (re.compile(r'french|fra|français', re.IGNORECASE), 'fra'),
    (re.compile(r'german|deu|deutsch', re.IGNORECASE), 'deu'),
    (re.compile(r'italian|ita|italiano', re.IGNORECASE), 'ita'),
    (re.compile(r'portuguese|por|português', re.IGNORECASE), 'por'),
    (re.compile(r'chinese|zho|中文', re.IGNORECASE), 'zho'),
    (re.compile(r'korean|kor|한국어', re.IGNORECASE), 'kor'),
    (re.compile(r'russian|rus|русский', re.IGNORECASE), 'rus'),
]

LANGUAGE_NAMES = {
    'en': 'English',
    'es': 'Spanish',
    'fr': 'French',
    'de': 'German',
    'it': 'Italian',
    'pt': 'Portuguese',
    'ja': 'Japanese',
    'ko': 'Korean',
    'zh': 'Chinese',
    'ru': 'Russian',
    'ar': 'Arabic',
    'hi': 'Hindi',
    'nl': 'Dutch',
    'pl': 'Polish',
    'tr': 'Turkish',
    'vi': 'Vietnamese',
    'th': 'Thai',
    'sv': 'Swedish',
    'da': 'Danish',
    'no': 'Norwegian',
    'fi': 'Finnish',
}

_NAME_TO_TWO = {name.lower(): code for code, name in LANGUAGE_NAMES.items()}

def to_iso639_1(code: Optional[str]) -> Optional[str]:
    """
    Converts a language code or English language name to the 2-letter form.

    Known 3-letter codes and names are mapped, 2-letter codes pass through,
    anything else yields None so the caller can fall back to auto-detection.
    """
    if not code:
        return None
    normalized = code.lower().strip()
    if normalized in _THREE_TO_TWO:
        return _THREE_TO_TWO[normalized]
    if normalized in _NAME_TO_TWO:
        return _NAME_TO_TWO[normalized]
    return normalized if len(normalized) == 2 else None

def normalize_track_language(code: str) -> str:
    """Maps a container language tag to a 3-letter code where known."""
    normalized = code.lower().strip()
    return _TAG_TO_THREE.get(normalized, normalized)

def detect_language_from_title(title: Optional[str]) -> Optional[str]:
    """Guesses a 3-letter language code from a track title such as 'English 5.1'."""
    if not title:
        return None
    for pattern, lang in _TITLE_PATTERNS:
        if pattern.search(title):
            return lang
    return None

def language_name(code: str) -> str:
    """Full English name for a 2-letter code; unknown codes are returned as-is."""
    return LANGUAGE_NAMES.get(code.lower(), code)
