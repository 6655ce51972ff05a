"""
Locale-aware string ordering for translated compendium indexes.

Sorting follows a three level comparison: base letters first (case and
accent insensitive), then accents, then case with lowercase first. A few
languages register tailorings for letters that sort as their own letters
instead of accented variants (e.g. Swedish "ä" after "z").
"""

import unicodedata

from .values import DEFAULT_LANGUAGE

_LAST = chr(0x10FFFF)

# language -> {letter: sort replacement}
COLLATION_RULES: dict[str, dict[str, str]] = {
    "en": {},
    "de": {},
    "fr": {},
    "it": {},
    "pt": {},
    "nl": {},
    "pl": {},
    "cs": {"č": "c" + _LAST, "ř": "r" + _LAST, "š": "s" + _LAST, "ž": "z" + _LAST},
    "es": {"ñ": "n" + _LAST},
    "ca": {},
    "sv": {"å": "z" + _LAST + "a", "ä": "z" + _LAST + "b", "ö": "z" + _LAST + "c"},
    "fi": {"å": "z" + _LAST + "a", "ä": "z" + _LAST + "b", "ö": "z" + _LAST + "c"},
    "da": {"æ": "z" + _LAST + "a", "ø": "z" + _LAST + "b", "å": "z" + _LAST + "c"},
    "nb": {"æ": "z" + _LAST + "a", "ø": "z" + _LAST + "b", "å": "z" + _LAST + "c"},
    "no": {"æ": "z" + _LAST + "a", "ø": "z" + _LAST + "b", "å": "z" + _LAST + "c"},
    "tr": {"ç": "c" + _LAST, "ğ": "g" + _LAST, "ı": "h" + _LAST, "ö": "o" + _LAST, "ş": "s" + _LAST, "ü": "u" + _LAST},
    "hu": {},
    "ru": {"й": "и" + _LAST},
    "uk": {"ґ": "г" + _LAST, "є": "е" + _LAST, "і": "и" + _LAST + "a", "ї": "и" + _LAST + "b", "й": "и" + _LAST + "c"},
    "ja": {},
    "ko": {},
    "zh": {},
}


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))


class Collator:
    """Compare strings the way a given language orders them.

    Example:
        >>> collator = Collator("de")
        >>> sorted(["Banane", "Äpfel", "apfel"], key=collator.sort_key)
        ['apfel', 'Äpfel', 'Banane']
    """

    def __init__(self, language: str | None = None):
        supported = self.supported_locales_of([language or DEFAULT_LANGUAGE])
        self.locale = supported[0] if supported else DEFAULT_LANGUAGE
        self._rules = COLLATION_RULES[self.locale]

    @staticmethod
    def supported_locales_of(languages: list[str]) -> list[str]:
        """Return the registered collation locales matching the given tags.

        Region subtags fall back to their base language ("pt-BR" -> "pt").
        """
        result: list[str] = []
        for language in languages:
            tag = language.strip().lower().replace("_", "-")
            if tag in COLLATION_RULES:
                result.append(tag)
                continue
            base = tag.split("-", 1)[0]
            if base in COLLATION_RULES:
                result.append(base)
        return result

    def _tailor(self, text: str) -> str:
        text = unicodedata.normalize("NFC", text.casefold())
        if not self._rules:
            return text
        return "".join(self._rules.get(c, c) for c in text)

    def sort_key(self, text: str | None) -> tuple:
        text = text or ""
        tailored = self._tailor(text)
        primary = _strip_accents(tailored)
        tertiary = tuple(c.isupper() for c in text)
        return (primary, tailored, tertiary, text)

    def compare(self, a: str | None, b: str | None) -> int:
        key_a, key_b = self.sort_key(a), self.sort_key(b)
        return (key_a > key_b) - (key_a < key_b)


__all__ = ["Collator", "COLLATION_RULES"]
