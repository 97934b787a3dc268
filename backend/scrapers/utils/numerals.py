"""Roman numeral and number-word conversion for article and heading numbers."""
import re
from typing import Optional

ROMAN_VALUES = {"I": 1, "V": 5, "X": 10, "L": 50, "C": 100, "D": 500, "M": 1000}

_TO_ROMAN = [
    (1000, "M"), (900, "CM"), (500, "D"), (400, "CD"),
    (100, "C"), (90, "XC"), (50, "L"), (40, "XL"),
    (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
]


def roman_to_int(roman: str) -> Optional[int]:
    """
    Decode a Roman numeral using subtractive notation.

    A symbol smaller than the one after it is subtracted (IV = 4, XIV = 14).
    Returns None for empty input or characters that are not numerals.
    """
    if not roman:
        return None
    roman = roman.strip().upper()

    total = 0
    prev = 0
    for ch in reversed(roman):
        value = ROMAN_VALUES.get(ch)
        if value is None:
            return None
        if value < prev:
            total -= value
        else:
            total += value
            prev = value
    return total or None


def to_roman(number: Optional[int]) -> str:
    """Encode a positive integer as a Roman numeral ('' for falsy input)."""
    if not number:
        return ""
    remaining = int(number)
    parts = []
    for value, symbol in _TO_ROMAN:
        while remaining >= value:
            parts.append(symbol)
            remaining -= value
    return "".join(parts)


NUMBER_WORDS = {
    "ONE": 1, "TWO": 2, "THREE": 3, "FOUR": 4, "FIVE": 5,
    "SIX": 6, "SEVEN": 7, "EIGHT": 8, "NINE": 9, "TEN": 10,
    "ELEVEN": 11, "TWELVE": 12, "THIRTEEN": 13, "FOURTEEN": 14, "FIFTEEN": 15,
    "SIXTEEN": 16, "SEVENTEEN": 17, "EIGHTEEN": 18, "NINETEEN": 19,
    "TWENTY": 20, "THIRTY": 30, "FORTY": 40, "FIFTY": 50,
    "SIXTY": 60, "SEVENTY": 70, "EIGHTY": 80, "NINETY": 90,
}
ORDINAL_WORDS = {
    "FIRST": 1, "SECOND": 2, "THIRD": 3, "FOURTH": 4, "FIFTH": 5,
    "SIXTH": 6, "SEVENTH": 7, "EIGHTH": 8, "NINTH": 9, "TENTH": 10,
}


def word_to_int(words: str) -> Optional[int]:
    """
    Decode a heading number written in words ("TWO", "TWENTY-ONE", "FIRST").

    Returns None when any word is not a known number word.
    """
    parts = [p for p in re.split(r"[\s\-]+", (words or "").strip().upper()) if p]
    if not parts:
        return None
    if len(parts) == 1 and parts[0] in ORDINAL_WORDS:
        return ORDINAL_WORDS[parts[0]]

    total = 0
    for part in parts:
        value = NUMBER_WORDS.get(part)
        if value is None:
            return None
        total += value
    return total


def heading_number(identifier: str) -> Optional[int]:
    """Digits, number words or a Roman numeral ("3", "THREE", "III") as an int."""
    identifier = (identifier or "").strip()
    if identifier.isdigit():
        return int(identifier)
    value = word_to_int(identifier)
    if value is None and re.fullmatch(r"[IVXLCDM]+", identifier, re.IGNORECASE):
        value = roman_to_int(identifier)
    return value
