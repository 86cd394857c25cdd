"""Text helpers shared by the extractor and the field parser."""

import html
import unicodedata


def strip_accents(text: str) -> str:
    """
    Strip accents from text.

    Example: Zürich -> Zurich, Besançon -> Besancon
    """
    # NFD normalization splits accents from base characters
    nfd = unicodedata.normalize('NFD', text)
    without_accents = ''.join(
        char for char in nfd
        if not unicodedata.combining(char)
    )
    return unicodedata.normalize('NFC', without_accents)


def decode_entities(line: str) -> str:
    """Decode HTML entities (&nbsp;, &amp;, &#124; ...) in a dump line."""
    return html.unescape(line)
