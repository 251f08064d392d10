"""
Text normalizers

Functions applied to both sides of a comparison before exact matching.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Callable

Normalizer = Callable[[str], str]


def identity(text: str) -> str:
    """No normalization (strict comparison)"""
    return text


def strip(text: str) -> str:
    """Strip leading and trailing whitespace"""
    return text.strip()


def strip_casefold(text: str) -> str:
    """Strip surrounding whitespace and compare case-insensitively"""
    return text.strip().casefold()


def remove_markdown(text: str) -> str:
    """
    Remove markdown formatting

    - Remove code fences (keeping the code)
    - Remove inline code backticks
    - Remove bullet point symbols (-, *, bullet)
    - Remove numbering from numbered lists (1. 2. etc.)
    """
    text = re.sub(r"```[\w]*\n?(.*?)```", r"\1", text, flags=re.DOTALL)
    text = re.sub(r"`([^`]+)`", r"\1", text)
    text = re.sub(r"^[\s]*[-*•]\s+", "", text, flags=re.MULTILINE)
    text = re.sub(r"^[\s]*\d+\.\s+", "", text, flags=re.MULTILINE)
    return text


def normalize_text(text: str) -> str:
    """
    Lenient normalization for LLM output

    Removes markdown, applies NFKC, lowercases, and collapses whitespace runs to one space.

    Args:
        text: Text to normalize

    Returns:
        Normalized text
    """
    text = remove_markdown(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.lower()
    text = re.sub(r"\s+", " ", text)
    return text.strip()
