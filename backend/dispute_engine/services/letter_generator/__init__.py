"""Dispute Engine - Letter Template Engine

Turns recommended or manually entered disputes into FCRA dispute letters.
"""
from .assembler import (
    LetterTemplateEngine,
    LetterFields,
    format_letter_date,
    mask_account_number,
)
from .bureau_profiles import BUREAU_PROFILES, get_bureau_address, get_bureau_name
from .templates import GENERATION_FAILED_MESSAGE

__all__ = [
    "LetterTemplateEngine",
    "LetterFields",
    "format_letter_date",
    "mask_account_number",
    "BUREAU_PROFILES",
    "get_bureau_address",
    "get_bureau_name",
    "GENERATION_FAILED_MESSAGE",
]
