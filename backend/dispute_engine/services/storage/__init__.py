"""Dispute Engine - Durable Storage"""
from .letter_repository import LetterRepository, letter_from_row

__all__ = ["LetterRepository", "letter_from_row"]
