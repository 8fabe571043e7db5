import re
from typing import Optional


class TextCleaner:
    @staticmethod
    def clean(text: str) -> str:
        """Clean and normalize text"""
        # Remove excessive whitespace
        text = re.sub(r"\s+", " ", text)

        # Remove markdown artifacts
        text = re.sub(r"\*\*", "", text)
        text = re.sub(r"__", "", text)

        # Normalize quotes
        text = text.replace("\u201c", '"').replace("\u201d", '"')
        text = text.replace("\u2018", "'").replace("\u2019", "'")
        text = text.replace("\u00a0", " ")

        # Strip leading/trailing whitespace
        text = text.strip()

        return text

    @staticmethod
    def truncate(text: str, max_chars: int) -> str:
        return text[:max_chars].rstrip() if len(text) > max_chars else text

    @classmethod
    def clean_optional(cls, value: Optional[str], max_chars: Optional[int] = None) -> Optional[str]:
        """Clean a free-text field, keeping None as None.

        An empty string stays empty: it means the upstream explicitly sent a blank value.
        """
        if value is None:
            return None
        text = cls.clean(str(value))
        if max_chars is not None:
            text = cls.truncate(text, max_chars)
        return text
