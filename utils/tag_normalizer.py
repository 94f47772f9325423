"""
Tag normalization utilities - cleans and de-duplicates answer tags
"""

from typing import Iterable, List
import re


class TagNormalizer:
    """Normalize tags suggested by the model or typed by the user"""

    MAX_TAG_LENGTH = 40

    @staticmethod
    def normalize_tag(tag: str) -> str:
        """
        Normalize a tag to a clean display form

        Args:
            tag: Raw tag

        Returns:
            Tag with surrounding punctuation removed and whitespace collapsed
        """
        if not isinstance(tag, str):
            return ""

        normalized = re.sub(r'\s+', ' ', tag).strip()
        normalized = normalized.strip("#,;.\"'")
        return normalized[:TagNormalizer.MAX_TAG_LENGTH].strip()

    @staticmethod
    def tags_match(tag1: str, tag2: str) -> bool:
        """Check if two tags are the same ignoring case and spacing"""
        return TagNormalizer.normalize_tag(tag1).lower() == TagNormalizer.normalize_tag(tag2).lower()

    @staticmethod
    def normalize_tag_list(tags: Iterable[str]) -> List[str]:
        """
        Normalize a list of tags

        Args:
            tags: Raw tags

        Returns:
            Normalized tags, first spelling wins for case-insensitive duplicates
        """
        seen = set()
        result = []
        for tag in tags or []:
            normalized = TagNormalizer.normalize_tag(tag)
            key = normalized.lower()
            if normalized and key not in seen:
                seen.add(key)
                result.append(normalized)
        return result
