"""
Profile merge service - fills empty profile fields from resume extraction
"""

from typing import Any, List

from models.profile import ExtractedCandidate, Profile


class ProfileMerger:
    """
    One-directional fill policy: extracted data only lands in fields that are
    still empty, so anything the user typed is never overwritten.
    """

    @staticmethod
    def _is_empty(value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, list):
            return len(value) == 0
        return False

    @staticmethod
    def fillable_fields(current: Profile, candidate: ExtractedCandidate) -> List[str]:
        """
        List the profile fields a merge would fill

        Args:
            current: Profile being edited
            candidate: Data extracted from a resume

        Returns:
            Field names, in model order
        """
        fields = []
        for field_name in ExtractedCandidate.model_fields:
            if field_name not in Profile.model_fields:
                continue
            value = getattr(candidate, field_name)
            if ProfileMerger._is_empty(value):
                continue
            if ProfileMerger._is_empty(getattr(current, field_name)):
                fields.append(field_name)
        return fields

    @staticmethod
    def merge(current: Profile, candidate: ExtractedCandidate) -> Profile:
        """
        Merge extracted data into a profile

        Collections are replaced wholesale, and only when the current one is empty.
        Scalars are set only when the current value is blank.

        Args:
            current: Profile being edited
            candidate: Data extracted from a resume

        Returns:
            New Profile; the input is left untouched
        """
        updates = {}
        for field_name in ProfileMerger.fillable_fields(current, candidate):
            value = getattr(candidate, field_name)
            updates[field_name] = list(value) if isinstance(value, list) else value

        if not updates:
            return current.model_copy(deep=True)
        return current.model_copy(update=updates, deep=True)
