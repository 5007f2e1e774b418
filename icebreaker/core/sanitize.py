"""Answer text sanitization."""
import nh3

from icebreaker.core.config import settings
from icebreaker.core.errors import ValidationFailure


def clean_notes(notes: str) -> str:
    """
    Strip all markup from answer notes.

    No tags or attributes are allowed. Script and style elements are removed
    together with their content, so ``<script>alert(1)</script>Hello`` becomes
    ``Hello``. Text outside tags is kept.
    """
    return nh3.clean(notes, tags=set(), attributes={}).strip()


def validate_notes(notes: str | None) -> str:
    """
    Sanitize notes and check them against the answer limits.

    Raises ValidationFailure for missing, oversized or markup-only notes.
    """
    if not notes or not notes.strip():
        raise ValidationFailure("Missing notes")
    if len(notes) > settings.max_notes_length:
        raise ValidationFailure(
            f"Notes exceed {settings.max_notes_length} characters"
        )
    cleaned = clean_notes(notes)
    if not cleaned:
        raise ValidationFailure("Notes are empty after removing markup")
    return cleaned
