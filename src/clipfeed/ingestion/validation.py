"""Pre-upload validation of media files and their metadata."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from ..config import MediaConstraints
from .probe import FFprobeDurationProber
from .source import MediaFile

logger = logging.getLogger(__name__)

MB = 1024 * 1024


class DurationProber(Protocol):
    async def probe(self, media: MediaFile) -> float:
        ...


@dataclass
class ValidationResult:
    """Outcome of a validation pass. Lists every reason found."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _has_supported_format(media: MediaFile, constraints: MediaConstraints) -> bool:
    if media.content_type in constraints.supported_formats:
        return True
    # Some clients report an empty or wrong MIME type; fall back to the extension.
    if media.extension in constraints.supported_extensions:
        logger.info(
            "File type %r not recognized but %s has a valid extension, allowing",
            media.content_type,
            media.name,
        )
        return True
    return False


async def validate_video_file(
    media: MediaFile | None,
    prober: DurationProber | None = None,
    constraints: MediaConstraints | None = None,
) -> ValidationResult:
    """Validate a candidate upload. Never raises.

    Format and size are checked first; the duration probe only runs when
    those pass.
    """
    constraints = constraints or MediaConstraints.from_settings()
    result = ValidationResult()

    if media is None:
        result.errors.append("No file provided")
        return result

    if not _has_supported_format(media, constraints):
        result.errors.append(
            f'Unsupported file format "{media.content_type}". '
            f"Supported formats: {', '.join(constraints.supported_formats)} "
            f"or files with extensions: {', '.join(constraints.supported_extensions)}"
        )

    if media.size == 0:
        result.errors.append("File is empty")
    elif media.size > constraints.max_file_size_bytes:
        result.errors.append(
            f"File size too large: {media.size / MB:.1f}MB. "
            f"Maximum size: {constraints.max_file_size_bytes / MB:.1f}MB"
        )

    if result.errors:
        logger.debug("Skipping duration probe for %s: %s", media.name, result.errors)
        return result

    if prober is None:
        prober = FFprobeDurationProber()

    try:
        duration = await prober.probe(media)
    except Exception as e:
        logger.warning("Unable to read duration of %s: %s", media.name, e)
        result.errors.append("Unable to read video duration")
        return result

    if duration > constraints.max_duration_seconds:
        result.errors.append(
            f"Video too long: {duration:.1f} seconds. "
            f"Maximum duration: {constraints.max_duration_seconds:g} seconds"
        )

    return result


def validate_video_metadata(
    title: str | None = None,
    description: str | None = None,
    constraints: MediaConstraints | None = None,
) -> ValidationResult:
    """Validate optional title and description text."""
    constraints = constraints or MediaConstraints.from_settings()
    result = ValidationResult()

    if title and len(title) > constraints.max_title_length:
        result.errors.append(
            f"Title too long. Maximum length: {constraints.max_title_length} characters"
        )
    if description and len(description) > constraints.max_description_length:
        result.errors.append(
            f"Description too long. Maximum length: {constraints.max_description_length} characters"
        )

    text = f"{title or ''}\n{description or ''}".lower()
    if any(term.lower() in text for term in constraints.blocked_terms if term):
        result.errors.append("Content contains inappropriate language")

    return result
