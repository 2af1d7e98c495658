"""Filtering and ordering of subtitle candidates."""

from typing import Iterable, List

from .models import SearchCriteria, Subtitle


def matches(subtitle: Subtitle, criteria: SearchCriteria) -> bool:
    """Format, hearing-impaired flag and language must all match exactly."""
    return (
        subtitle.format == criteria.format
        and subtitle.hearing_impaired == criteria.hearing_impaired
        and subtitle.language == criteria.language
    )


def rank_key(subtitle: Subtitle):
    # Rating ascending, then downloads descending (same order as the reference client)
    return (subtitle.rating, -subtitle.downloads_count)


def filter_and_rank(subtitles: Iterable[Subtitle], criteria: SearchCriteria) -> List[Subtitle]:
    """Keep the candidates matching `criteria` and order them by `rank_key`."""
    return sorted((sub for sub in subtitles if matches(sub, criteria)), key=rank_key)
