from typing import Optional, Sequence

from models.models import Shlok
from retrieval.errors import OutOfRange


def by_index(shloks: Sequence[Shlok], index: int) -> Shlok:
    # Negative indexes are rejected rather than counted from the end
    if index < 0 or index >= len(shloks):
        raise OutOfRange(f"Index {index} out of range for {len(shloks)} shloks")
    return shloks[index]


def by_chapter_verse(shloks: Sequence[Shlok], chapter, verse) -> Optional[Shlok]:
    target_chapter = str(chapter).strip()
    target_verse = str(verse).strip()

    for shlok in shloks:
        if (
            str(shlok.chapter).strip() == target_chapter
            and str(shlok.verse).strip() == target_verse
        ):
            return shlok
    return None
