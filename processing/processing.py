import logging
from datetime import datetime
from typing import Callable, Optional

from models.models import DailySelection, Shlok
from processing.lookup import by_chapter_verse, by_index
from processing.selection import (
    DateLike,
    canonical_date_string,
    date_hash,
    select_daily_index,
    select_random_index,
    utc_today,
)
from retrieval.csv_datasource import DataSource

logger = logging.getLogger(__name__)


class ShlokService:
    """
    Daily, random and chapter/verse access to the shlok corpus.

    The corpus is re-read on every call, so each answer is computed from
    the file as it is at that moment.
    """

    def __init__(
        self,
        datasource: DataSource,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.datasource = datasource
        self.clock = clock

    def today(self):
        return utc_today(self.clock() if self.clock else None)

    def daily_selection(self, on: Optional[DateLike] = None) -> DailySelection:
        day = on if on is not None else self.today()
        shloks = self.datasource.read_csv()
        date_string = canonical_date_string(day)
        index = select_daily_index(day, len(shloks))
        return DailySelection(
            date_string=date_string,
            date_hash=date_hash(date_string),
            index=index,
            corpus_size=len(shloks),
        )

    def get_daily_shlok(self, on: Optional[DateLike] = None) -> Shlok:
        day = on if on is not None else self.today()
        try:
            shloks = self.datasource.read_csv()
            index = select_daily_index(day, len(shloks))
            logger.info(
                f"Daily shlok for {canonical_date_string(day)}: "
                f"index {index} of {len(shloks)}"
            )
            return by_index(shloks, index)
        except Exception as e:
            logger.error(f"Error getting daily shlok: {e}")
            raise

    def get_random_shlok(self) -> Shlok:
        try:
            shloks = self.datasource.read_csv()
            return by_index(shloks, select_random_index(len(shloks)))
        except Exception as e:
            logger.error(f"Error getting random shlok: {e}")
            raise

    def get_shlok(self, chapter, verse) -> Optional[Shlok]:
        try:
            shloks = self.datasource.read_csv()
            return by_chapter_verse(shloks, chapter, verse)
        except Exception as e:
            logger.error(f"Error getting shlok by chapter and verse: {e}")
            raise
