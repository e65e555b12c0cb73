"""Draw quiz candidates from an artist's catalogue: one correct track, the rest distractors."""
import logging
import random
from typing import List, Optional

from tracktrivia.config import ALBUM_PAGE_SIZE
from tracktrivia.core.errors import InsufficientCandidates, NoCatalogue
from tracktrivia.core.spotify_client import SpotifyCatalogue
from tracktrivia.models.round import Candidate

logger = logging.getLogger(__name__)


class CandidateSampler:
    """Samples candidates for one artist.

    pick_rng decides which tracks are drawn and which of them is correct;
    order_rng only permutes the display order afterwards, so the position of
    the correct answer carries no information about how it was chosen.
    """

    def __init__(
        self,
        catalogue: SpotifyCatalogue,
        *,
        album_page_size: int = ALBUM_PAGE_SIZE,
        pick_rng: Optional[random.Random] = None,
        order_rng: Optional[random.Random] = None,
    ) -> None:
        self._catalogue = catalogue
        self._album_page_size = album_page_size
        self._pick_rng = pick_rng or random.Random()
        self._order_rng = order_rng or random.Random()

    def playable_tracks(self, artist_id: str) -> List[dict]:
        """All distinct tracks of the artist's albums that carry a preview URL."""
        albums = self._catalogue.artist_albums(artist_id, limit=self._album_page_size)
        if not albums:
            logger.info("Sampler: no albums for artist %s", artist_id)
            raise NoCatalogue(artist_id)

        album_ids = [a["id"] for a in albums if a.get("id")]
        pool: List[dict] = []
        seen_ids = set()
        seen_names = set()
        for album in self._catalogue.albums(album_ids):
            for track in (album.get("tracks") or {}).get("items") or []:
                if not track or not track.get("preview_url"):
                    continue
                name = (track.get("name") or "").strip()
                key = name.casefold()
                if not name or track.get("id") in seen_ids or key in seen_names:
                    continue
                seen_ids.add(track.get("id"))
                seen_names.add(key)
                pool.append(track)
        return pool

    def sample(self, artist_id: str, desired_count: int) -> List[Candidate]:
        """Return desired_count candidates in display order, exactly one marked correct."""
        if desired_count < 1:
            raise ValueError("desired_count must be at least 1")
        pool = self.playable_tracks(artist_id)
        if len(pool) < desired_count:
            logger.info(
                "Sampler: artist %s has %d playable track(s), need %d",
                artist_id,
                len(pool),
                desired_count,
            )
            raise InsufficientCandidates(artist_id)

        drawn = self._pick_rng.sample(pool, desired_count)
        correct_index = self._pick_rng.randrange(desired_count)
        candidates = [
            Candidate(
                display_name=track["name"].strip(),
                preview_url=track["preview_url"],
                is_correct=(i == correct_index),
                track_id=track.get("id") or "",
            )
            for i, track in enumerate(drawn)
        ]
        self._order_rng.shuffle(candidates)
        return candidates
