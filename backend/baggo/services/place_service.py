# backend/baggo/services/place_service.py

from dataclasses import dataclass
from typing import List, Optional, Sequence

from baggo.core.logger import logger
from baggo.models.itinerary_models import Coordinates
from baggo.services.google_maps_service import GoogleMapsService


@dataclass(frozen=True)
class SearchTemplate:
    query: str
    limit: int
    fallback: str


@dataclass(frozen=True)
class PlaceHit:
    name: str
    place_id: Optional[str] = None
    coordinates: Optional[Coordinates] = None


PLACE_SEARCH = SearchTemplate("pet-friendly {tags} in {destination}", 3, "Explore local parks")
VET_SEARCH = SearchTemplate("vet clinic near {destination}", 2, "Local Vet Clinic")
HOTEL_SEARCH = SearchTemplate("pet-friendly hotels near {destination}", 2, "Pet-Friendly Hotel")


class PlaceService:
    """
    Pet-travel lookups on top of the places provider.
    Each search returns at most `limit` results and never raises: a failed or
    empty lookup yields the template's one-item fallback list.
    """

    def __init__(self, maps: Optional[GoogleMapsService] = None):
        self.maps = maps or GoogleMapsService()

    def _hits(self, template: SearchTemplate, **fields) -> List[PlaceHit]:
        query = template.query.format(**fields)
        try:
            places = self.maps.search_places(query, limit=template.limit)
            hits: List[PlaceHit] = []
            for place in places:
                name = self.maps.place_name(place)
                if not name or any(h.name == name for h in hits):
                    continue
                location = self.maps.place_location(place)
                hits.append(PlaceHit(
                    name=name,
                    place_id=self.maps.place_id(place),
                    coordinates=Coordinates(**location) if location else None,
                ))
        except Exception as e:
            logger.error(f"Place lookup failed for '{query}': {e}")
            return [PlaceHit(template.fallback)]

        if not hits:
            logger.info(f"No usable results for '{query}', using fallback")
            return [PlaceHit(template.fallback)]

        return hits[:template.limit]

    # -------------------------------------------------------
    # PUBLIC SEARCHES
    # -------------------------------------------------------
    def search_pet_place_hits(self, destination: str, tags: Sequence[str] = ()) -> List[PlaceHit]:
        tag_text = " ".join(t for t in tags if t) or "activities"
        return self._hits(PLACE_SEARCH, tags=tag_text, destination=destination)

    def search_pet_places(self, destination: str, tags: Sequence[str] = ()) -> List[str]:
        return [h.name for h in self.search_pet_place_hits(destination, tags)]

    def search_vets(self, destination: str) -> List[str]:
        return [h.name for h in self._hits(VET_SEARCH, destination=destination)]

    def search_hotels(self, destination: str) -> List[str]:
        return [h.name for h in self._hits(HOTEL_SEARCH, destination=destination)]
