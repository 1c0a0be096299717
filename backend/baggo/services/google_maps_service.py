# backend/baggo/services/google_maps_service.py

import requests
from typing import Any, Dict, List, Optional

from baggo.core.config_loader import settings
from baggo.core.logger import logger


class GoogleMapsService:
    SEARCH_URL = "https://places.googleapis.com/v1/places:searchText"

    def __init__(self, api_key: str = None, timeout: float = 15):
        self.key = api_key if api_key is not None else settings.GOOGLE_MAPS_API_KEY
        self.timeout = timeout

    # -------------------------------------------------------
    # GOOGLE PLACES TEXT SEARCH
    # -------------------------------------------------------
    def search_places(self, query: str, limit: int = 20) -> List[Dict[str, Any]]:
        """
        Search places using Google Places API Text Search (New).

        Args:
            query: Text query (e.g., "pet-friendly hotels near Lisbon")
            limit: Maximum number of results (API max is 20 per page)

        Returns:
            List of place objects. Empty on any failure: HTTP error status,
            network error or a payload without a "places" list.
        """
        payload = {
            "textQuery": query,
            "maxResultCount": min(limit, 20),
            "languageCode": settings.places_language,
        }

        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self.key,
            "X-Goog-FieldMask": (
                "places.id,"
                "places.displayName,"
                "places.formattedAddress,"
                "places.rating,"
                "places.location,"
                "places.types"
            )
        }

        try:
            logger.debug(f"Searching places with query: {query}")
            resp = requests.post(self.SEARCH_URL, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()

            data = resp.json()
        except requests.exceptions.HTTPError as e:
            body = e.response.text if e.response is not None else "N/A"
            logger.error(f"HTTP error searching places: {e}, Response: {body}")
            return []
        except requests.exceptions.RequestException as e:
            logger.error(f"Request error searching places: {e}")
            return []
        except ValueError as e:
            logger.error(f"Invalid JSON from places search: {e}")
            return []

        places = data.get("places") if isinstance(data, dict) else None
        if not isinstance(places, list):
            logger.warning(f"Places search returned no 'places' list for query: {query}")
            return []

        logger.info(f"Found {len(places)} places for query: {query}")
        return places

    @staticmethod
    def place_name(place: Dict[str, Any]) -> str:
        display = place.get("displayName") if isinstance(place, dict) else None
        if isinstance(display, dict):
            return (display.get("text") or "").strip()
        if isinstance(display, str):
            return display.strip()
        return ""

    @staticmethod
    def place_id(place: Dict[str, Any]) -> Optional[str]:
        value = place.get("id") if isinstance(place, dict) else None
        return value if isinstance(value, str) and value else None

    @staticmethod
    def place_location(place: Dict[str, Any]) -> Optional[Dict[str, float]]:
        """{"lat", "lng"} from the provider's {"latitude", "longitude"}, or None."""
        location = place.get("location") if isinstance(place, dict) else None
        if not isinstance(location, dict):
            return None
        try:
            return {"lat": float(location["latitude"]), "lng": float(location["longitude"])}
        except (KeyError, TypeError, ValueError):
            return None
