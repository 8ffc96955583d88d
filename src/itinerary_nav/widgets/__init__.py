"""Widget exports for the itinerary_nav terminal front end."""

from .view_container import ViewContainer, ViewPane

__all__ = ["ViewContainer", "ViewPane"]
