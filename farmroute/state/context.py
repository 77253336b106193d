"""Application context owning the catalog snapshot and the optional session."""

from dataclasses import dataclass, field
from typing import Optional

from ..catalog.models import Route
from ..errors import NoActiveSession, UnknownRoute
from .models import TrackingSession


@dataclass
class TrackerContext:
    """
    In-memory source of truth for one tracker instance.

    At most one session exists; it is only ever set through
    create_session and removed through destroy_session.
    """

    routes: dict[str, Route] = field(default_factory=dict)
    current_route_id: Optional[str] = None
    session: Optional[TrackingSession] = None

    @property
    def has_session(self) -> bool:
        return self.session is not None

    def route(self, route_id: str) -> Route:
        route = self.routes.get(route_id)
        if route is None:
            raise UnknownRoute(f"Route {route_id} not found", route_id=route_id)
        return route

    def require_session(self) -> TrackingSession:
        if self.session is None:
            raise NoActiveSession("No route is being tracked")
        return self.session

    def active_route(self) -> Route:
        session = self.require_session()
        return self.route(session.route_id)

    def create_session(self, session: TrackingSession) -> None:
        self.session = session

    def destroy_session(self) -> Optional[TrackingSession]:
        session, self.session = self.session, None
        return session

    def put_route(self, route: Route) -> None:
        self.routes[route.id] = route

    def remove_route(self, route_id: str) -> Optional[Route]:
        return self.routes.pop(route_id, None)
