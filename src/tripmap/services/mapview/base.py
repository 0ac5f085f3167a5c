"""Map view boundary consumed by the planner.

The planner only describes what to draw; implementations own every
rendering primitive (marker handles, popups, the route layer).
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, Protocol, Sequence, Union

from ...models.domain import LngLat, MarkerStyle

ClickHandler = Callable[[float, float], Union[None, Awaitable[Any]]]


class MapView(Protocol):
    def add_or_replace_markers(self, styles: Sequence[MarkerStyle]) -> None: ...

    def set_route_line(self, geometry: Optional[Sequence[LngLat]]) -> None: ...

    def fly_to(self, point: LngLat, zoom: Optional[float] = None) -> None: ...

    def on_click(self, handler: ClickHandler) -> None: ...
