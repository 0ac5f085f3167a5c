"""Trip planning endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from ...schemas.trip import (
    ClickedLocationResponse,
    FeatureCollectionResponse,
    LegModel,
    MapClickRequest,
    MapConfigResponse,
    MarkerModel,
    StartLocationRequest,
    StepModel,
    StopModel,
    TripStateResponse,
    TripSummaryModel,
)
from ...services.routing.backend_client import BackendError
from ...services.trip.session import TripSession

router = APIRouter(prefix="/trip", tags=["trip"])


def _session(request: Request) -> TripSession:
    return request.app.state.trip_session


def _state(session: TripSession) -> TripStateResponse:
    store = session.store
    summary = session.summary()
    leg = session.current_leg()
    failure = session.engine.last_failure
    return TripStateResponse(
        stops=[
            StopModel(order=index + 1, address=waypoint.address, lat=waypoint.lat, lng=waypoint.lng)
            for index, waypoint in enumerate(store.waypoints)
        ],
        start_location=store.start_location,
        current_stop_index=store.current_stop_index,
        can_advance=store.can_advance,
        route_available=session.engine.route is not None,
        summary=TripSummaryModel(
            distance_km=summary.distance_km,
            duration_min=summary.duration_min,
            stop_count=summary.stop_count,
        ),
        current_leg=LegModel(
            start=leg.start_address,
            end=leg.end_address,
            steps=[
                StepModel(instruction=step.instruction_text, distance=step.distance_text, duration=step.duration_text)
                for step in leg.steps
            ],
        ) if leg is not None else None,
        instructions_text=session.current_instructions_text(),
        markers=[
            MarkerModel(position=style.position, role=style.color_class.value, color=style.color, popup=style.popup_text)
            for style in session.marker_styles()
        ],
        engine_state=session.engine.state.value,
        route_unavailable_reason=failure.reason.value if failure and session.engine.route is None else None,
    )


@router.get("", response_model=TripStateResponse, status_code=status.HTTP_200_OK)
async def get_trip(request: Request) -> TripStateResponse:
    return _state(_session(request))


@router.post("/refresh", response_model=TripStateResponse, status_code=status.HTTP_200_OK)
async def refresh_trip(request: Request) -> TripStateResponse:
    session = _session(request)
    await session.refresh()
    return _state(session)


@router.post("/start", response_model=TripStateResponse, status_code=status.HTTP_200_OK)
async def change_start(payload: StartLocationRequest, request: Request) -> TripStateResponse:
    session = _session(request)
    if not await session.change_start(payload.address):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Stop '{payload.address}' not found",
        )
    return _state(session)


@router.delete("/stops/{address:path}", response_model=TripStateResponse, status_code=status.HTTP_200_OK)
async def delete_stop(address: str, request: Request) -> TripStateResponse:
    session = _session(request)
    try:
        await session.delete_stop(address)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Stop '{address}' not found") from exc
    except BackendError as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to delete stop: {exc}",
        ) from exc
    return _state(session)


@router.post("/advance", response_model=TripStateResponse, status_code=status.HTTP_200_OK)
async def advance(request: Request) -> TripStateResponse:
    session = _session(request)
    session.next_stop()
    return _state(session)


@router.get("/stops.txt", response_class=PlainTextResponse)
async def stops_text(request: Request) -> str:
    return _session(request).ordered_stops_text()


@router.get("/map", response_model=FeatureCollectionResponse)
async def map_features(request: Request) -> FeatureCollectionResponse:
    return FeatureCollectionResponse(**_session(request).view.to_feature_collection())


@router.get("/map/config", response_model=MapConfigResponse)
async def map_config(request: Request) -> MapConfigResponse:
    config = await _session(request).map_config()
    return MapConfigResponse(
        access_token=config.access_token,
        style=config.style,
        center=config.center,
        zoom=config.zoom,
    )


@router.post("/map/click", response_model=ClickedLocationResponse)
async def map_click(payload: MapClickRequest, request: Request) -> ClickedLocationResponse:
    marker = await _session(request).click_location(payload.lng, payload.lat)
    if marker is None:
        return ClickedLocationResponse(position=(payload.lng, payload.lat))
    return ClickedLocationResponse(position=marker.position, address=marker.address)


@router.post("/map/markers/{index}/select", response_model=MarkerModel)
async def select_marker(index: int, request: Request) -> MarkerModel:
    try:
        style = _session(request).select_marker(index)
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return MarkerModel(position=style.position, role=style.color_class.value, color=style.color, popup=style.popup_text)
