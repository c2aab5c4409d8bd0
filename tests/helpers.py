"""Shared fakes for provider-core tests."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Union

import httpx

Handler = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self.current = start or datetime(2024, 5, 17, 9, 30)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)

    def set(self, moment: datetime) -> None:
        self.current = moment


class FakeYouTube:
    """Route YouTube Data API requests to per-resource handlers and record them."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._routes: Dict[str, Union[Handler, httpx.Response]] = {}

    def route(self, resource: str, handler: Union[Handler, httpx.Response, Dict[str, Any]]) -> None:
        if isinstance(handler, dict):
            payload = handler
            handler = lambda request: httpx.Response(200, json=payload)  # noqa: E731
        self._routes[resource] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        resource = request.url.path.rsplit("/", 1)[-1]
        handler = self._routes.get(resource)
        if handler is None:
            return httpx.Response(404, json={"error": {"code": 404, "message": f"No route for {resource}"}})
        if isinstance(handler, httpx.Response):
            return handler
        return handler(request)

    def calls(self, resource: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.path.endswith(f"/{resource}")]

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def video_item(video_id: str, *, title: Optional[str] = None, duration: Optional[str] = "PT3M33S") -> Dict[str, Any]:
    item: Dict[str, Any] = {
        "kind": "youtube#video",
        "id": video_id,
        "snippet": {
            "title": title or f"Track {video_id}",
            "channelTitle": f"Channel {video_id}",
            "thumbnails": {
                "default": {"url": f"https://i.ytimg.com/vi/{video_id}/default.jpg"},
                "high": {"url": f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"},
            },
        },
    }
    if duration is not None:
        item["contentDetails"] = {"duration": duration}
    return item


def search_item(video_id: Optional[str] = None, *, playlist_id: Optional[str] = None) -> Dict[str, Any]:
    if video_id is not None:
        identifier = {"kind": "youtube#video", "videoId": video_id}
    else:
        identifier = {"kind": "youtube#playlist", "playlistId": playlist_id or "PLother"}
    return {"id": identifier, "snippet": {"title": "result", "channelTitle": "someone"}}


def playlist_item(video_id: str) -> Dict[str, Any]:
    return {"snippet": {"title": video_id, "resourceId": {"kind": "youtube#video", "videoId": video_id}}}


def videos_by_requested_id(request: httpx.Request) -> httpx.Response:
    """Answer a ``videos.list`` request with one item per requested ID."""

    ids = [value for value in request.url.params.get("id", "").split(",") if value]
    return httpx.Response(200, json={"items": [video_item(video_id) for video_id in ids]})


def quota_response(message: str = "The request cannot be completed because you have exceeded your quota.") -> httpx.Response:
    return httpx.Response(
        403,
        json={
            "error": {
                "code": 403,
                "message": message,
                "errors": [{"reason": "quotaExceeded", "domain": "youtube.quota", "message": message}],
            }
        },
    )


def ids(prefix: str, count: int) -> List[str]:
    """Return ``count`` distinct 11-character video IDs starting with ``prefix``."""

    width = 11 - len(prefix)
    return [f"{prefix}{index:0{width}d}" for index in range(count)]
