"""Hand-written stand-ins for requests sessions and responses."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union


class FakeResponse:
    """Minimal ``requests.Response`` surface used by the clients under test."""

    def __init__(
        self,
        status_code: int = 200,
        *,
        text: str = "",
        json_data: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.text = text if json_data is None else json.dumps(json_data)
        self.headers = dict(headers or {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 400

    @property
    def content(self) -> bytes:
        return self.text.encode("utf-8")

    def json(self) -> Any:
        if self._json is None:
            return json.loads(self.text)
        return self._json


def html_page(body: str, *, title: str = "", status: int = 200) -> FakeResponse:
    markup = f"<html><head><title>{title}</title></head><body>{body}</body></html>"
    return FakeResponse(status, text=markup, headers={"Content-Type": "text/html; charset=utf-8"})


Route = Union[FakeResponse, BaseException]
Handler = Callable[[str, str, Dict[str, Any]], Route]


class FakeSession:
    """Serves canned responses by URL (or via a handler) and records every call."""

    def __init__(
        self,
        routes: Optional[Mapping[str, Route]] = None,
        *,
        handler: Optional[Handler] = None,
    ) -> None:
        self.routes = dict(routes or {})
        self.handler = handler
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        return self.request("POST", url, **kwargs)

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append((method, url, kwargs))
        if self.handler is not None:
            outcome = self.handler(method, url, kwargs)
        else:
            outcome = self.routes.get(url, FakeResponse(404, text="not found"))
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    def urls(self) -> List[str]:
        return [url for _, url, _ in self.calls]


__all__ = ["FakeResponse", "FakeSession", "html_page"]
