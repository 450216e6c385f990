"""In-memory stand-in for the Apify v2 API, served through httpx.MockTransport."""
import json
from typing import Any, Dict, List

import httpx

BASE_URL = "https://apify.test/v2"
BASE_PATH = "/v2"
ACTOR_ID = "compass~crawler-google-places"


class FakeApify:
    def __init__(self) -> None:
        self.items: List[Dict[str, Any]] = []
        # Statuses returned by successive run polls; the last one repeats.
        self.statuses: List[str] = ["SUCCEEDED"]
        self.start_status = 201
        self.user: Dict[str, Any] = {"id": "u1", "username": "prosperian", "plan": "FREE"}
        self.usage: Dict[str, Any] = {"computeUnits": 3.5}
        self.run_inputs: List[Dict[str, Any]] = []
        self.requests: List[httpx.Request] = []
        self.polls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        # raw_path keeps the encoded actor id intact.
        path = request.url.raw_path.decode().split("?")[0][len(BASE_PATH):]

        if request.method == "POST" and path.startswith("/acts/") and path.endswith("/runs"):
            if self.start_status >= 400:
                return httpx.Response(self.start_status, json={"error": {"message": "cannot start"}})
            self.run_inputs.append(json.loads(request.content or b"{}"))
            return httpx.Response(201, json={"data": {"id": "run-1", "status": "READY"}})

        if request.method == "GET" and path == "/actor-runs/run-1":
            status = self.statuses[min(self.polls, len(self.statuses) - 1)]
            self.polls += 1
            return httpx.Response(200, json={"data": {"id": "run-1", "status": status}})

        if request.method == "GET" and path == "/actor-runs/run-1/dataset/items":
            return httpx.Response(200, json=self.items)

        if request.method == "GET" and path == "/users/me":
            return httpx.Response(200, json={"data": self.user})

        if request.method == "GET" and path == "/users/me/usage/monthly":
            return httpx.Response(200, json={"data": self.usage})

        return httpx.Response(404, json={"error": {"message": f"no route for {request.method} {path}"}})
