"""Stand-ins for the chat-completions endpoint, sleeps and company web pages."""

import json
from typing import Any, Callable, Dict, List, Union

import httpx


def make_page(body_text: str) -> str:
    return (
        "<html><head><style>.x{color:red}</style></head><body>"
        "<nav>Home | Pricing | Careers</nav>"
        f"<main><p>{body_text}</p></main>"
        "<footer>Copyright Acme</footer></body></html>"
    )


def completion_body(content: Union[str, None]) -> Dict[str, Any]:
    """Minimal OpenAI chat.completion response body."""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "llama-3.1-8b-instant",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


def ok(content: Union[str, Dict[str, Any], None]) -> httpx.Response:
    if isinstance(content, dict):
        content = json.dumps(content)
    return httpx.Response(200, json=completion_body(content))


def status(code: int) -> httpx.Response:
    return httpx.Response(code, json={"error": {"message": f"status {code}", "type": "test"}})


class StubEndpoint:
    """Replays a scripted list of responses (the last one repeats) and records every request."""

    def __init__(self, responses: List[Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[index]
        return response(request) if callable(response) else response

    @property
    def calls(self) -> int:
        return len(self.requests)

    def request_json(self, i: int = 0) -> Dict[str, Any]:
        return json.loads(self.requests[i].content)


class SleepRecorder:
    """Async stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float):
        self.delays.append(delay)
