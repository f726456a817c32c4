"""Builders shared by the test modules."""

import json

import httpx

from spherestay.models.entity import Entity

BASE_URL = "http://api.test"


def raw_entity(id_: str, **fields) -> dict:
    """A minimal backend payload for one entity."""
    data = {"_id": id_, "title": f"Listing {id_}"}
    data.update(fields)
    return data


def entity(id_: str, **fields) -> Entity:
    return Entity.from_dict(raw_entity(id_, **fields))


def json_response(payload, status: int = 200) -> httpx.Response:
    return httpx.Response(status, json=payload)


class Recorder:
    """MockTransport handler that records requests and replays queued responses.

    The last queued response repeats once the others are used up.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(response, Exception):
            raise response
        if callable(response):
            return response(request)
        return response

    def body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)
