from fastapi import HTTPException, Request

from artisign.backend.realtime.handler import RealtimeHandler, Result

STATUS_BY_KIND = {
    "not_found": 404,
    "invalid_input": 400,
}


def get_handler(request: Request) -> RealtimeHandler:
    return request.app.state.handler


def unwrap(result: Result) -> dict:
    """
    Turns a failed Result into the matching HTTP error. Classification
    failures stay a 200 with success=false so frame streams keep going.
    """
    if not result.success and result.kind in STATUS_BY_KIND:
        raise HTTPException(status_code=STATUS_BY_KIND[result.kind], detail=result.error)
    return result.to_dict()
