"""
RSVP endpoints.

``/api/rsvps`` lists entries (GET) and creates them (POST);
``/api/rsvps/{rsvp_id}`` replaces (PUT) or deletes (DELETE) one entry.
Every other method on these paths, HEAD included, answers 405.
``/api/rsvps/`` redirects to the collection with the method kept.

Request bodies are parsed by hand instead of through a pydantic body
model: the entry validator accepts loosely typed input and reports its
own messages.
"""

import json
import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.responses import RedirectResponse

from ...core.errors import NotFound, StorageError, ValidationError
from ...services.rsvp_service import RsvpService

logger = logging.getLogger(__name__)

router = APIRouter()

ENTRY_NOT_FOUND = "RSVP entry not found."


def get_rsvp_service(request: Request) -> RsvpService:
    return request.app.state.rsvp_service


async def read_json_payload(request: Request) -> Any:
    """Return the decoded JSON body; an empty body counts as ``{}``."""
    body = await request.body()
    if not body.strip():
        return {}
    try:
        return json.loads(body)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Request body must be valid JSON.",
        )


def _method_not_allowed(allowed: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
        detail="Method not allowed.",
        headers={"Allow": allowed},
    )


@router.get("")
def list_rsvps(service: RsvpService = Depends(get_rsvp_service)) -> List[Dict[str, Any]]:
    """Return all entries ordered by creation time, oldest first."""
    try:
        records = service.list()
    except StorageError:
        logger.exception("Failed to list RSVPs")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to load RSVP entries.",
        )
    return [record.to_wire() for record in records]


@router.post("", status_code=status.HTTP_201_CREATED)
def create_rsvp(
    payload: Any = Depends(read_json_payload),
    service: RsvpService = Depends(get_rsvp_service),
) -> Dict[str, Any]:
    """Create an entry.  The server assigns ``id`` and ``createdAt``."""
    try:
        record = service.create(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except StorageError:
        logger.exception("Failed to create RSVP")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to create RSVP entry.",
        )
    return record.to_wire()


@router.api_route(
    "",
    methods=["HEAD", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
def rsvps_method_not_allowed() -> None:
    raise _method_not_allowed("GET, POST")


@router.api_route(
    "/",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
def rsvps_trailing_slash(request: Request) -> RedirectResponse:
    # 307 keeps the method and body of the original request.
    return RedirectResponse(
        request.url.replace(path=request.url.path.rstrip("/")),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )


@router.put("/{rsvp_id}")
def update_rsvp(
    rsvp_id: str,
    payload: Any = Depends(read_json_payload),
    service: RsvpService = Depends(get_rsvp_service),
) -> Dict[str, Any]:
    """Replace guest name, count, notes and contributions of an entry."""
    try:
        record = service.replace(rsvp_id, payload)
    except ValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    except NotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ENTRY_NOT_FOUND)
    except StorageError:
        logger.exception("Failed to update RSVP %s", rsvp_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to update RSVP entry.",
        )
    return record.to_wire()


@router.delete("/{rsvp_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rsvp(rsvp_id: str, service: RsvpService = Depends(get_rsvp_service)) -> Response:
    """Delete an entry.  Unknown and already deleted ids both give 404."""
    try:
        removed = service.remove(rsvp_id)
    except StorageError:
        logger.exception("Failed to delete RSVP %s", rsvp_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Unable to delete RSVP entry.",
        )
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=ENTRY_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.api_route(
    "/{rsvp_id}",
    methods=["GET", "HEAD", "POST", "PATCH", "OPTIONS"],
    include_in_schema=False,
)
def rsvp_method_not_allowed(rsvp_id: str) -> None:
    raise _method_not_allowed("PUT, DELETE")
