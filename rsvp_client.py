"""RSVP Collector API client.

A small wrapper around the RSVP REST API, built on ``requests``.  It is
meant for scripts and integrations that need to read or change RSVPs on
a running server:

* :meth:`RsvpAPI.list_rsvps` – return every RSVP, oldest first.
* :meth:`RsvpAPI.create_rsvp` – submit a new RSVP.
* :meth:`RsvpAPI.update_rsvp` – replace the fields of an existing RSVP.
* :meth:`RsvpAPI.delete_rsvp` – remove an RSVP.

Every method returns a tuple ``(data, error)``.  On success ``error`` is
``None``; on failure it is a dictionary with the keys ``status_code``
(``None`` for network errors) and ``message`` (taken from the server's
``{"message": ...}`` body when available).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import requests


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15

Error = Dict[str, Any]


class RsvpAPI:
    """Client for the ``/api/rsvps`` endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialise the API client.

        Args:
            base_url: Base URL of the server, e.g. ``http://localhost:3000``.
            session: Optional requests session.  If not supplied a
                session will be created automatically.
            timeout: Seconds to wait for each response.
        """
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Low level HTTP helpers
    # ------------------------------------------------------------------
    def _request(
        self, method: str, path: str, *, json_body: Any | None = None
    ) -> Tuple[Optional[Any], Optional[Error]]:
        """Perform an HTTP request to the API.

        Args:
            method: HTTP method (``GET``, ``POST``, ``PUT``, ``DELETE``).
            path: Path relative to :attr:`base_url` (e.g. ``/api/rsvps``).
            json_body: JSON body to send with the request.
        Returns:
            A tuple ``(data, error)``.  ``data`` is the parsed JSON body,
            or ``None`` for empty responses.
        """
        url = f"{self.base_url}{path}"
        try:
            logger.debug("Sending %s request to %s", method, url)
            response = self.session.request(
                method=method,
                url=url,
                json=json_body,
                timeout=self.timeout,
            )
            response.raise_for_status()
            if response.content:
                return response.json(), None
            return None, None
        except requests.HTTPError as exc:
            status = exc.response.status_code if exc.response is not None else None
            message = ""
            if exc.response is not None:
                try:
                    err_json = exc.response.json()
                    message = err_json.get("message") or err_json.get("detail") or str(err_json)
                except ValueError:
                    message = exc.response.text
            if not message:
                message = str(exc)
            logger.error("API request failed (%s): %s", status, message)
            return None, {"status_code": status, "message": message}
        except requests.RequestException as exc:
            logger.error("API request failed: %s", exc)
            return None, {"status_code": None, "message": str(exc)}

    @staticmethod
    def _item_path(rsvp_id: str) -> str:
        return f"/api/rsvps/{quote(str(rsvp_id), safe='')}"

    # ------------------------------------------------------------------
    # RSVP operations
    # ------------------------------------------------------------------
    def list_rsvps(self) -> Tuple[List[Dict[str, Any]], Optional[Error]]:
        """Retrieve all RSVPs.

        Returns:
            A tuple ``(rsvps, error)``.  ``rsvps`` is empty on failure.
        """
        data, error = self._request("GET", "/api/rsvps")
        if error:
            return [], error
        if isinstance(data, list):
            return data, None
        return [], None

    def create_rsvp(
        self,
        guest_name: str,
        contributions: List[str] | str,
        *,
        guest_count: int = 1,
        notes: str = "",
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Submit a new RSVP and return the stored entry."""
        payload = {
            "guestName": guest_name,
            "guestCount": guest_count,
            "notes": notes,
            "contributions": contributions,
        }
        return self._request("POST", "/api/rsvps", json_body=payload)

    def update_rsvp(
        self, rsvp_id: str, payload: Dict[str, Any]
    ) -> Tuple[Optional[Dict[str, Any]], Optional[Error]]:
        """Replace an RSVP.

        Args:
            rsvp_id: Identifier of the RSVP.
            payload: Complete submission (``guestName``, ``guestCount``,
                ``notes``, ``contributions``); omitted fields fall back
                to their defaults on the server.
        """
        return self._request("PUT", self._item_path(rsvp_id), json_body=payload)

    def delete_rsvp(self, rsvp_id: str) -> Tuple[bool, Optional[Error]]:
        """Delete an RSVP.

        Returns:
            A tuple ``(success, error)``.
        """
        _, error = self._request("DELETE", self._item_path(rsvp_id))
        if error:
            return False, error
        return True, None
