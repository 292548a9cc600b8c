"""Synchronous Python SDK client."""

from __future__ import annotations

import os
from datetime import date
from time import sleep
from typing import Any
from uuid import UUID

import httpx

from avdesk_client.exceptions import (
    AvDeskAPIError,
    AvDeskAuthError,
    AvDeskConflictError,
    AvDeskForbiddenError,
    AvDeskNotFoundError,
    AvDeskRateLimitError,
    AvDeskValidationError,
)
from avdesk_client.types import (
    CheckoutInfo,
    CheckoutResult,
    EquipmentInfo,
    MergePrompt,
    ReturnResult,
)

RETRYABLE_METHODS = frozenset({"GET"})


class AvDeskClient:
    """Client for the AV Desk API.

    Parameters
    ----------
    base_url : str
        AV Desk service base URL.
    admin_token : str | None, default=None
        Admin bearer token. Only needed for admin listings.
    timeout : float, default=10.0
        Request timeout in seconds.
    max_retries : int, default=2
        Number of retries for transient errors on read requests.
    transport : httpx.BaseTransport | None, default=None
        Optional transport for tests or advanced usage.
    """

    def __init__(
        self,
        *,
        base_url: str,
        admin_token: str | None = None,
        timeout: float = 10.0,
        max_retries: int = 2,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.admin_token = admin_token
        self.timeout = timeout
        self.max_retries = max_retries
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    @classmethod
    def from_env(cls) -> "AvDeskClient":
        """Build a client from environment variables.

        Expected variables
        ------------------
        AVDESK_BASE_URL
            AV Desk base URL. Defaults to ``http://127.0.0.1:8000``.
        AVDESK_ADMIN_TOKEN
            Optional admin bearer token.

        Returns
        -------
        AvDeskClient
            Configured SDK client.
        """
        base_url = os.environ.get("AVDESK_BASE_URL", "http://127.0.0.1:8000")
        admin_token = os.environ.get("AVDESK_ADMIN_TOKEN") or None
        return cls(base_url=base_url, admin_token=admin_token)

    def close(self) -> None:
        """Close the underlying HTTP client.

        Returns
        -------
        None
            Releases HTTP resources.
        """
        self._client.close()

    def list_equipment(self) -> list[EquipmentInfo]:
        """List the public catalog.

        Returns
        -------
        list[EquipmentInfo]
            Items that are neither retired nor reserved.
        """
        response = self._request("GET", "/v1/equipment")
        return [EquipmentInfo.from_json(item) for item in response.json()]

    def get_equipment(self, equipment_id: UUID) -> EquipmentInfo:
        """Fetch one catalog item."""
        response = self._request("GET", f"/v1/equipment/{equipment_id}")
        return EquipmentInfo.from_json(response.json())

    def checkout(
        self,
        equipment_id: UUID,
        *,
        borrower_name: str,
        team_name: str,
        pin: str,
        condition_counts: dict[str, int],
        contact_number: str | None = None,
        location_used: str | None = None,
        av_member: str | None = None,
        expected_return: date | None = None,
        notes: str | None = None,
    ) -> CheckoutResult | MergePrompt:
        """Check out equipment.

        Parameters
        ----------
        equipment_id : UUID
            Equipment identifier.
        borrower_name : str
            Person taking the units.
        team_name : str
            Team the units are borrowed for.
        pin : str
            Four-digit PIN needed to return the units.
        condition_counts : dict[str, int]
            Requested units per condition.
        contact_number, location_used, av_member, notes : str | None
            Optional descriptive fields.
        expected_return : date | None, default=None
            Planned return date.

        Returns
        -------
        CheckoutResult | MergePrompt
            The written checkout, or a prompt when the same borrower and PIN
            already hold an open checkout of this item.
        """
        payload: dict[str, Any] = {
            "equipment_id": str(equipment_id),
            "borrower_name": borrower_name,
            "team_name": team_name,
            "pin": pin,
            "condition_counts": dict(condition_counts),
            "contact_number": contact_number,
            "location_used": location_used,
            "av_member": av_member,
            "expected_return": (
                expected_return.isoformat() if expected_return is not None else None
            ),
            "notes": notes,
        }
        data = self._request("POST", "/v1/checkout", json=payload).json()
        if data.get("merge_prompt"):
            return MergePrompt(
                client=self,
                existing=CheckoutInfo.from_json(data["existing"]),
                merge_token=data["merge_token"],
                request=payload,
            )
        return CheckoutResult(
            checkout=CheckoutInfo.from_json(data["checkout"]),
            merged=bool(data.get("merged")),
        )

    def confirm_merge(self, prompt: MergePrompt) -> CheckoutResult:
        """Resend a prompted checkout with the merge confirmed.

        Parameters
        ----------
        prompt : MergePrompt
            Prompt returned by :meth:`checkout`.

        Returns
        -------
        CheckoutResult
            Merged record.
        """
        payload = {
            **prompt.request,
            "force_merge": True,
            "merge_token": prompt.merge_token,
        }
        data = self._request("POST", "/v1/checkout", json=payload).json()
        return CheckoutResult(
            checkout=CheckoutInfo.from_json(data["checkout"]),
            merged=bool(data.get("merged")),
        )

    def return_equipment(
        self,
        equipment_id: UUID,
        *,
        pin: str,
        condition_counts: dict[str, int],
        return_notes: str | None = None,
        returned_by: str | None = None,
    ) -> ReturnResult:
        """Return units of an item.

        Parameters
        ----------
        equipment_id : UUID
            Equipment identifier.
        pin : str
            PIN given at checkout.
        condition_counts : dict[str, int]
            Returned units per condition.
        return_notes : str | None, default=None
            Free text.
        returned_by : str | None, default=None
            Who brought the units back.

        Returns
        -------
        ReturnResult
            Updated record and outstanding balance.
        """
        data = self._request(
            "POST",
            "/v1/return",
            json={
                "equipment_id": str(equipment_id),
                "pin": pin,
                "condition_counts": dict(condition_counts),
                "return_notes": return_notes,
                "returned_by": returned_by,
            },
        ).json()
        return ReturnResult(
            checkout=CheckoutInfo.from_json(data["checkout"]),
            fully_returned=data["fully_returned"],
            remaining=data["remaining"],
        )

    def list_active_checkouts(
        self, equipment_id: UUID | None = None
    ) -> list[CheckoutInfo]:
        """List open checkouts.

        Parameters
        ----------
        equipment_id : UUID | None, default=None
            With an id, list that item's open checkouts from the public
            endpoint. Without one, list every open checkout, which needs an
            admin token.

        Returns
        -------
        list[CheckoutInfo]
            Open checkout records, newest first.
        """
        if equipment_id is not None:
            response = self._request("GET", f"/v1/equipment/{equipment_id}/checkouts")
        else:
            response = self._request(
                "GET", "/v1/admin/checkouts/active", headers=self._admin_headers()
            )
        return [CheckoutInfo.from_json(item) for item in response.json()]

    def _admin_headers(self) -> dict[str, str]:
        if not self.admin_token:
            raise AvDeskAuthError("An admin token is required for this request")
        return {"Authorization": f"Bearer {self.admin_token}"}

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send an HTTP request, retrying reads on transient failures.

        Only ``GET`` requests are retried. A failed ``POST`` is raised on the
        first attempt.

        Parameters
        ----------
        method : str
            HTTP method.
        path : str
            Relative request path.
        **kwargs : Any
            Additional request arguments.

        Returns
        -------
        httpx.Response
            Successful response.
        """
        retries = self.max_retries if method.upper() in RETRYABLE_METHODS else 0
        attempts = retries + 1
        last_exception: Exception | None = None
        for attempt in range(attempts):
            try:
                response = self._client.request(method, path, **kwargs)
            except httpx.HTTPError as exc:
                last_exception = exc
                if attempt < retries:
                    sleep(0.1 * (attempt + 1))
                    continue
                raise AvDeskAPIError(str(exc)) from exc

            if response.status_code < 400:
                return response
            if _is_transient_response(response) and attempt < retries:
                sleep(0.1 * (attempt + 1))
                continue
            raise _exception_for_response(response)

        if last_exception is not None:
            raise AvDeskAPIError(str(last_exception)) from last_exception
        raise AvDeskAPIError("Request failed")

    def __enter__(self) -> "AvDeskClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        _ = (exc_type, exc_value, traceback)
        self.close()


def _is_transient_response(response: httpx.Response) -> bool:
    """Return whether a response is worth retrying."""
    return response.status_code in {429, 502, 503, 504}


def _exception_for_response(response: httpx.Response) -> AvDeskAPIError:
    """Map an error response to a typed SDK exception.

    Parameters
    ----------
    response : httpx.Response
        HTTP response.

    Returns
    -------
    AvDeskAPIError
        Typed SDK error.
    """
    try:
        data = response.json()
    except ValueError:
        data = {}
    detail = data.get("detail") if isinstance(data, dict) else None
    if not isinstance(detail, str):
        # pydantic 422 bodies carry a list of error objects
        detail = None
    message = detail or f"AV Desk request failed with status {response.status_code}"

    if response.status_code == 401:
        return AvDeskAuthError(message, status_code=response.status_code)
    if response.status_code == 403:
        return AvDeskForbiddenError(message, status_code=response.status_code)
    if response.status_code == 404:
        return AvDeskNotFoundError(message, status_code=response.status_code)
    if response.status_code == 409:
        return AvDeskConflictError(message, status_code=response.status_code)
    if response.status_code == 429:
        return AvDeskRateLimitError(message, status_code=response.status_code)
    if response.status_code in {400, 422}:
        return AvDeskValidationError(message, status_code=response.status_code)
    return AvDeskAPIError(message, status_code=response.status_code)
