"""Python SDK tests."""

import json
from uuid import uuid4

import httpx
import pytest

from avdesk_client import (
    AvDeskAPIError,
    AvDeskAuthError,
    AvDeskClient,
    AvDeskConflictError,
    AvDeskForbiddenError,
    AvDeskNotFoundError,
    AvDeskValidationError,
    CheckoutResult,
    MergePrompt,
)


def _record(record_id: str, equipment_id: str, **overrides) -> dict:
    record = {
        "id": record_id,
        "equipment_id": equipment_id,
        "borrower_name": "Dana",
        "team_name": "Worship",
        "quantity": 1,
        "quantity_returned": 0,
        "checkout_condition_counts": {"good": 1},
        "checkout_date": "2026-03-01T10:00:00Z",
        "expected_return": None,
        "return_date": None,
    }
    record.update(overrides)
    return record


class TestAvDeskClient:
    """SDK client behavior tests."""

    def test_from_env_reads_base_url_and_token(
        self, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Build a client from environment variables.

        Parameters
        ----------
        monkeypatch : pytest.MonkeyPatch
            Environment monkeypatch helper.

        Returns
        -------
        None
            Asserts env configuration.
        """
        monkeypatch.setenv("AVDESK_BASE_URL", "http://desk.test/")
        monkeypatch.setenv("AVDESK_ADMIN_TOKEN", "adm_secret")

        client = AvDeskClient.from_env()

        assert client.base_url == "http://desk.test"
        assert client.admin_token == "adm_secret"
        client.close()

    def test_checkout_merge_prompt_then_confirm(self) -> None:
        """Surface a merge prompt and resend with the token on confirm.

        Returns
        -------
        None
            Asserts both request bodies and the parsed results.
        """
        equipment_id = str(uuid4())
        record_id = str(uuid4())
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            bodies.append(body)
            if not body.get("force_merge"):
                return httpx.Response(
                    200,
                    json={
                        "success": False,
                        "merge_prompt": True,
                        "merged": False,
                        "checkout": None,
                        "existing": _record(record_id, equipment_id),
                        "merge_token": "tok-123",
                    },
                )
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "merge_prompt": False,
                    "merged": True,
                    "checkout": _record(
                        record_id,
                        equipment_id,
                        quantity=2,
                        checkout_condition_counts={"good": 2},
                        contact_number=None,
                    ),
                    "existing": None,
                    "merge_token": None,
                },
            )

        client = AvDeskClient(
            base_url="http://desk.test", transport=httpx.MockTransport(handler)
        )
        prompt = client.checkout(
            equipment_id,
            borrower_name="Dana",
            team_name="Worship",
            pin="1234",
            condition_counts={"good": 1},
        )
        assert isinstance(prompt, MergePrompt)
        assert str(prompt.existing.id) == record_id

        result = prompt.confirm()

        assert isinstance(result, CheckoutResult)
        assert result.merged is True
        assert result.checkout.quantity == 2
        assert result.checkout.remaining == 2
        assert bodies[1]["force_merge"] is True
        assert bodies[1]["merge_token"] == "tok-123"
        assert bodies[1]["pin"] == "1234"
        client.close()

    def test_return_parses_result(self) -> None:
        """Parse a return response into typed fields.

        Returns
        -------
        None
            Asserts parsed result fields.
        """
        equipment_id = str(uuid4())

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/return"
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "fully_returned": True,
                    "remaining": 0,
                    "checkout": _record(
                        str(uuid4()),
                        equipment_id,
                        quantity_returned=1,
                        return_date="2026-03-02T09:30:00+00:00",
                        condition_on_return="fair",
                    ),
                },
            )

        with AvDeskClient(
            base_url="http://desk.test", transport=httpx.MockTransport(handler)
        ) as client:
            result = client.return_equipment(
                equipment_id, pin="1234", condition_counts={"fair": 1}
            )

        assert result.fully_returned is True
        assert result.checkout.condition_on_return == "fair"
        assert result.checkout.return_date is not None

    @pytest.mark.parametrize(
        ("status_code", "error_type"),
        [
            (400, AvDeskValidationError),
            (401, AvDeskAuthError),
            (403, AvDeskForbiddenError),
            (404, AvDeskNotFoundError),
            (409, AvDeskConflictError),
            (422, AvDeskValidationError),
        ],
    )
    def test_maps_error_responses(self, status_code, error_type) -> None:
        """Map HTTP status codes to typed SDK errors.

        Parameters
        ----------
        status_code : int
            HTTP status returned by the server.
        error_type : type[AvDeskAPIError]
            Expected SDK exception.

        Returns
        -------
        None
            Asserts the raised exception type.
        """

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, json={"detail": "nope"})

        client = AvDeskClient(
            base_url="http://desk.test", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(error_type) as exc_info:
            client.list_equipment()
        assert exc_info.value.status_code == status_code
        client.close()

    def test_conflict_message_is_server_detail(self) -> None:
        """Keep the server's actual-versus-requested message.

        Returns
        -------
        None
            Asserts the exception message.
        """

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                409, json={"detail": "Only 3 available. You requested 5."}
            )

        client = AvDeskClient(
            base_url="http://desk.test", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(AvDeskConflictError, match="Only 3 available"):
            client.checkout(
                uuid4(),
                borrower_name="Dana",
                team_name="Worship",
                pin="1234",
                condition_counts={"good": 5},
            )
        client.close()

    def test_retries_transient_errors(self) -> None:
        """Retry a 503 before succeeding.

        Returns
        -------
        None
            Asserts two requests were sent.
        """
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                return httpx.Response(503, json={"detail": "busy"})
            return httpx.Response(200, json=[])

        client = AvDeskClient(
            base_url="http://desk.test",
            max_retries=1,
            transport=httpx.MockTransport(handler),
        )
        assert client.list_equipment() == []
        assert calls["count"] == 2
        client.close()

    def test_return_is_sent_once_on_gateway_error(self) -> None:
        """Send a return exactly once when the gateway answers 503.

        Returns
        -------
        None
            Asserts the failure surfaces without a second POST.
        """
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            return httpx.Response(503, json={"detail": "busy"})

        client = AvDeskClient(
            base_url="http://desk.test",
            max_retries=2,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(AvDeskAPIError) as excinfo:
            client.return_equipment(uuid4(), pin="1234", condition_counts={"good": 2})
        assert excinfo.value.status_code == 503
        assert calls["count"] == 1
        client.close()

    def test_checkout_is_sent_once_on_timeout(self) -> None:
        """Send a checkout exactly once when the read times out.

        Returns
        -------
        None
            Asserts the timeout surfaces without a second POST.
        """
        calls = {"count": 0}

        def handler(request: httpx.Request) -> httpx.Response:
            calls["count"] += 1
            if calls["count"] == 1:
                raise httpx.ReadTimeout("timed out", request=request)
            return httpx.Response(504, json={"detail": "gateway"})

        client = AvDeskClient(
            base_url="http://desk.test",
            max_retries=2,
            transport=httpx.MockTransport(handler),
        )
        with pytest.raises(AvDeskAPIError):
            client.checkout(
                uuid4(),
                borrower_name="Dana",
                team_name="Worship",
                pin="1234",
                condition_counts={"good": 2},
            )
        assert calls["count"] == 1
        client.close()

    def test_admin_listing_needs_token(self) -> None:
        """Refuse the all-items active listing without an admin token.

        Returns
        -------
        None
            Asserts the auth error and sent headers.
        """
        seen: list[str | None] = []
        equipment_id = str(uuid4())

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json=[_record(str(uuid4()), equipment_id)])

        anonymous = AvDeskClient(
            base_url="http://desk.test", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(AvDeskAuthError):
            anonymous.list_active_checkouts()
        assert len(anonymous.list_active_checkouts(equipment_id)) == 1
        anonymous.close()

        admin = AvDeskClient(
            base_url="http://desk.test",
            admin_token="adm_x",
            transport=httpx.MockTransport(handler),
        )
        assert len(admin.list_active_checkouts()) == 1
        admin.close()
        assert seen == [None, "Bearer adm_x"]
