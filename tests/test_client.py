"""Tests for the custodian HTTP client against a mock server."""

import base64
import json
from uuid import uuid4

import pytest
from conftest import API_KEY, SIGNATURE, ZERO_PUBKEY_HEX, MockCustodian

from popsigner.client import errors as client_errors
from popsigner.client.http import DEFAULT_USER_AGENT, Client, parse_error
from popsigner.errors import SignerErrorKind, SigningFailedError
from popsigner.models import BatchSignRequestItem
from popsigner.signer import RemoteSigner

KEY_ID = uuid4()
KEY_JSON = {"id": str(KEY_ID), "name": "validator", "public_key": ZERO_PUBKEY_HEX}
ENCODED_SIGNATURE = base64.b64encode(SIGNATURE).decode()


class TestKeys:
    """Key lookups."""

    @pytest.mark.asyncio
    async def test_get_key(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        mock.add("GET", f"/v1/keys/{KEY_ID}", {"data": KEY_JSON})

        key = await api_client.keys.get(KEY_ID)

        assert key.id == KEY_ID
        assert key.name == "validator"
        request = mock.requests[0]
        assert request["headers"]["Authorization"] == f"Bearer {API_KEY}"
        assert request["headers"]["User-Agent"] == DEFAULT_USER_AGENT

    @pytest.mark.asyncio
    async def test_list_keys_with_namespace(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        mock.add("GET", "/v1/keys", {"data": [KEY_JSON]})
        namespace_id = uuid4()

        keys = await api_client.list_keys(namespace_id)

        assert [key.name for key in keys] == ["validator"]
        assert mock.requests[0]["query"] == {"namespace_id": str(namespace_id)}

    @pytest.mark.asyncio
    async def test_get_by_name_quotes_name(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        namespace_id = uuid4()
        mock.add("GET", f"/v1/keys/by-name/{namespace_id}/my key", {"data": KEY_JSON})

        key = await api_client.keys.get_by_name(str(namespace_id), "my key")

        assert key.id == KEY_ID

    @pytest.mark.asyncio
    async def test_get_by_name_rejects_bad_namespace(self, api_client: Client) -> None:
        with pytest.raises(client_errors.InvalidArgumentError):
            await api_client.keys.get_by_name("not-a-uuid", "validator")

    @pytest.mark.asyncio
    async def test_missing_key_is_key_not_found(self, api_client: Client) -> None:
        with pytest.raises(client_errors.KeyNotFoundError):
            await api_client.get_key(uuid4())


class TestSigning:
    """Sign, batch and verify endpoints."""

    @pytest.mark.asyncio
    async def test_sign(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        mock.add(
            "POST",
            f"/v1/keys/{KEY_ID}/sign",
            {"data": {"signature": ENCODED_SIGNATURE, "public_key": ZERO_PUBKEY_HEX}},
        )

        response = await api_client.remote_sign(KEY_ID, b"hello", False)

        assert response.signature == SIGNATURE
        assert response.public_key == ZERO_PUBKEY_HEX
        body = json.loads(mock.requests[0]["body"])
        assert base64.b64decode(body["data"]) == b"hello"
        assert body["prehashed"] is False

    @pytest.mark.asyncio
    async def test_sign_bad_signature_encoding(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        mock.add("POST", f"/v1/keys/{KEY_ID}/sign", {"data": {"signature": "%%%"}})
        with pytest.raises(client_errors.ResponseDecodeError):
            await api_client.remote_sign(KEY_ID, b"hello", False)

    @pytest.mark.asyncio
    async def test_sign_batch(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        other = uuid4()
        mock.add(
            "POST",
            "/v1/sign/batch",
            {
                "data": {
                    "signatures": [
                        {"key_id": str(KEY_ID), "signature": ENCODED_SIGNATURE},
                        {"key_id": str(other), "error": "key disabled"},
                    ]
                }
            },
        )
        items = [
            BatchSignRequestItem(key_id=KEY_ID, data="aGVsbG8="),
            BatchSignRequestItem(key_id=other, data="aGVsbG8="),
        ]

        entries = await api_client.remote_sign_batch(items)

        assert entries[0].signature == ENCODED_SIGNATURE
        assert entries[1].error == "key disabled"
        body = json.loads(mock.requests[0]["body"])
        assert [r["key_id"] for r in body["requests"]] == [str(KEY_ID), str(other)]

    @pytest.mark.asyncio
    async def test_verify(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        mock.add("POST", f"/v1/keys/{KEY_ID}/verify", {"data": {"valid": True}})
        assert await api_client.remote_verify(KEY_ID, b"hello", SIGNATURE, False) is True

    @pytest.mark.asyncio
    async def test_service_rejected_request_is_signing_failure(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        mock.add(
            "POST",
            f"/v1/keys/{KEY_ID}/sign",
            {"error": {"code": "invalid_request", "message": "payload too large"}},
            status=400,
        )
        signer = RemoteSigner(api_client, KEY_ID, "validator", bytes(33))

        with pytest.raises(SigningFailedError) as exc_info:
            await signer.sign(b"hello")

        assert exc_info.value.kind is SignerErrorKind.SIGNING_FAILED
        assert isinstance(exc_info.value.__cause__, client_errors.InvalidRequestError)
        assert len(mock.requests) == 1


class TestOrgsAndAudit:
    """Organization, namespace and audit queries."""

    @pytest.mark.asyncio
    async def test_current_org(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        org_id = uuid4()
        mock.add("GET", "/v1/org", {"data": {"id": str(org_id), "name": "Acme", "plan": "pro"}})
        org = await api_client.orgs.get_current()
        assert org.id == org_id
        assert org.plan == "pro"

    @pytest.mark.asyncio
    async def test_namespaces(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        namespace_id = uuid4()
        mock.add("GET", "/v1/namespaces", {"data": [{"id": str(namespace_id), "name": "prod"}]})
        mock.add(
            "GET", f"/v1/namespaces/{namespace_id}", {"data": {"id": str(namespace_id), "name": "prod"}}
        )
        namespaces = await api_client.orgs.list_namespaces()
        assert [ns.name for ns in namespaces] == ["prod"]
        assert (await api_client.orgs.get_namespace(namespace_id)).name == "prod"

    @pytest.mark.asyncio
    async def test_audit_filters(self, custodian: tuple[MockCustodian, str], api_client: Client) -> None:
        mock, _ = custodian
        log_id = uuid4()
        mock.add(
            "GET",
            "/v1/audit",
            {
                "data": {
                    "items": [{"id": str(log_id), "event": "key.signed"}],
                    "total": 1,
                    "offset": 0,
                    "limit": 10,
                }
            },
        )
        page = await api_client.audit.list_for_resource("key", KEY_ID)
        assert page.total == 1
        assert page.items[0].event == "key.signed"
        assert mock.requests[0]["query"] == {"resource_type": "key", "resource_id": str(KEY_ID)}


class TestErrors:
    """Error mapping from HTTP responses."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "body", "expected"),
        [
            (401, {"error": {"code": "unauthorized", "message": "bad key"}}, client_errors.UnauthorizedError),
            (429, {"error": {"code": "rate_limited", "message": "slow down"}}, client_errors.RateLimitedError),
            (403, {"error": {"code": "quota_exceeded", "message": "quota"}}, client_errors.QuotaExceededError),
            (400, {"error": {"code": "validation_error", "message": "bad"}}, client_errors.InvalidRequestError),
            (500, {"error": {"code": "internal", "message": "boom"}}, client_errors.APIError),
            (502, b"<html>bad gateway</html>", client_errors.APIError),
        ],
    )
    async def test_status_mapping(
        self,
        custodian: tuple[MockCustodian, str],
        api_client: Client,
        status: int,
        body: object,
        expected: type[Exception],
    ) -> None:
        mock, _ = custodian
        mock.add("GET", "/v1/org", body, status=status)
        with pytest.raises(expected):
            await api_client.orgs.get_current()

    @pytest.mark.asyncio
    async def test_api_error_fields(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        mock.add("GET", "/v1/org", {"error": {"code": "internal", "message": "boom"}}, status=503)
        with pytest.raises(client_errors.APIError) as exc_info:
            await api_client.orgs.get_current()
        error = exc_info.value
        assert error.code == "internal"
        assert error.status_code == 503
        assert error.is_retryable
        assert str(error) == "API error (503): [internal] boom"

    @pytest.mark.asyncio
    async def test_success_with_wrong_shape(
        self, custodian: tuple[MockCustodian, str], api_client: Client
    ) -> None:
        mock, _ = custodian
        mock.add("GET", "/v1/org", {"data": {"unexpected": True}})
        with pytest.raises(client_errors.ResponseDecodeError):
            await api_client.orgs.get_current()

    @pytest.mark.asyncio
    async def test_transport_error(self) -> None:
        async with Client(API_KEY, base_url="http://127.0.0.1:1", timeout=2.0) as client:
            with pytest.raises(client_errors.TransportError) as exc_info:
                await client.list_keys()
        assert exc_info.value.is_retryable

    def test_parse_error_key_path_404(self) -> None:
        error = parse_error(404, b"not json", f"/v1/keys/{KEY_ID}")
        assert isinstance(error, client_errors.KeyNotFoundError)

    def test_parse_error_unknown_body(self) -> None:
        error = parse_error(500, b"", "/v1/org")
        assert isinstance(error, client_errors.APIError)
        assert error.code == "unknown"

    def test_empty_api_key_rejected(self) -> None:
        with pytest.raises(ValueError, match="api_key"):
            Client("")
