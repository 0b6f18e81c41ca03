"""Tests for the operation pipeline in vaultspec.engine.command."""

from __future__ import annotations

from typing import Any

import pytest
from pydantic import Field

from vaultspec.contracts import token
from vaultspec.engine.command import (
    AsyncOperation,
    InvocationRequest,
    InvocationResult,
    Operation,
    PreparedRequest,
    check_contract,
    generate,
)
from vaultspec.engine.contract import Contract, Opaque, RequestModel
from vaultspec.exceptions import (
    BodyValidationError,
    ContractConfigurationError,
    PathValidationError,
    ResponseValidationError,
    ServiceError,
    TransportFailure,
)
from vaultspec.models import HTTPMethod
from vaultspec.transport.base import RawResponse


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _SecretPath(RequestModel):
    mount: str = Field(min_length=1)
    path: str


_SECRET = Contract(
    method=HTTPMethod.GET,
    path="/{{mount}}/data/{{path}}",
    path_schema=_SecretPath,
    response_schema=Opaque,
)


def _ok(payload: Any = None, status: int = 200) -> RawResponse:
    return RawResponse(status=status, payload=payload)


# ---------------------------------------------------------------------------
# generate / check_contract
# ---------------------------------------------------------------------------


class TestGenerate:
    def test_blocking_transport_gives_operation(self, make_transport) -> None:
        assert isinstance(generate(token.CREATE, make_transport()), Operation)

    def test_coroutine_transport_gives_async_operation(self, make_async_transport) -> None:
        assert isinstance(generate(token.CREATE, make_async_transport()), AsyncOperation)

    def test_rejects_object_without_send(self) -> None:
        with pytest.raises(TypeError, match="send"):
            generate(token.CREATE, object())

    def test_placeholder_without_path_schema(self, make_transport) -> None:
        contract = Contract(method=HTTPMethod.GET, path="/auth/token/roles/{{role_name}}")
        with pytest.raises(ContractConfigurationError, match="role_name"):
            generate(contract, make_transport())

    def test_placeholder_missing_from_path_schema(self, make_transport) -> None:
        contract = Contract(
            method=HTTPMethod.GET,
            path="/auth/token/roles/{{name}}",
            path_schema=token.RoleName,
        )
        with pytest.raises(ContractConfigurationError) as exc_info:
            generate(contract, make_transport())
        message = str(exc_info.value)
        assert "placeholders without a path-schema field: name" in message
        assert "path-schema fields without a placeholder: role_name" in message

    def test_path_schema_field_without_placeholder(self) -> None:
        contract = Contract(
            method=HTTPMethod.GET,
            path="/auth/token/roles",
            path_schema=token.RoleName,
        )
        with pytest.raises(ContractConfigurationError, match="without a placeholder: role_name"):
            check_contract(contract)

    def test_exit_code(self) -> None:
        contract = Contract(method=HTTPMethod.GET, path="/x/{{y}}")
        with pytest.raises(ContractConfigurationError) as exc_info:
            check_contract(contract)
        assert exc_info.value.exit_code == 8

    def test_repr(self, make_transport) -> None:
        op = generate(token.READ_ROLE, make_transport())
        assert repr(op) == "<Operation GET /auth/token/roles/{{role_name}}>"
        assert op.contract is token.READ_ROLE


# ---------------------------------------------------------------------------
# Path parameters and URL construction
# ---------------------------------------------------------------------------


class TestPathParameters:
    def test_substitutes_validated_value(self, make_transport) -> None:
        transport = make_transport(_ok({"data": {}}))
        generate(token.DELETE_ROLE, transport).invoke(path_params={"role_name": "admin"})
        assert transport.calls == [("DELETE", "/auth/token/roles/admin", None)]

    def test_reserved_characters_are_percent_encoded(self, make_transport) -> None:
        transport = make_transport()
        generate(token.DELETE_ROLE, transport).invoke(path_params={"role_name": "a/b c?"})
        assert transport.calls[0][1] == "/auth/token/roles/a%2Fb%20c%3F"

    def test_parameter_order_does_not_matter(self, make_transport) -> None:
        transport = make_transport(_ok({}))
        op = generate(_SECRET, transport)
        op.invoke(path_params={"path": "app/db", "mount": "kv"})
        op.invoke(path_params={"mount": "kv", "path": "app/db"})
        assert transport.calls[0][1] == transport.calls[1][1] == "/kv/data/app%2Fdb"

    def test_validated_values_are_rendered_as_text(self, make_transport) -> None:
        class _Versioned(RequestModel):
            version: int

        contract = Contract(
            method=HTTPMethod.GET, path="/kv/metadata/{{version}}", path_schema=_Versioned,
        )
        transport = make_transport()
        generate(contract, transport).invoke(path_params={"version": 3})
        assert transport.calls[0][1] == "/kv/metadata/3"

    def test_invalid_parameter_is_rejected_before_dispatch(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.READ_ROLE, transport).invoke(path_params={"role_name": ""})
        assert isinstance(result.error, PathValidationError)
        assert result.error.fields == ["role_name"]
        assert transport.calls == []

    def test_missing_parameters_report_every_field(self, make_transport) -> None:
        transport = make_transport()
        result = generate(_SECRET, transport).invoke()
        assert isinstance(result.error, PathValidationError)
        assert sorted(result.error.fields) == ["mount", "path"]
        assert transport.calls == []

    def test_unknown_parameter_is_rejected(self, make_transport) -> None:
        result = generate(token.READ_ROLE, make_transport()).invoke(
            path_params={"role_name": "admin", "extra": "x"},
        )
        assert isinstance(result.error, PathValidationError)
        assert result.error.fields == ["extra"]

    def test_parameters_for_contract_without_placeholders(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.LOOKUP_SELF, transport).invoke(path_params={"role_name": "x"})
        assert isinstance(result.error, PathValidationError)
        assert result.error.fields == ["role_name"]
        assert transport.calls == []

    def test_model_instance_accepted_as_parameters(self, make_transport) -> None:
        transport = make_transport()
        generate(token.DELETE_ROLE, transport).invoke(
            path_params=token.RoleName(role_name="ops"),
        )
        assert transport.calls[0][1] == "/auth/token/roles/ops"

    @pytest.mark.parametrize("value", ["..", "."])
    def test_dot_segments_are_rejected(self, value: str, make_transport) -> None:
        transport = make_transport()
        result = generate(token.DELETE_ROLE, transport).invoke(path_params={"role_name": value})
        assert isinstance(result.error, PathValidationError)
        assert result.error.fields == ["role_name"]
        assert result.error.violations[0].kind == "dot_segment"
        assert transport.calls == []

    def test_dots_inside_a_segment_are_kept(self, make_transport) -> None:
        transport = make_transport()
        generate(token.DELETE_ROLE, transport).invoke(path_params={"role_name": "..ops"})
        assert transport.calls == [("DELETE", "/auth/token/roles/..ops", None)]


# ---------------------------------------------------------------------------
# Request body
# ---------------------------------------------------------------------------


class TestBody:
    def test_defaults_are_applied(self, make_transport) -> None:
        transport = make_transport()
        generate(token.CREATE, transport).invoke(body={})
        assert transport.calls == [
            ("POST", "/auth/token/create", {"renewable": True, "display_name": "token"}),
        ]

    def test_caller_values_are_forwarded(self, make_transport) -> None:
        transport = make_transport()
        generate(token.CREATE, transport).invoke(
            body={"policies": ["web"], "ttl": "1h", "renewable": False, "meta": {"user": "armon"}},
        )
        assert transport.calls[0][2] == {
            "policies": ["web"],
            "ttl": "1h",
            "renewable": False,
            "meta": {"user": "armon"},
            "display_name": "token",
        }

    def test_missing_required_field(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.LOOKUP_ACCESSOR, transport).invoke(body={})
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["accessor"]
        assert result.error.violations[0].kind == "missing"
        assert transport.calls == []

    def test_wrong_type(self, make_transport) -> None:
        result = generate(token.CREATE, make_transport()).invoke(body={"policies": "web"})
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["policies"]

    def test_convertible_values_are_not_coerced(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.CREATE, transport).invoke(body={"renewable": "yes", "num_uses": "5"})
        assert isinstance(result.error, BodyValidationError)
        assert sorted(result.error.fields) == ["num_uses", "renewable"]
        assert transport.calls == []

    def test_null_is_rejected_for_optional_fields(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.CREATE, transport).invoke(body={"policies": None, "ttl": None})
        assert isinstance(result.error, BodyValidationError)
        assert sorted(result.error.fields) == ["policies", "ttl"]
        assert transport.calls == []

    def test_unknown_key_is_rejected(self, make_transport) -> None:
        result = generate(token.LOOKUP_ACCESSOR, make_transport()).invoke(
            body={"accessor": "abc", "acessor": "typo"},
        )
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["acessor"]

    def test_omitted_required_body(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.LOOKUP, transport).invoke()
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["body"]
        assert transport.calls == []

    def test_omitted_optional_body_sends_nothing(self, make_transport) -> None:
        transport = make_transport(_ok(None, status=204))
        generate(token.WRITE_ROLE, transport).invoke(path_params={"role_name": "ci"})
        assert transport.calls == [("POST", "/auth/token/roles/ci", None)]

    def test_optional_body_is_validated_when_given(self, make_transport) -> None:
        transport = make_transport()
        generate(token.RENEW_SELF, transport).invoke(body={"increment": "1h"})
        assert transport.calls[0][2] == {"increment": "1h"}

    def test_body_for_contract_without_body_schema(self, make_transport) -> None:
        transport = make_transport()
        result = generate(token.REVOKE_SELF, transport).invoke(body={"token": "x"})
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["body"]
        assert transport.calls == []

    def test_non_object_body(self, make_transport) -> None:
        result = generate(token.LOOKUP, make_transport()).invoke(body=["hvs.x"])
        assert isinstance(result.error, BodyValidationError)
        assert result.error.fields == ["body"]

    def test_path_checked_before_body(self, make_transport) -> None:
        result = generate(token.CREATE_WITH_ROLE, make_transport()).invoke(
            path_params={"role_name": ""}, body={"policies": "web"},
        )
        assert isinstance(result.error, PathValidationError)


# ---------------------------------------------------------------------------
# Dispatch and response handling
# ---------------------------------------------------------------------------


class TestResponse:
    def test_create_token_end_to_end(self, create_token_payload: dict[str, Any], make_transport) -> None:
        transport = make_transport(_ok(create_token_payload))
        result = generate(token.CREATE, transport).invoke(body={})

        assert transport.calls == [
            ("POST", "/auth/token/create", {"renewable": True, "display_name": "token"}),
        ]
        assert result.ok
        assert result.status == 200
        assert isinstance(result.value, token.AuthResponse)
        assert result.value.auth is None
        assert result.value.model_dump() == create_token_payload

    def test_issued_token_is_typed(self, issued_token_payload: dict[str, Any], make_transport) -> None:
        result = generate(token.CREATE, make_transport(_ok(issued_token_payload))).invoke(
            body={"policies": ["web", "stage"], "meta": {"user": "armon"}},
        )
        auth = result.unwrap().auth
        assert auth.client_token == "hvs.CAESIJRM"
        assert auth.metadata == {"user": "armon"}
        assert result.value.warnings == ['Policy "stage" does not exist']

    def test_nullable_fields_keep_null(self, create_token_payload: dict[str, Any], make_transport) -> None:
        result = generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={})
        assert result.value.lease_id is None
        assert result.value.warnings is None

    def test_nullable_field_must_be_present(self, create_token_payload: dict[str, Any], make_transport) -> None:
        del create_token_payload["warnings"]
        result = generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={})
        assert isinstance(result.error, ResponseValidationError)
        assert result.error.fields == ["warnings"]

    def test_missing_required_response_field(self, create_token_payload: dict[str, Any], make_transport) -> None:
        del create_token_payload["request_id"]
        transport = make_transport(_ok(create_token_payload))
        result = generate(token.CREATE, transport).invoke(body={})

        assert len(transport.calls) == 1
        assert not result.ok
        assert result.value is None
        assert isinstance(result.error, ResponseValidationError)
        assert result.error.fields == ["request_id"]
        assert result.error.status == 200
        assert result.error.raw_payload == create_token_payload
        assert result.raw == create_token_payload

    def test_wrong_response_type(self, create_token_payload: dict[str, Any], make_transport) -> None:
        create_token_payload["lease_duration"] = "soon"
        result = generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={})
        assert isinstance(result.error, ResponseValidationError)
        assert result.error.fields == ["lease_duration"]

    def test_convertible_response_values_are_not_coerced(
        self, create_token_payload: dict[str, Any], make_transport,
    ) -> None:
        create_token_payload["renewable"] = "false"
        create_token_payload["lease_duration"] = "3600"
        result = generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={})
        assert isinstance(result.error, ResponseValidationError)
        assert sorted(result.error.fields) == ["lease_duration", "renewable"]
        assert result.value is None

    def test_unknown_response_keys_are_kept(self, create_token_payload: dict[str, Any], make_transport) -> None:
        create_token_payload["mount_type"] = "token"
        result = generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={})
        assert result.ok
        assert result.value.model_extra == {"mount_type": "token"}

    def test_no_response_schema_returns_raw_payload(self, make_transport) -> None:
        result = generate(token.REVOKE_SELF, make_transport(_ok(None, status=204))).invoke()
        assert result.ok
        assert result.status == 204
        assert result.value is None

    def test_opaque_response_passes_payload_through(self, make_transport) -> None:
        payload = {"warnings": ["Tidy operation successfully started"], "data": None}
        result = generate(token.TIDY, make_transport(_ok(payload, status=202))).invoke()
        assert result.value == payload

    def test_list_verb_reaches_transport(self, make_transport) -> None:
        payload = {
            "auth": None,
            "warnings": None,
            "wrap_info": None,
            "data": {"keys": ["476ea048-ded5-4d07-eeea-938c6b4e43ec"]},
            "lease_duration": 0,
            "renewable": False,
            "lease_id": "",
        }
        transport = make_transport(_ok(payload))
        result = generate(token.ACCESSORS, transport).invoke()
        assert transport.calls == [("LIST", "/auth/token/accessors", None)]
        assert result.value.data.keys == ["476ea048-ded5-4d07-eeea-938c6b4e43ec"]

    def test_lookup_accessor_end_to_end(self, lookup_payload: dict[str, Any], make_transport) -> None:
        transport = make_transport(_ok(lookup_payload))
        result = generate(token.LOOKUP_ACCESSOR, transport).invoke(
            body={"accessor": "8609694a-cdbc-db9b-d345-e782dbb562ed"},
        )
        assert transport.calls[0][2] == {"accessor": "8609694a-cdbc-db9b-d345-e782dbb562ed"}
        assert result.value.data.meta == {"username": "tesla"}
        assert result.value.data.path == "auth/ldap2/login/tesla"


class TestFailures:
    def test_non_success_status_is_a_service_error(self, make_transport) -> None:
        transport = make_transport(_ok({"errors": ["permission denied"]}, status=403))
        result = generate(token.LOOKUP_SELF, transport).invoke()
        assert isinstance(result.error, ServiceError)
        assert isinstance(result.error, TransportFailure)
        assert result.error.status == 403
        assert result.error.errors == ["permission denied"]
        assert str(result.error) == "HTTP 403: permission denied"
        assert result.status == 403

    def test_service_error_without_error_list(self, make_transport) -> None:
        result = generate(token.LOOKUP_SELF, make_transport(_ok("bad gateway", status=502))).invoke()
        assert isinstance(result.error, ServiceError)
        assert result.error.errors == []
        assert str(result.error) == "HTTP 502"

    def test_transport_failure_is_captured(self, make_transport) -> None:
        failure = TransportFailure("connection refused")
        result = generate(token.LOOKUP_SELF, make_transport(failure)).invoke()
        assert result.error is failure
        assert result.status is None

    def test_errors_are_distinguishable_by_type(self, create_token_payload: dict[str, Any], make_transport) -> None:
        del create_token_payload["request_id"]
        kinds = {
            type(generate(token.READ_ROLE, make_transport()).invoke(path_params={}).error),
            type(generate(token.LOOKUP, make_transport()).invoke(body={}).error),
            type(generate(token.LOOKUP_SELF, make_transport(TransportFailure("x"))).invoke().error),
            type(generate(token.LOOKUP_SELF, make_transport(_ok(None, 500))).invoke().error),
            type(generate(token.CREATE, make_transport(_ok(create_token_payload))).invoke(body={}).error),
        }
        assert kinds == {
            PathValidationError,
            BodyValidationError,
            TransportFailure,
            ServiceError,
            ResponseValidationError,
        }


# ---------------------------------------------------------------------------
# Calling conventions
# ---------------------------------------------------------------------------


class TestCallingConventions:
    def test_call_returns_value(self, create_token_payload: dict[str, Any], make_transport) -> None:
        op = generate(token.CREATE, make_transport(_ok(create_token_payload)))
        assert op(body={}).request_id == "r1"

    def test_call_raises_stored_error(self, make_transport) -> None:
        op = generate(token.LOOKUP_ACCESSOR, make_transport())
        with pytest.raises(BodyValidationError) as exc_info:
            op(body={})
        assert exc_info.value.exit_code == 2

    def test_invocation_request_object(self, make_transport) -> None:
        transport = make_transport()
        generate(token.CREATE_WITH_ROLE, transport).invoke(
            InvocationRequest(path_params={"role_name": "ci"}, body={"ttl": "5m"}),
        )
        assert transport.calls == [
            (
                "POST",
                "/auth/token/create/ci",
                {"renewable": True, "ttl": "5m", "display_name": "token"},
            ),
        ]

    def test_request_object_and_keywords_conflict(self, make_transport) -> None:
        op = generate(token.LOOKUP, make_transport())
        with pytest.raises(TypeError):
            op.invoke(InvocationRequest(body={"token": "x"}), body={"token": "y"})

    def test_prepare_does_not_dispatch(self, make_transport) -> None:
        transport = make_transport()
        prepared = generate(token.CREATE_WITH_ROLE, transport).prepare(
            path_params={"role_name": "ci"}, body={},
        )
        assert prepared == PreparedRequest(
            method=HTTPMethod.POST,
            url="/auth/token/create/ci",
            payload={"renewable": True, "display_name": "token"},
        )
        assert transport.calls == []

    def test_prepare_raises_validation_errors(self, make_transport) -> None:
        with pytest.raises(PathValidationError):
            generate(token.READ_ROLE, make_transport()).prepare(path_params={})

    def test_repeated_invocations_are_identical(self, create_token_payload: dict[str, Any], make_transport) -> None:
        transport = make_transport(_ok(create_token_payload))
        op = generate(token.CREATE, transport)
        first = op.invoke(body={"ttl": "1h"})
        second = op.invoke(body={"ttl": "1h"})
        assert transport.calls[0] == transport.calls[1]
        assert first == second

    def test_caller_input_is_not_mutated(self, make_transport) -> None:
        body: dict[str, Any] = {}
        generate(token.CREATE, make_transport()).invoke(body=body)
        assert body == {}

    def test_result_unwrap(self) -> None:
        assert InvocationResult(value=1, status=200).unwrap() == 1
        with pytest.raises(TransportFailure):
            InvocationResult(error=TransportFailure("down")).unwrap()
