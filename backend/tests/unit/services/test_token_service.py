# tests/unit/services/test_token_service.py
from __future__ import annotations

import base64
import json
from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

import jwt
import pytest
from freezegun import freeze_time

from sessionguard.services._shared.errors import (
    InvalidReason,
    InvalidUserError,
    SessionNotFoundError,
    StoreUnavailableError,
    TokenError,
)
from sessionguard.services._shared.ports import InMemoryRevocationStore
from sessionguard.services.tokens import ClaimSet, TokenService, TokenSettings
from tests.helpers.doubles import ISSUER, SECRET, FakeClock, make_request


def _bearer(token: str):
    return make_request(f"Bearer {token}")


def _claims(service: TokenService, token: str) -> ClaimSet:
    return service.extract_metadata(_bearer(token))


def _flip_signature_byte(token: str) -> str:
    header, payload, signature = token.split(".")
    i = len(signature) // 2
    replacement = "A" if signature[i] != "A" else "B"
    return ".".join([header, payload, signature[:i] + replacement + signature[i + 1 :]])


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _signed(payload: dict, *, secret: str = SECRET, algorithm: str = "HS256") -> str:
    now = datetime.now(UTC)
    base = {"iat": now, "exp": now + timedelta(minutes=30), "iss": ISSUER}
    base.update(payload)
    return jwt.encode(base, secret, algorithm=algorithm)


# -------------------------------- Issue ----------------------------------- #


def test_issue_then_validate_succeeds(service):
    """A freshly issued token validates and resolves to its user."""
    token = service.issue("alice")
    claims = _claims(service, token)

    result = service.validate(token, claims.token_id)

    assert result.valid is True
    assert result.reason is None
    assert result.claims is not None
    assert result.claims.user_id == "alice"


def test_issue_registers_record_with_session_lifetime(service, store):
    token = service.issue("alice")
    claims = _claims(service, token)

    assert store.get(claims.token_id) == token
    assert store.ttl(claims.token_id) == timedelta(minutes=30)
    assert claims.expires_at - claims.issued_at == timedelta(minutes=30)
    assert claims.issuer == ISSUER


def test_issue_generates_distinct_token_ids(service):
    first = _claims(service, service.issue("alice"))
    second = _claims(service, service.issue("alice"))
    assert first.token_id != second.token_id


def test_issue_embeds_wire_claims(service):
    token = service.issue("alice")
    payload = jwt.decode(token, options={"verify_signature": False})
    header = jwt.get_unverified_header(token)

    assert header["alg"] == "HS256"
    assert payload["user_id"] == "alice"
    assert isinstance(payload["access_uuid"], str)
    assert payload["iss"] == ISSUER
    assert payload["exp"] - payload["iat"] == 30 * 60


@pytest.mark.parametrize("user_id", ["", "   ", None, 42])
def test_issue_rejects_unusable_user_id(service, store, user_id):
    with pytest.raises(InvalidUserError):
        service.issue(user_id)


def test_issue_fails_when_store_write_fails(service, monkeypatch):
    """No token is handed out for an uncommitted session."""

    def _boom(*args, **kwargs):
        raise StoreUnavailableError()

    monkeypatch.setattr(service.store, "set", _boom)
    with pytest.raises(StoreUnavailableError):
        service.issue("alice")


# ------------------------------- Validate --------------------------------- #


def test_revoke_then_validate_reports_no_matching_session(service):
    """Concrete lifecycle: issue, validate, revoke, validate, revoke again."""
    t1 = service.issue("alice")
    claims = _claims(service, t1)

    first = service.validate(t1, claims.token_id)
    assert first.valid is True
    assert first.claims.user_id == "alice"

    service.revoke(claims)

    after = service.validate(t1, claims.token_id)
    assert after.valid is False
    assert after.reason is InvalidReason.SESSION_NOT_FOUND
    assert after.reason.value == "no matching session"
    # Signature alone still verifies
    assert _claims(service, t1) == claims

    with pytest.raises(SessionNotFoundError) as excinfo:
        service.revoke(claims)
    assert excinfo.value.token_id == claims.token_id


def test_altered_signature_fails_regardless_of_store(service, store):
    token = service.issue("alice")
    claims = _claims(service, token)
    forged = _flip_signature_byte(token)

    result = service.validate(forged, claims.token_id)

    assert result.valid is False
    assert result.reason is InvalidReason.SIGNATURE_INVALID
    # The record is still there; the signature check alone refused the token
    assert store.get(claims.token_id) == token


def test_stored_value_mismatch_fails_with_distinct_reason(service, store):
    token = service.issue("alice")
    claims = _claims(service, token)
    store.set(claims.token_id, service.issue("mallory"), timedelta(minutes=5))

    result = service.validate(token, claims.token_id)

    assert result.valid is False
    assert result.reason is InvalidReason.SESSION_MISMATCH
    assert result.reason is not InvalidReason.ALGORITHM_MISMATCH


def test_ttl_expiry_is_equivalent_to_revocation(settings):
    # Only the store ages here, so the tokens stay within their own lifetime
    store_clock = FakeClock()
    svc = TokenService(
        InMemoryRevocationStore(clock=store_clock), settings, clock=FakeClock(store_clock.now)
    )
    expiring = svc.issue("alice")
    expiring_claims = _claims(svc, expiring)
    revoked = svc.issue("alice")
    revoked_claims = _claims(svc, revoked)
    svc.revoke(revoked_claims)

    store_clock.advance(minutes=30, seconds=1)

    by_ttl = svc.validate(expiring, expiring_claims.token_id)
    by_revoke = svc.validate(revoked, revoked_claims.token_id)
    assert by_ttl == by_revoke
    assert by_ttl.reason is InvalidReason.SESSION_NOT_FOUND

    with pytest.raises(SessionNotFoundError):
        svc.revoke(expiring_claims)


def test_record_is_live_until_ttl_lapses(service, clock):
    token = service.issue("alice")
    claims = _claims(service, token)

    clock.advance(minutes=29, seconds=59)

    assert service.validate(token, claims.token_id).valid is True


def test_token_expires_by_the_service_clock(service, clock):
    token = service.issue("alice")
    claims = _claims(service, token)

    clock.advance(minutes=30, seconds=1)

    result = service.validate(token, claims.token_id)
    assert result.valid is False
    assert result.reason is InvalidReason.TOKEN_EXPIRED


@pytest.mark.parametrize("offset", [timedelta(hours=1), timedelta(hours=-1)])
def test_validation_uses_the_injected_clock(settings, offset):
    """A clock away from wall time still validates the tokens it issued."""
    clock = FakeClock(datetime.now(UTC) + offset)
    svc = TokenService(InMemoryRevocationStore(clock=clock), settings, clock=clock)

    token = svc.issue("alice")
    claims = _claims(svc, token)
    result = svc.validate(token, claims.token_id)

    assert result.valid is True
    assert result.claims.issued_at == clock.now.replace(microsecond=0)


def test_validate_rejects_token_issued_in_the_future(service, store, clock):
    issued_at = clock.now + timedelta(hours=1)
    token = _signed(
        {
            "access_uuid": "x-5",
            "user_id": "alice",
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=30),
        }
    )
    store.set("x-5", token, timedelta(minutes=5))

    result = service.validate(token, "x-5")

    assert result.reason is InvalidReason.CLAIMS_INVALID


def test_validate_fails_closed_when_store_unreachable(service, monkeypatch):
    token = service.issue("alice")
    claims = _claims(service, token)

    def _down(token_id):
        raise StoreUnavailableError()

    monkeypatch.setattr(service.store, "get", _down)

    result = service.validate(token, claims.token_id)
    assert result.valid is False
    assert result.reason is InvalidReason.STORE_UNAVAILABLE


def test_validate_reads_store_once_and_only_after_signature(service, store):
    spy = Mock(wraps=store)
    service.store = spy
    token = service.issue("alice")
    claims = _claims(service, token)

    service.validate(token, claims.token_id)
    assert spy.get.call_count == 1

    service.validate(_flip_signature_byte(token), claims.token_id)
    assert spy.get.call_count == 1


def test_validate_rejects_foreign_secret(service):
    token = _signed(
        {"access_uuid": "x-1", "user_id": "alice"},
        secret="another-secret-key-0123456789abcdef",
    )
    result = service.validate(token, "x-1")
    assert result.reason is InvalidReason.SIGNATURE_INVALID


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b", "a.b.c"])
def test_validate_rejects_malformed_tokens(service, garbage):
    result = service.validate(garbage, "whatever")
    assert result.valid is False
    assert result.reason is InvalidReason.SIGNATURE_INVALID


def test_validate_rejects_other_hmac_algorithm(service, store):
    token = _signed({"access_uuid": "x-2", "user_id": "alice"}, algorithm="HS512")
    store.set("x-2", token, timedelta(minutes=5))

    result = service.validate(token, "x-2")

    assert result.reason is InvalidReason.ALGORITHM_MISMATCH


def test_validate_rejects_unsigned_token(service, store):
    now = int(datetime.now(UTC).timestamp())
    payload = {"access_uuid": "x-3", "user_id": "alice", "iat": now, "exp": now + 60, "iss": ISSUER}
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(payload)}."
    store.set("x-3", token, timedelta(minutes=5))

    result = service.validate(token, "x-3")

    assert result.reason is InvalidReason.ALGORITHM_MISMATCH


def test_validate_reports_cryptographic_expiry():
    svc = TokenService(InMemoryRevocationStore(), TokenSettings(secret=SECRET, issuer=ISSUER))
    with freeze_time("2024-01-01 12:00:00"):
        token = svc.issue("alice")
        token_id = jwt.decode(token, options={"verify_signature": False})["access_uuid"]

    with freeze_time("2024-01-01 12:31:00"):
        result = svc.validate(token, token_id)

    assert result.valid is False
    assert result.reason is InvalidReason.TOKEN_EXPIRED


# ------------------------------- Extract ---------------------------------- #


def test_extract_metadata_maps_claim_set(service, clock):
    token = service.issue("alice")

    claims = service.extract_metadata(_bearer(token))

    assert claims.user_id == "alice"
    assert claims.issued_at == clock.now.replace(microsecond=0)
    assert claims.expires_at == claims.issued_at + timedelta(minutes=30)
    assert claims.issued_at.tzinfo is not None


def test_extract_metadata_ignores_store_state(service, store):
    token = service.issue("alice")
    claims = _claims(service, token)
    store.delete(claims.token_id)

    assert service.extract_metadata(_bearer(token)) == claims


@pytest.mark.parametrize("header", [None, "", "Bearer", "Bearer   "])
def test_extract_metadata_requires_credential(service, header):
    with pytest.raises(TokenError) as excinfo:
        service.extract_metadata(make_request(header))
    assert excinfo.value.reason is InvalidReason.MISSING_CREDENTIAL


@pytest.mark.parametrize("template", ["bearer {}", "BEARER {}", "{}"])
def test_extract_metadata_accepts_header_variants(service, template):
    token = service.issue("alice")
    claims = service.extract_metadata(make_request(template.format(token)))
    assert claims.user_id == "alice"


@pytest.mark.parametrize(
    "payload",
    [
        {"access_uuid": "x-4", "user_id": 7},
        {"access_uuid": 7, "user_id": "alice"},
        {"access_uuid": "", "user_id": "alice"},
        {"access_uuid": "x-4"},
        {"user_id": "alice"},
        {"access_uuid": "x-4", "user_id": "alice", "iss": "someone-else"},
    ],
)
def test_extract_metadata_rejects_nonconforming_claims(service, payload):
    with pytest.raises(TokenError) as excinfo:
        service.extract_metadata(_bearer(_signed(payload)))
    assert excinfo.value.reason is InvalidReason.CLAIMS_INVALID


@pytest.mark.parametrize(
    "dates",
    [
        {"iat": [1700000000]},
        {"exp": "tomorrow"},
        {"iat": True},
        {"exp": 1e300},
    ],
)
def test_non_numeric_dates_are_invalid_claims(service, store, dates):
    token = _signed({"access_uuid": "x-6", "user_id": "alice", **dates})
    store.set("x-6", token, timedelta(minutes=5))

    result = service.validate(token, "x-6")
    assert result.valid is False
    assert result.reason is InvalidReason.CLAIMS_INVALID

    with pytest.raises(TokenError) as excinfo:
        service.extract_metadata(_bearer(token))
    assert excinfo.value.reason is InvalidReason.CLAIMS_INVALID


def test_extract_metadata_rejects_bad_signature(service):
    token = _flip_signature_byte(service.issue("alice"))
    with pytest.raises(TokenError) as excinfo:
        service.extract_metadata(_bearer(token))
    assert excinfo.value.reason is InvalidReason.SIGNATURE_INVALID


# -------------------------------- Revoke ---------------------------------- #


def test_revoke_unknown_session_is_an_error(service):
    now = datetime.now(UTC)
    ghost = ClaimSet(
        token_id="does-not-exist",
        user_id="alice",
        issued_at=now,
        expires_at=now + timedelta(minutes=30),
        issuer=ISSUER,
    )
    with pytest.raises(SessionNotFoundError):
        service.revoke(ghost)


def test_revoke_only_kills_the_targeted_session(service):
    keep = service.issue("alice")
    kill = service.issue("alice")
    keep_claims = _claims(service, keep)

    service.revoke(_claims(service, kill))

    assert service.validate(keep, keep_claims.token_id).valid is True


def test_revoke_propagates_store_failure(service, monkeypatch):
    claims = _claims(service, service.issue("alice"))

    def _down(token_id):
        raise StoreUnavailableError()

    monkeypatch.setattr(service.store, "delete", _down)
    with pytest.raises(StoreUnavailableError):
        service.revoke(claims)
