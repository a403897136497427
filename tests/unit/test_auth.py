"""Tests for wallet authentication components."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from tests.helpers import START_TIME, TEST_SECRET_KEY, sign
from walletauth.services.auth import (
    ChallengeInvalidOrExpired,
    ChallengeIssuer,
    IdentityRecord,
    InvalidAddress,
    JWTSessionIssuer,
    SignatureMismatch,
    SignatureVerificationResult,
    SignatureVerifier,
    TokenIssuanceError,
    get_current_identity,
)
from walletauth.services.auth.address import is_valid_address, normalize_address
from walletauth.services.auth.challenge import NONCE_BYTES, default_token_source
from walletauth.services.auth.messages import format_issued_at


def make_identity(wallet_address: str = "0x" + "ab" * 20) -> IdentityRecord:
    return IdentityRecord(
        id="3f1c2d4e-0000-4000-8000-000000000001",
        wallet_address=wallet_address,
        role="pending",
        created_at=datetime.now(timezone.utc),
    )


class TestAddress:
    """Tests for wallet address validation."""

    def test_is_valid_address(self, account):
        """Test address validation."""
        assert is_valid_address(account.address) is True
        assert is_valid_address(account.address.lower()) is True
        assert is_valid_address("0x" + "1" * 40) is True
        assert is_valid_address("invalid") is False
        assert is_valid_address("0x123") is False
        assert is_valid_address("1" * 42) is False
        assert is_valid_address("0x" + "g" * 40) is False
        assert is_valid_address("0x" + "1" * 41) is False

    def test_normalize_address_lowercases(self, account):
        """Test normalization to lower case."""
        normalized = normalize_address(account.address)

        assert normalized == account.address.lower()
        assert normalized.startswith("0x")

    def test_normalize_rejects_malformed(self):
        """Test malformed address raises InvalidAddress."""
        with pytest.raises(InvalidAddress):
            normalize_address("0xnot-an-address")


class TestSignMessageBuilder:
    """Tests for the canonical sign message."""

    def test_message_embeds_challenge_fields(self, message_builder):
        """Test message contains address, nonce and timestamp."""
        message = message_builder.build("0x" + "ab" * 20, "ff" * 32, 1_700_000_000)

        assert message.startswith("eduverify wants you to sign in")
        assert "0x" + "ab" * 20 in message
        assert "Nonce: " + "ff" * 32 in message
        assert "Issued At: 2023-11-14T22:13:20Z" in message
        assert "Sign this message to verify wallet ownership." in message

    def test_message_is_deterministic(self, message_builder):
        """Test same inputs give the same bytes."""
        first = message_builder.build("0x" + "ab" * 20, "01" * 32, 1_700_000_000)
        second = message_builder.build("0x" + "ab" * 20, "01" * 32, 1_700_000_000)

        assert first == second

    def test_format_issued_at(self):
        """Test timestamp rendering."""
        assert format_issued_at(0) == "1970-01-01T00:00:00Z"


class TestChallengeIssuer:
    """Tests for challenge issuance."""

    @pytest.mark.asyncio
    async def test_issue_challenge(self, nonce_store, message_builder, clock, account):
        """Test issuing a challenge."""
        issuer = ChallengeIssuer(nonce_store, message_builder, ttl_seconds=300, clock=clock)

        challenge = await issuer.issue(account.address)

        assert len(challenge.nonce) == 64  # 32 bytes hex
        int(challenge.nonce, 16)
        assert challenge.wallet_address == account.address.lower()
        assert challenge.issued_at == int(START_TIME)
        assert challenge.expires_at == int(START_TIME) + 300
        assert challenge.message == message_builder.build(
            challenge.wallet_address, challenge.nonce, challenge.issued_at
        )

    @pytest.mark.asyncio
    async def test_issue_records_nonce(self, nonce_store, message_builder, clock, account):
        """Test issued nonce is consumable from the store."""
        issuer = ChallengeIssuer(nonce_store, message_builder, clock=clock)

        challenge = await issuer.issue(account.address)
        record = await nonce_store.consume(
            challenge.wallet_address, challenge.nonce, clock.now()
        )

        assert record is not None
        assert record.issued_at == challenge.issued_at

    @pytest.mark.asyncio
    async def test_nonces_are_unique(self, nonce_store, message_builder, account):
        """Test consecutive challenges get different nonces."""
        issuer = ChallengeIssuer(nonce_store, message_builder)

        nonces = {(await issuer.issue(account.address)).nonce for _ in range(20)}

        assert len(nonces) == 20

    @pytest.mark.asyncio
    async def test_token_source_is_injectable(self, nonce_store, message_builder, account):
        """Test nonce comes from the injected token source."""
        requested = []

        def fixed_source(nbytes: int) -> str:
            requested.append(nbytes)
            return "ab" * nbytes

        issuer = ChallengeIssuer(nonce_store, message_builder, token_source=fixed_source)

        challenge = await issuer.issue(account.address)

        assert requested == [32]
        assert challenge.nonce == "ab" * 32

    def test_default_token_source(self):
        """Test default nonce source yields 32 random bytes as hex."""
        first = default_token_source()
        second = default_token_source()

        assert len(first) == NONCE_BYTES * 2 == 64
        int(first, 16)
        assert first != second

    @pytest.mark.asyncio
    async def test_issue_rejects_invalid_address(self, nonce_store, message_builder):
        """Test malformed address is rejected before storage."""
        issuer = ChallengeIssuer(nonce_store, message_builder)

        with pytest.raises(InvalidAddress):
            await issuer.issue("0x123")

        assert await nonce_store.purge_expired(float("inf")) == 0


class TestSignatureVerifier:
    """Tests for signature verification."""

    @pytest.fixture
    def issuer(self, nonce_store, message_builder, clock):
        return ChallengeIssuer(nonce_store, message_builder, ttl_seconds=300, clock=clock)

    @pytest.fixture
    def verifier(self, nonce_store, message_builder, clock):
        return SignatureVerifier(nonce_store, message_builder, clock=clock)

    @pytest.mark.asyncio
    async def test_verify_valid_signature(self, issuer, verifier, account):
        """Test verifying valid wallet signature."""
        challenge = await issuer.issue(account.address)

        result = await verifier.verify(
            account.address, sign(account, challenge.message), challenge.nonce
        )

        assert result.valid is True
        assert result.wallet_address == account.address.lower()
        assert result.error is None

    @pytest.mark.asyncio
    async def test_verify_unknown_nonce(self, verifier, account):
        """Test verification with a nonce that was never issued."""
        result = await verifier.verify(account.address, "0x" + "00" * 65, "ab" * 32)

        assert result.valid is False
        assert result.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_verify_wrong_signer(self, issuer, verifier, account, other_account):
        """Test verification with signature from a different wallet."""
        challenge = await issuer.issue(account.address)

        result = await verifier.verify(
            account.address, sign(other_account, challenge.message), challenge.nonce
        )

        assert result.valid is False
        assert result.error == SignatureMismatch.code

    @pytest.mark.asyncio
    async def test_verify_claimed_address_differs(
        self, issuer, verifier, account, other_account
    ):
        """Test a valid signature cannot be replayed under another address."""
        challenge = await issuer.issue(account.address)

        result = await verifier.verify(
            other_account.address, sign(account, challenge.message), challenge.nonce
        )

        # Nonce belongs to a different address
        assert result.valid is False
        assert result.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_tampered_message_rejected(self, issuer, verifier, account):
        """Test signing a message differing by one byte fails."""
        challenge = await issuer.issue(account.address)
        tampered = challenge.message[:-1] + (
            "0" if challenge.message[-1] != "0" else "1"
        )

        result = await verifier.verify(
            account.address, sign(account, tampered), challenge.nonce
        )

        assert result.valid is False
        assert result.error == SignatureMismatch.code

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "signature",
        [
            "",
            "0x",
            "not-hex-at-all",
            "0xdeadbeef",
            "0x" + "00" * 65,
            "0x" + "ff" * 65,
            "0x" + "11" * 64 + "1b",
        ],
    )
    async def test_malformed_signature_is_mismatch(
        self, issuer, verifier, account, signature
    ):
        """Test malformed signatures fail without raising."""
        challenge = await issuer.issue(account.address)

        result = await verifier.verify(account.address, signature, challenge.nonce)

        assert result.valid is False
        assert result.error == SignatureMismatch.code

    @pytest.mark.asyncio
    async def test_nonce_single_use(self, issuer, verifier, account):
        """Test that nonce can only be used once."""
        challenge = await issuer.issue(account.address)
        signature = sign(account, challenge.message)

        first = await verifier.verify(account.address, signature, challenge.nonce)
        second = await verifier.verify(account.address, signature, challenge.nonce)

        assert first.valid is True
        assert second.valid is False
        assert second.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_failed_attempt_burns_nonce(self, issuer, verifier, account, other_account):
        """Test a mismatched signature consumes the challenge."""
        challenge = await issuer.issue(account.address)

        bad = await verifier.verify(
            account.address, sign(other_account, challenge.message), challenge.nonce
        )
        good = await verifier.verify(
            account.address, sign(account, challenge.message), challenge.nonce
        )

        assert bad.error == SignatureMismatch.code
        assert good.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_expiry_boundary(self, issuer, verifier, account, clock):
        """Test consumption just before and just after expiry."""
        early = await issuer.issue(account.address)
        late = await issuer.issue(account.address)

        clock.current = early.issued_at + 300 - 0.001
        before = await verifier.verify(
            account.address, sign(account, early.message), early.nonce
        )

        clock.current = late.issued_at + 300 + 0.001
        after = await verifier.verify(
            account.address, sign(account, late.message), late.nonce
        )

        assert before.valid is True
        assert after.valid is False
        assert after.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_expired_exactly_at_ttl(self, issuer, verifier, account, clock):
        """Test a challenge is no longer valid at issued_at + ttl."""
        challenge = await issuer.issue(account.address)
        clock.current = challenge.expires_at

        result = await verifier.verify(
            account.address, sign(account, challenge.message), challenge.nonce
        )

        assert result.error == ChallengeInvalidOrExpired.code

    @pytest.mark.asyncio
    async def test_verify_rejects_malformed_address(self, verifier):
        """Test malformed claimed address raises InvalidAddress."""
        with pytest.raises(InvalidAddress):
            await verifier.verify("0x123", "0x" + "00" * 65, "ab" * 32)

    def test_raise_for_failure(self):
        """Test result maps error codes to exceptions."""
        SignatureVerificationResult(valid=True, wallet_address="0x" + "ab" * 20).raise_for_failure()

        with pytest.raises(ChallengeInvalidOrExpired):
            SignatureVerificationResult(
                valid=False, error=ChallengeInvalidOrExpired.code
            ).raise_for_failure()

        with pytest.raises(SignatureMismatch):
            SignatureVerificationResult(
                valid=False, error=SignatureMismatch.code
            ).raise_for_failure()


class TestJWTSessionIssuer:
    """Tests for JWT session issuance."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session_issuer = JWTSessionIssuer(
            secret_key=TEST_SECRET_KEY,
            access_token_expire_minutes=30,
        )

    def test_issue_session(self):
        """Test creating session grant."""
        identity = make_identity()

        grant = self.session_issuer.issue_session(identity)

        assert grant.identity_id == identity.id
        assert grant.wallet_address == identity.wallet_address
        assert grant.role == "pending"
        assert grant.token_type == "Bearer"
        assert grant.expires_in == 30 * 60
        assert grant.access_token

    def test_verify_access_token(self):
        """Test issued token decodes to identity claims."""
        identity = make_identity()
        grant = self.session_issuer.issue_session(identity)

        payload = self.session_issuer.verify_access_token(grant.access_token)

        assert payload is not None
        assert payload.sub == identity.id
        assert payload.type == "access"
        assert payload.wallet_address == identity.wallet_address
        assert payload.role == "pending"

    def test_token_expiration(self):
        """Test that tokens contain correct expiration time."""
        grant = self.session_issuer.issue_session(make_identity())
        payload = self.session_issuer.verify_access_token(grant.access_token)

        assert payload is not None
        expected_exp = datetime.now(timezone.utc) + timedelta(minutes=30)
        assert abs((payload.exp - expected_exp).total_seconds()) < 5

    def test_verify_invalid_token(self):
        """Test verifying invalid token returns None."""
        assert self.session_issuer.verify_access_token("invalid-token") is None

    def test_verify_tampered_token(self):
        """Test verifying tampered token returns None."""
        grant = self.session_issuer.issue_session(make_identity())

        assert self.session_issuer.verify_access_token(grant.access_token + "x") is None

    def test_verify_token_from_other_secret(self):
        """Test tokens signed with another key are rejected."""
        other = JWTSessionIssuer(secret_key="another-secret")
        grant = other.issue_session(make_identity())

        assert self.session_issuer.verify_access_token(grant.access_token) is None

    def test_unknown_algorithm_raises_token_issuance_error(self):
        """Test signing failures surface as TokenIssuanceError."""
        broken = JWTSessionIssuer(secret_key=TEST_SECRET_KEY, algorithm="NOPE")

        with pytest.raises(TokenIssuanceError):
            broken.issue_session(make_identity())


class TestAuthDependencies:
    """Tests for authentication dependencies."""

    def setup_method(self):
        """Set up test fixtures."""
        self.session_issuer = JWTSessionIssuer(secret_key=TEST_SECRET_KEY)

    @pytest.mark.asyncio
    async def test_get_current_identity(self):
        """Test bearer token resolves to identity."""
        identity = make_identity()
        grant = self.session_issuer.issue_session(identity)
        credentials = HTTPAuthorizationCredentials(
            scheme="Bearer", credentials=grant.access_token
        )

        current = await get_current_identity(credentials, self.session_issuer)

        assert current.identity_id == identity.id
        assert current.wallet_address == identity.wallet_address
        assert current.role == "pending"

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        """Test missing token is rejected."""
        with pytest.raises(HTTPException) as exc_info:
            await get_current_identity(None, self.session_issuer)

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_credentials(self):
        """Test invalid token is rejected."""
        credentials = HTTPAuthorizationCredentials(scheme="Bearer", credentials="bogus")

        with pytest.raises(HTTPException) as exc_info:
            await get_current_identity(credentials, self.session_issuer)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Invalid or expired token"
