import base64
import json
import unittest
from unittest.mock import Mock

import requests
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from google.auth import crypt

from drivecdn.auth import ServiceAccountCredential, TokenMinter, build_assertion
from drivecdn.auth.minter import DRIVE_SCOPE, JWT_BEARER_GRANT, TOKEN_ENDPOINT
from drivecdn.errors import AuthExchangeError, ConfigurationError, NetworkError


def _b64url_decode(segment: str) -> bytes:
    return base64.urlsafe_b64decode(segment + "=" * (-len(segment) % 4))


def _response(status: int, payload) -> Mock:
    resp = Mock()
    resp.status_code = status
    resp.ok = 200 <= status < 300
    if isinstance(payload, Exception):
        resp.json.side_effect = payload
    else:
        resp.json.return_value = payload
    return resp


class _KeyMixin:
    @classmethod
    def setUpClass(cls) -> None:
        key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
        cls.private_pem = key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode("ascii")
        cls.public_pem = key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        cls.record = ServiceAccountCredential(
            client_email="cdn@proj.iam.gserviceaccount.com",
            private_key=cls.private_pem,
        )


class TestBuildAssertion(_KeyMixin, unittest.TestCase):
    def test_header_and_payload_round_trip(self) -> None:
        assertion = build_assertion(self.record, issued_at=1_700_000_000)
        header_seg, payload_seg, signature_seg = assertion.split(".")

        for segment in (header_seg, payload_seg, signature_seg):
            self.assertNotIn("=", segment)
            self.assertNotIn("+", segment)
            self.assertNotIn("/", segment)

        self.assertEqual(_b64url_decode(header_seg), b'{"alg":"RS256","typ":"JWT"}')
        payload = json.loads(_b64url_decode(payload_seg))
        self.assertEqual(
            payload,
            {
                "iss": "cdn@proj.iam.gserviceaccount.com",
                "scope": DRIVE_SCOPE,
                "aud": TOKEN_ENDPOINT,
                "iat": 1_700_000_000,
                "exp": 1_700_003_600,
            },
        )

    def test_signature_verifies_with_public_key(self) -> None:
        assertion = build_assertion(self.record, issued_at=1_700_000_000)
        signing_input, _, signature_seg = assertion.rpartition(".")

        verifier = crypt.RSAVerifier.from_string(self.public_pem)
        self.assertTrue(verifier.verify(signing_input.encode("utf-8"), _b64url_decode(signature_seg)))

    def test_invalid_private_key(self) -> None:
        record = ServiceAccountCredential(client_email="bad@p", private_key="not a pem")
        with self.assertRaises(AuthExchangeError):
            build_assertion(record, issued_at=0)

    def test_ec_private_key_is_rejected(self) -> None:
        ec_pem = ec.generate_private_key(ec.SECP256R1()).private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        ).decode("ascii")
        record = ServiceAccountCredential(client_email="ec@p", private_key=ec_pem)

        with self.assertRaises(AuthExchangeError) as ctx:
            build_assertion(record, issued_at=0)
        self.assertEqual(ctx.exception.details["client_email"], "ec@p")


class TestTokenMinterServiceAccount(_KeyMixin, unittest.TestCase):
    def test_exchange_posts_jwt_bearer_grant(self) -> None:
        session = Mock()
        session.post.return_value = _response(200, {"access_token": "ya29.sa", "expires_in": 3599})
        minter = TokenMinter(session=session, clock=lambda: 1_700_000_000_500.0, timeout=7)

        minted = minter.mint_from_service_account(self.record)

        self.assertEqual(minted.access_token, "ya29.sa")
        self.assertEqual(minted.expires_in_seconds, 3599)
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], TOKEN_ENDPOINT)
        self.assertEqual(kwargs["data"]["grant_type"], JWT_BEARER_GRANT)
        self.assertEqual(kwargs["timeout"], 7)
        payload = json.loads(_b64url_decode(kwargs["data"]["assertion"].split(".")[1]))
        self.assertEqual(payload["iat"], 1_700_000_000)

    def test_lifetime_defaults_to_an_hour(self) -> None:
        session = Mock()
        session.post.return_value = _response(200, {"access_token": "ya29.sa"})
        minted = TokenMinter(session=session).mint_from_service_account(self.record)
        self.assertEqual(minted.expires_in_seconds, 3600)

    def test_rejection_carries_error_description(self) -> None:
        session = Mock()
        session.post.return_value = _response(
            400, {"error": "invalid_grant", "error_description": "Invalid JWT Signature."}
        )
        with self.assertRaises(AuthExchangeError) as ctx:
            TokenMinter(session=session).mint_from_service_account(self.record)
        self.assertEqual(ctx.exception.description, "Invalid JWT Signature.")
        self.assertEqual(ctx.exception.status, 400)

    def test_rejection_without_json_body(self) -> None:
        session = Mock()
        session.post.return_value = _response(500, ValueError("no json"))
        with self.assertRaises(AuthExchangeError) as ctx:
            TokenMinter(session=session).mint_from_service_account(self.record)
        self.assertEqual(ctx.exception.description, "Failed to exchange service account JWT")

    def test_missing_access_token(self) -> None:
        session = Mock()
        session.post.return_value = _response(200, {"token_type": "Bearer"})
        with self.assertRaises(AuthExchangeError):
            TokenMinter(session=session).mint_from_service_account(self.record)

    def test_network_failure(self) -> None:
        session = Mock()
        session.post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(NetworkError):
            TokenMinter(session=session).mint_from_service_account(self.record)


class TestTokenMinterRefreshToken(unittest.TestCase):
    def test_missing_inputs_fail_before_network(self) -> None:
        session = Mock()
        minter = TokenMinter(session=session)
        with self.assertRaises(ConfigurationError):
            minter.mint_from_refresh_token("id", None, "r")
        with self.assertRaises(ConfigurationError):
            minter.mint_from_refresh_token("", "s", "r")
        session.post.assert_not_called()

    def test_refresh_grant(self) -> None:
        session = Mock()
        session.post.return_value = _response(200, {"access_token": "ya29.user", "expires_in": 1800})

        minted = TokenMinter(session=session).mint_from_refresh_token("id", "secret", "refresh")

        self.assertEqual(minted.access_token, "ya29.user")
        self.assertEqual(minted.expires_in_seconds, 1800)
        form = session.post.call_args.kwargs["data"]
        self.assertEqual(
            form,
            {
                "client_id": "id",
                "client_secret": "secret",
                "refresh_token": "refresh",
                "grant_type": "refresh_token",
            },
        )

    def test_refresh_rejected(self) -> None:
        session = Mock()
        session.post.return_value = _response(400, {"error": "invalid_grant"})
        with self.assertRaises(AuthExchangeError) as ctx:
            TokenMinter(session=session).mint_from_refresh_token("id", "secret", "refresh")
        self.assertEqual(ctx.exception.description, "invalid_grant")


if __name__ == "__main__":
    unittest.main()
