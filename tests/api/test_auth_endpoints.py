"""
Integration tests for Auth API endpoints.

Tests OTP registration/login, the otp cookie, the bearer guard and Google
sign-in.
"""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlparse

import pytest
from itsdangerous import Signer

from api.cookies import COOKIE_SALT
from quillpost.auth import TokenPurpose
from quillpost.errors import (
    AuthMessage,
    BadRequestMessage,
    ConflictMessage,
    SuccessMessage,
)
from quillpost.services import GoogleProfile


class TestUserExistence:
    """Tests for POST /auth/user-existence."""

    @pytest.mark.api
    def test_register_sets_otp_cookie(self, api_client, test_config):
        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "email", "type": "register", "identifier": test_config["email"]},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == SuccessMessage.SEND_OTP.value
        assert len(data["debug"]["code"]) == 5
        assert "otp" in api_client.cookies

        cookie_header = response.headers["set-cookie"].lower()
        assert "httponly" in cookie_header
        assert "samesite=lax" in cookie_header
        assert "max-age=120" in cookie_header

    @pytest.mark.api
    def test_register_with_username(self, api_client):
        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "username", "type": "register", "identifier": "writer"},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == BadRequestMessage.INVALID_REGISTER_METHOD.value

    @pytest.mark.api
    def test_login_unknown_user(self, api_client):
        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "username", "type": "login", "identifier": "ghost"},
        )

        assert response.status_code == 401
        assert response.json()["detail"] == AuthMessage.INVALID_DATA.value
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.api
    def test_register_twice(self, api_client, login, test_config):
        login(api_client, "email", test_config["email"])

        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "email", "type": "register", "identifier": test_config["email"]},
        )

        assert response.status_code == 409
        assert response.json()["detail"] == ConflictMessage.ACCOUNT_INFO.value

    @pytest.mark.api
    def test_invalid_phone(self, api_client):
        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "phone", "type": "register", "identifier": "12345"},
        )

        assert response.status_code == 422

    @pytest.mark.api
    def test_missing_fields(self, api_client):
        response = api_client.post("/api/v1/auth/user-existence", json={"method": "email"})

        assert response.status_code == 422


class TestCheckOtp:
    """Tests for POST /auth/check-otp."""

    @pytest.mark.api
    def test_register_and_login(self, api_client, test_config):
        response = api_client.post(
            "/api/v1/auth/user-existence",
            json={"method": "phone", "type": "register", "identifier": test_config["phone"]},
        )
        code = response.json()["debug"]["code"]

        response = api_client.post("/api/v1/auth/check-otp", json={"code": code})

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == SuccessMessage.LOGIN.value
        assert data["token_type"] == "bearer"

        response = api_client.get(
            "/api/v1/auth/check-login",
            headers={"Authorization": f"Bearer {data['access_token']}"},
        )
        assert response.status_code == 200
        assert response.json()["phone"] == test_config["phone_e164"]
        assert response.json()["verify_phone"] is True

    @pytest.mark.api
    def test_without_cookie(self, api_client):
        response = api_client.post("/api/v1/auth/check-otp", json={"code": "12345"})

        assert response.status_code == 401
        assert response.json()["detail"] == AuthMessage.EXPIRED_CODE.value

    @pytest.mark.api
    def test_tampered_cookie(self, api_client, token_codec):
        token = token_codec.issue(TokenPurpose.OTP, {"user_id": 1})
        api_client.cookies.set("otp", f"{token}.forged-signature")

        response = api_client.post("/api/v1/auth/check-otp", json={"code": "12345"})

        assert response.status_code == 401
        assert response.json()["detail"] == AuthMessage.EXPIRED_CODE.value

    @pytest.mark.api
    def test_expired_otp_token(self, api_client, api_services, token_codec):
        """Test a correctly signed but expired OTP token fails authorization."""
        token = token_codec.issue(TokenPurpose.OTP, {"user_id": 1}, expires_in=-1)
        signer = Signer(api_services.config.cookies.secret, salt=COOKIE_SALT)
        api_client.cookies.set("otp", signer.sign(token).decode())

        response = api_client.post("/api/v1/auth/check-otp", json={"code": "12345"})

        assert response.status_code == 401
        assert response.json()["detail"] == AuthMessage.AUTHORIZATION_FAILED.value

    @pytest.mark.api
    def test_code_length(self, api_client):
        response = api_client.post("/api/v1/auth/check-otp", json={"code": "123"})

        assert response.status_code == 422


class TestCheckLogin:
    """Tests for the bearer guard on GET /auth/check-login."""

    @pytest.mark.api
    def test_authenticated(self, authenticated_client, test_config):
        response = authenticated_client.get("/api/v1/auth/check-login")

        assert response.status_code == 200
        data = response.json()
        assert data["email"] == test_config["email"]
        assert data["verify_email"] is True
        assert data["username"].startswith("m_")

    @pytest.mark.api
    def test_no_token(self, api_client):
        response = api_client.get("/api/v1/auth/check-login")

        assert response.status_code == 401
        assert response.json()["detail"] == AuthMessage.AUTHORIZATION_FAILED.value

    @pytest.mark.api
    @pytest.mark.parametrize("header", ["Bearer not-a-jwt", "Basic dXNlcjpwYXNz", "Bearer a.b"])
    def test_malformed_header(self, api_client, header):
        response = api_client.get("/api/v1/auth/check-login", headers={"Authorization": header})

        assert response.status_code == 401

    @pytest.mark.api
    def test_otp_token_as_bearer(self, api_client, token_codec):
        token = token_codec.issue(TokenPurpose.OTP, {"user_id": 1})

        response = api_client.get("/api/v1/auth/check-login", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    @pytest.mark.api
    def test_lowercase_scheme(self, api_client, login, test_config):
        access_token = login(api_client, "email", test_config["email"])

        response = api_client.get("/api/v1/auth/check-login", headers={"Authorization": f"bearer {access_token}"})

        assert response.status_code == 200


class TestGoogle:
    """Tests for the Google sign-in endpoints."""

    @pytest.mark.api
    def test_redirects_to_google(self, api_client):
        response = api_client.get("/api/v1/auth/google", follow_redirects=False)

        assert response.status_code == 307
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"
        params = parse_qs(location.query)
        assert params["redirect_uri"] == ["http://testserver/api/v1/auth/google/redirect"]
        assert "oauth_state" in api_client.cookies

    @pytest.mark.api
    def test_redirect_creates_user(self, api_client, api_services):
        api_services.context.google.fetch_profile = AsyncMock(return_value=GoogleProfile(
            email="jane.doe@gmail.com",
            first_name="Jane",
            last_name="Doe",
        ))
        response = api_client.get("/api/v1/auth/google", follow_redirects=False)
        state = parse_qs(urlparse(response.headers["location"]).query)["state"][0]

        response = api_client.get(f"/api/v1/auth/google/redirect?code=auth-code&state={state}")

        assert response.status_code == 200
        access_token = response.json()["access_token"]
        api_services.context.google.fetch_profile.assert_awaited_once_with("auth-code")

        response = api_client.get(
            "/api/v1/user/profile",
            headers={"Authorization": f"Bearer {access_token}"},
        )
        data = response.json()
        assert data["user"]["email"] == "jane.doe@gmail.com"
        assert data["user"]["verify_email"] is True
        assert data["profile"]["nickname"] == "Jane Doe"

    @pytest.mark.api
    def test_redirect_with_wrong_state(self, api_client, api_services):
        api_services.context.google.fetch_profile = AsyncMock()
        api_client.get("/api/v1/auth/google", follow_redirects=False)

        response = api_client.get("/api/v1/auth/google/redirect?code=auth-code&state=forged")

        assert response.status_code == 401
        api_services.context.google.fetch_profile.assert_not_awaited()
