import inspect

from conftest import STRONG_PASSWORD

from storefront.api.reset_routes import confirm_reset, request_reset, verify_reset
from storefront.api.product_routes import create_product_with_stock
from storefront.api.profile_routes import update_profile

REQUEST = "/api/auth/reset-password/request"
VERIFY = "/api/auth/reset-password/verify"
CONFIRM = "/api/auth/reset-password/confirm"

EMAIL = "shopper@example.com"
NEW_PASSWORD = "Moonlight#99"


def test_request_emails_a_code(client, user, mailer):
    response = client.post(REQUEST, json={"email": EMAIL})
    assert response.status_code == 200
    assert response.json() == {"success": True, "msg": "OTP sent to your email."}
    assert len(mailer.sent) == 1
    to, otp = mailer.sent[0]
    assert to == EMAIL
    assert len(otp) == 6 and otp.isdigit()


def test_request_for_unknown_email(client, mailer):
    response = client.post(REQUEST, json={"email": "nobody@example.com"})
    assert response.status_code == 404
    assert response.json()["msg"] == "No account found with this email."
    assert mailer.sent == []


def test_request_is_throttled_per_email(client, user, clock):
    for _ in range(3):
        assert client.post(REQUEST, json={"email": EMAIL}).status_code == 200

    response = client.post(REQUEST, json={"email": EMAIL.upper()})
    assert response.status_code == 429
    assert response.json()["success"] is False
    assert "Too many OTP requests" in response.json()["msg"]

    clock.advance(60)
    assert client.post(REQUEST, json={"email": EMAIL}).status_code == 200


def test_full_reset(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)

    response = client.post(VERIFY, json={"email": EMAIL, "otp": otp})
    assert response.status_code == 200
    assert response.json()["msg"] == "OTP verified."

    response = client.post(CONFIRM, json={"email": EMAIL, "otp": otp, "newPassword": NEW_PASSWORD})
    assert response.status_code == 200
    assert response.json()["msg"] == "Password reset successful."

    login = client.post("/api/auth/login", json={"email": EMAIL, "password": NEW_PASSWORD})
    assert login.status_code == 200
    old = client.post("/api/auth/login", json={"email": EMAIL, "password": STRONG_PASSWORD})
    assert old.status_code == 401


def test_verified_code_cannot_be_reused(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    client.post(VERIFY, json={"email": EMAIL, "otp": otp})
    client.post(CONFIRM, json={"email": EMAIL, "otp": otp, "newPassword": NEW_PASSWORD})

    for path, body in (
        (VERIFY, {"email": EMAIL, "otp": otp}),
        (CONFIRM, {"email": EMAIL, "otp": otp, "newPassword": "Another#Pass1"}),
    ):
        response = client.post(path, json=body)
        assert response.status_code == 400
        assert response.json() == {"success": False, "msg": "Invalid or expired OTP."}


def test_wrong_code_is_rejected(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    guess = "000000" if otp != "000000" else "111111"
    response = client.post(VERIFY, json={"email": EMAIL, "otp": guess})
    assert response.status_code == 400
    assert response.json()["msg"] == "Invalid or expired OTP."


def test_expired_code_is_rejected(client, user, mailer, clock):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    clock.advance(121)
    response = client.post(VERIFY, json={"email": EMAIL, "otp": otp})
    assert response.status_code == 400
    assert response.json()["msg"] == "Invalid or expired OTP."


def test_fifth_wrong_attempt_locks_the_code(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    guess = "000000" if otp != "000000" else "111111"
    for _ in range(4):
        client.post(VERIFY, json={"email": EMAIL, "otp": guess})

    response = client.post(VERIFY, json={"email": EMAIL, "otp": guess})
    assert response.status_code == 400
    assert response.json()["msg"] == "Too many incorrect attempts. Please request a new OTP."

    response = client.post(VERIFY, json={"email": EMAIL, "otp": otp})
    assert response.json()["msg"] == "Invalid or expired OTP."


def test_confirm_without_verify(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    response = client.post(CONFIRM, json={"email": EMAIL, "otp": otp, "newPassword": NEW_PASSWORD})
    assert response.status_code == 400
    assert response.json()["msg"] == "Please verify the OTP before setting a new password."


def test_confirm_rejects_a_weak_password(client, user, mailer):
    client.post(REQUEST, json={"email": EMAIL})
    otp = mailer.last_otp(EMAIL)
    client.post(VERIFY, json={"email": EMAIL, "otp": otp})

    response = client.post(CONFIRM, json={"email": EMAIL, "otp": otp, "newPassword": "password"})
    assert response.status_code == 400
    assert response.json()["msg"].startswith("Please choose a stronger password")

    # the code survives a rejected password
    response = client.post(CONFIRM, json={"email": EMAIL, "otp": otp, "newPassword": NEW_PASSWORD})
    assert response.status_code == 200


def test_malformed_body_reports_msg(client):
    response = client.post(VERIFY, json={"email": EMAIL})
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert "otp" in body["msg"]


def test_request_rejects_a_malformed_email(client, mailer):
    response = client.post(REQUEST, json={"email": "a@b@c.d"})
    assert response.status_code == 422
    assert response.json()["success"] is False
    assert mailer.sent == []


def test_database_bound_handlers_run_in_the_threadpool():
    for handler in (request_reset, verify_reset, confirm_reset, update_profile, create_product_with_stock):
        assert not inspect.iscoroutinefunction(handler)
