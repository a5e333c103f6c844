from unittest.mock import MagicMock

import pytest

from qairoz import config
from qairoz.utils import email as email_utils


def _response(status_code, text="OK"):
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    return resp


@pytest.fixture
def http_post(monkeypatch):
    post = MagicMock(return_value=_response(200))
    monkeypatch.setattr(email_utils.requests, "post", post)
    return post


@pytest.fixture
def smtp(monkeypatch):
    """Patched smtplib.SMTP; returns the server object used inside `with`."""
    server = MagicMock()
    smtp_cls = MagicMock()
    smtp_cls.return_value.__enter__.return_value = server
    monkeypatch.setattr(email_utils.smtplib, "SMTP", smtp_cls)
    return server


@pytest.fixture
def emailjs(monkeypatch):
    monkeypatch.setattr(config, "EMAILJS_SERVICE_ID", "service_live")
    monkeypatch.setattr(config, "EMAILJS_TEMPLATE_ID", "template_live")
    monkeypatch.setattr(config, "EMAILJS_PUBLIC_KEY", "public-key")


@pytest.fixture
def resend(monkeypatch):
    monkeypatch.setattr(config, "RESEND_API_KEY", "re_test")
    monkeypatch.setattr(config, "RESEND_FROM_EMAIL", "Qairoz <noreply@qairoz.org>")


@pytest.fixture
def gmail(monkeypatch):
    monkeypatch.setattr(config, "GMAIL_USER", "qairoz@gmail.com")
    monkeypatch.setattr(config, "GMAIL_APP_PASSWORD", "app-password")


def test_no_provider_configured():
    assert email_utils.configured_providers() == []
    assert email_utils.send_email("player@college.edu", "Hi", "<p>Hi</p>") is None


def test_configured_providers_follow_order(monkeypatch, resend, gmail):
    monkeypatch.setattr(config, "EMAIL_PROVIDERS", ["gmail", "pigeon", "resend"])

    assert email_utils.configured_providers() == ["gmail", "resend"]


def test_emailjs_payload(emailjs, http_post):
    assert email_utils.send_otp_email("player@college.edu", "123456", expires_minutes=5)

    url = http_post.call_args.args[0]
    payload = http_post.call_args.kwargs["json"]
    assert url == config.EMAILJS_API_URL
    assert payload["service_id"] == "service_live"
    assert payload["template_id"] == "template_live"
    assert payload["user_id"] == "public-key"
    assert "accessToken" not in payload
    params = payload["template_params"]
    assert params["to_email"] == "player@college.edu"
    assert params["subject"] == "Qairoz - Email Verification OTP"
    assert params["otp_code"] == "123456"
    assert "expire in 5 minutes" in params["message"]


def test_resend_request(resend, http_post):
    provider = email_utils.send_email("player@college.edu", "Subject", "<p>Body</p>", "Body")

    assert provider == "resend"
    assert http_post.call_args.args[0] == config.RESEND_API_URL
    assert http_post.call_args.kwargs["headers"]["Authorization"] == "Bearer re_test"
    payload = http_post.call_args.kwargs["json"]
    assert payload["to"] == ["player@college.edu"]
    assert payload["from"] == "Qairoz <noreply@qairoz.org>"
    assert payload["html"] == "<p>Body</p>"


def test_gmail_smtp(gmail, smtp):
    provider = email_utils.send_email("player@college.edu", "Subject", "<p>Body</p>")

    assert provider == "gmail"
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("qairoz@gmail.com", "app-password")
    from_addr, to_addrs, raw = smtp.sendmail.call_args.args
    assert from_addr == "qairoz@gmail.com"
    assert to_addrs == ["player@college.edu"]
    assert "Subject: Subject" in raw


def test_falls_back_when_provider_rejects(resend, gmail, http_post, smtp):
    http_post.return_value = _response(422, '{"message": "invalid from"}')

    assert email_utils.send_email("player@college.edu", "Subject", "<p>Body</p>") == "gmail"
    smtp.sendmail.assert_called_once()


def test_falls_back_when_provider_raises(emailjs, resend, http_post):
    http_post.side_effect = [ConnectionError("emailjs down"), _response(200)]

    assert email_utils.send_email("player@college.edu", "Subject", "<p>Body</p>") == "resend"
    assert http_post.call_count == 2


def test_all_providers_fail(resend, gmail, http_post, smtp):
    http_post.return_value = _response(500, "boom")
    smtp.login.side_effect = OSError("auth failed")

    assert email_utils.send_email("player@college.edu", "Subject", "<p>Body</p>") is None


def test_sendgrid(monkeypatch):
    monkeypatch.setattr(config, "SENDGRID_API_KEY", "SG.test")
    monkeypatch.setattr(config, "SENDGRID_FROM_EMAIL", "noreply@qairoz.org")
    sg_client = MagicMock()
    sg_client.send.return_value = _response(202)
    sg_cls = MagicMock(return_value=sg_client)
    monkeypatch.setattr(email_utils, "SendGridAPIClient", sg_cls)

    assert email_utils.send_welcome_email("sports@iitd.ac.in", "IIT Delhi")

    sg_cls.assert_called_once_with("SG.test")
    sg_client.send.assert_called_once()


def test_welcome_template_mentions_college():
    content = email_utils.render_welcome_email("IIT Delhi")

    assert content["subject"] == "Welcome to Qairoz - Registration Successful!"
    assert "IIT Delhi" in content["html"]
    assert "IIT Delhi has been successfully registered" in content["text"]


def test_send_email_route(client, resend, http_post):
    response = client.post("/api/send-email", json={
        "to": "player@college.edu",
        "subject": "Qairoz - Email Verification OTP",
        "html": "<p>123456</p>",
        "type": "otp",
    })

    assert response.status_code == 200
    assert response.json() == {"success": True, "provider": "resend"}


def test_send_email_route_failure(client):
    response = client.post("/api/send-email", json={
        "to": "player@college.edu",
        "subject": "Hello",
        "html": "<p>Hello</p>",
    })

    assert response.status_code == 502
    assert response.json() == {"error": "Email delivery failed"}


def test_send_email_route_validates_recipient(client):
    response = client.post("/api/send-email", json={"to": "nope", "subject": "Hello", "html": "<p>Hello</p>"})

    assert response.status_code == 400


def test_sendgrid_sandbox_builds_valid_request(monkeypatch):
    monkeypatch.setattr(config, "SENDGRID_API_KEY", "SG.test")
    monkeypatch.setattr(config, "SENDGRID_FROM_EMAIL", "noreply@qairoz.org")
    monkeypatch.setattr(config, "SENDGRID_SANDBOX", True)
    captured = {}

    class FakeSendGrid:
        def __init__(self, api_key):
            self.api_key = api_key

        def send(self, message):
            captured.update(message.get())
            return _response(202)

    monkeypatch.setattr(email_utils, "SendGridAPIClient", FakeSendGrid)

    assert email_utils.send_welcome_email("sports@iitd.ac.in", "IIT Delhi")
    assert captured["mail_settings"]["sandbox_mode"]["enable"] is True
    assert captured["personalizations"][0]["to"][0]["email"] == "sports@iitd.ac.in"
