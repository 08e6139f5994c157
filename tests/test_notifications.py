import asyncio
import json

import httpx
import pytest

from conftest import register
from referly.email.service import DEFAULT_BROADCAST_SUBJECT, NotificationDispatcher, SendGridTransport


@pytest.fixture
def dispatcher(settings, transport):
    return NotificationDispatcher(transport, settings)


class TestDispatcher:
    def test_send_renders_html_from_text(self, dispatcher, transport):
        assert asyncio.run(dispatcher.send("a@example.com", "Hi", "line one\n<b>line two</b>")) is True

        [message] = transport.sent
        assert message["html"] == "<p>line one</p><p>&lt;b&gt;line two&lt;/b&gt;</p>"
        assert message["text"] == "line one\n<b>line two</b>"

    def test_timeout_reports_failure(self, dispatcher, transport):
        transport.delay = 2.0

        assert asyncio.run(dispatcher.send("slow@example.com", "Hi", "body")) is False
        assert transport.sent == []

    def test_transport_error_reports_failure(self, dispatcher, transport):
        transport.raise_for = {"down@example.com"}

        assert asyncio.run(dispatcher.send("down@example.com", "Hi", "body")) is False

    def test_broadcast_counts_partial_failures(self, dispatcher, transport):
        transport.raise_for = {"b@example.com"}
        transport.reject_for = {"c@example.com"}
        recipients = ["a@example.com", "b@example.com", "c@example.com", "d@example.com"]

        result = asyncio.run(dispatcher.broadcast(recipients))

        assert (result.total, result.sent, result.failed) == (4, 2, 2)
        assert sorted(m["to"] for m in transport.sent) == ["a@example.com", "d@example.com"]
        assert all(m["subject"] == DEFAULT_BROADCAST_SUBJECT for m in transport.sent)
        assert "https://shop.example.com/register" in transport.sent[0]["html"]

    def test_broadcast_custom_message(self, dispatcher, transport):
        asyncio.run(dispatcher.broadcast(["a@example.com"], subject="Flash sale", body="Ends tonight"))

        [message] = transport.sent
        assert message["subject"] == "Flash sale"
        assert message["text"] == "Ends tonight"

    def test_welcome_escapes_name(self, dispatcher, transport):
        asyncio.run(dispatcher.send_welcome("a@example.com", "<script>", "abcd1234"))

        [message] = transport.sent
        assert "<script>" not in message["html"]
        assert "abcd1234" in message["html"]

    def test_reminder_includes_code_and_link(self, dispatcher, transport):
        asyncio.run(dispatcher.send_referral_reminder("a@example.com", "Asha", "abcd1234"))

        [message] = transport.sent
        assert message["subject"] == "Welcome Asha"
        assert "abcd1234" in message["text"]
        assert "https://shop.example.com/register" in message["text"]


def test_registration_sends_welcome_and_referrer_notice(client, transport, register_user):
    code = register_user("ravi@example.com", name="Ravi")
    register_user("priya@example.com", name="Priya", referralCode=code)

    [welcome] = transport.to("priya@example.com")
    assert welcome["subject"] == "Welcome to Our App"

    ravi_mail = [m["subject"] for m in transport.to("ravi@example.com")]
    assert ravi_mail == ["Welcome to Our App", "You've Referred a New User!"]
    assert "Priya" in transport.to("ravi@example.com")[1]["text"]


def test_registration_survives_mail_outage(client, transport):
    transport.fail_all = True

    resp = register(client, "priya@example.com")

    assert resp.status_code == 201
    assert client.get("/refer/data/priya@example.com").status_code == 200


def test_broadcast_requires_admin(client):
    assert client.post("/send-email").status_code == 401


def test_broadcast_without_users(client, admin_headers):
    resp = client.post("/send-email", headers=admin_headers)

    assert resp.status_code == 404
    assert resp.json()["message"] == "No users found to send emails"


def test_broadcast_partial_success(client, transport, admin_headers, register_user):
    for email in ("a@example.com", "b@example.com", "c@example.com"):
        register_user(email)
    transport.sent.clear()
    transport.raise_for = {"b@example.com"}

    resp = client.post("/send-email", json={"subject": "Flash sale"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "Emails sent to 2 of 3 users",
        "sent": 2,
        "failed": 1,
    }
    assert {m["subject"] for m in transport.sent} == {"Flash sale"}


def test_broadcast_all_failed(client, transport, admin_headers, register_user):
    register_user("a@example.com")
    transport.fail_all = True

    resp = client.post("/send-email", headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json()["success"] is False
    assert resp.json()["sent"] == 0


def test_user_sendmail(client, transport, admin_headers, register_user):
    code = register_user("asha@example.com", name="Asha")
    transport.sent.clear()

    resp = client.post("/user/sendmail", json={"email": "asha@example.com"}, headers=admin_headers)

    assert resp.status_code == 200
    assert resp.json() == {"success": True, "message": "Email sent to asha@example.com"}
    [message] = transport.sent
    assert code in message["text"]


def test_user_sendmail_requires_email(client, admin_headers):
    resp = client.post("/user/sendmail", json={}, headers=admin_headers)

    assert resp.status_code == 400
    assert resp.json()["message"] == "Email address is required"


def test_user_sendmail_unknown_user(client, admin_headers):
    resp = client.post("/user/sendmail", json={"email": "ghost@example.com"}, headers=admin_headers)

    assert resp.status_code == 404
    assert resp.json()["message"] == "User not found with this email"


def test_user_sendmail_transport_refuses(client, transport, admin_headers, register_user):
    register_user("asha@example.com")
    transport.reject_for = {"asha@example.com"}

    resp = client.post("/user/sendmail", json={"email": "asha@example.com"}, headers=admin_headers)

    assert resp.status_code == 500
    assert resp.json()["message"] == "Failed to send email"


class TestSendGridTransport:
    def _transport(self, handler, api_key="SG.test"):
        return SendGridTransport(
            api_key=api_key,
            from_email="no-reply@example.com",
            from_name="Referly",
            http_transport=httpx.MockTransport(handler),
        )

    def test_posts_payload(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(202)

        sender = self._transport(handler)
        assert asyncio.run(sender.send("a@example.com", "Hi", "<p>hi</p>", "hi")) is True

        assert seen["auth"] == "Bearer SG.test"
        body = seen["body"]
        assert body["personalizations"] == [{"to": [{"email": "a@example.com"}], "subject": "Hi"}]
        assert body["from"] == {"email": "no-reply@example.com", "name": "Referly"}
        assert [c["type"] for c in body["content"]] == ["text/plain", "text/html"]

    def test_rejected_by_api(self):
        sender = self._transport(lambda request: httpx.Response(401, text="bad key"))
        assert asyncio.run(sender.send("a@example.com", "Hi", "<p>hi</p>")) is False

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        sender = self._transport(handler)
        assert asyncio.run(sender.send("a@example.com", "Hi", "<p>hi</p>")) is False

    def test_disabled_without_api_key(self):
        calls = []
        sender = self._transport(lambda request: calls.append(request), api_key=None)

        assert sender.enabled is False
        assert asyncio.run(sender.send("a@example.com", "Hi", "<p>hi</p>")) is False
        assert calls == []
