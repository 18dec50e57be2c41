import pytest

from voyager.api import deps
from voyager.services.auth import AuthService
from voyager.services.directory import UserDirectory
from voyager.services.reset_ledger import ResetTokenLedger

pytestmark = pytest.mark.anyio


class FakeRedis:
    """Just enough of redis.asyncio.Redis for the reset ledger."""

    def __init__(self):
        self.store = {}

    async def set(self, key, value, nx=False, ex=None):
        if nx and key in self.store:
            return None
        self.store[key] = (value, ex)
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


async def _login(client, email, password):
    return await client.post("/auth/login", json={"email": email, "password": password})


async def _request_reset_token(client, mailer, email="alice@example.com"):
    resp = await client.post("/auth/send-otp", json={"email": email})
    assert resp.status_code == 200
    otp_token = resp.json()["otpToken"]
    code = mailer.codes[email.lower()]
    resp = await client.post("/auth/verify-otp", json={"otpToken": otp_token, "code": code})
    assert resp.status_code == 200
    return resp.json()["resetToken"]


async def test_full_reset_flow_changes_password(client, mailer, make_user):
    await make_user("alice@example.com", password="old-password")

    resp = await client.post("/auth/send-otp", json={"email": "Alice@Example.com"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["otpToken"]

    code = mailer.codes["alice@example.com"]
    assert len(code) == 6
    assert mailer.messages[-1]["to"] == "alice@example.com"
    assert code in mailer.messages[-1]["html"]

    resp = await client.post("/auth/verify-otp", json={"otpToken": body["otpToken"], "code": code})
    assert resp.status_code == 200
    reset_token = resp.json()["resetToken"]

    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "new-password"})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}

    assert (await _login(client, "alice@example.com", "old-password")).status_code == 401
    resp = await _login(client, "alice@example.com", "new-password")
    assert resp.status_code == 200
    assert resp.json()["token_type"] == "bearer"


async def test_send_otp_for_unknown_address_looks_the_same(client, mailer):
    resp = await client.post("/auth/send-otp", json={"email": "nobody@example.com"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert resp.json()["otpToken"]
    assert mailer.messages == []


async def test_send_otp_reports_success_when_delivery_fails(client, mailer, make_user):
    await make_user("alice@example.com")
    mailer.fail = True
    resp = await client.post("/auth/send-otp", json={"email": "alice@example.com"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True


async def test_send_otp_requires_valid_email(client):
    assert (await client.post("/auth/send-otp", json={})).status_code == 422
    assert (await client.post("/auth/send-otp", json={"email": "not-an-email"})).status_code == 422


async def test_wrong_code_is_refused(client, mailer, make_user):
    await make_user("alice@example.com")
    resp = await client.post("/auth/send-otp", json={"email": "alice@example.com"})
    otp_token = resp.json()["otpToken"]
    wrong = "000000" if mailer.codes["alice@example.com"] != "000000" else "111111"

    resp = await client.post("/auth/verify-otp", json={"otpToken": otp_token, "code": wrong})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired code"


async def test_expired_code_gets_the_same_answer(client, mailer, make_user, clock):
    await make_user("alice@example.com")
    resp = await client.post("/auth/send-otp", json={"email": "alice@example.com"})
    otp_token = resp.json()["otpToken"]
    clock.advance(601)

    resp = await client.post(
        "/auth/verify-otp", json={"otpToken": otp_token, "code": mailer.codes["alice@example.com"]}
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired code"


async def test_tampered_token_gets_the_same_answer(client):
    resp = await client.post("/auth/verify-otp", json={"otpToken": "abc.def", "code": "123456"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired code"


async def test_verify_otp_requires_token_and_code(client):
    assert (await client.post("/auth/verify-otp", json={"code": "123456"})).status_code == 422
    assert (await client.post("/auth/verify-otp", json={"otpToken": "x"})).status_code == 422


async def test_reset_rejects_short_password(client, tokens, make_user):
    await make_user("alice@example.com")
    reset_token = tokens.issue_reset("alice@example.com")
    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "12345"})
    assert resp.status_code == 400
    assert "at least 6" in resp.json()["detail"]


async def test_reset_rejects_invalid_token(client):
    resp = await client.post("/auth/reset-password", json={"resetToken": "bogus.token", "newPassword": "long-enough"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired reset token"


async def test_reset_rejects_expired_token(client, tokens, clock, make_user):
    await make_user("alice@example.com")
    reset_token = tokens.issue_reset("alice@example.com")
    clock.advance(901)
    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "long-enough"})
    assert resp.status_code == 400


async def test_otp_token_cannot_be_used_as_reset_token(client, make_user):
    await make_user("alice@example.com")
    resp = await client.post("/auth/send-otp", json={"email": "alice@example.com"})
    otp_token = resp.json()["otpToken"]
    resp = await client.post("/auth/reset-password", json={"resetToken": otp_token, "newPassword": "long-enough"})
    assert resp.status_code == 400


async def test_reset_for_missing_account_is_not_found(client, tokens):
    reset_token = tokens.issue_reset("ghost@example.com")
    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "long-enough"})
    assert resp.status_code == 404
    assert resp.json()["detail"] == "User not found"


async def test_reset_token_reusable_without_ledger(client, mailer, make_user):
    await make_user("alice@example.com")
    reset_token = await _request_reset_token(client, mailer)
    for password in ("first-password", "second-password"):
        resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": password})
        assert resp.status_code == 200
    assert (await _login(client, "alice@example.com", "second-password")).status_code == 200


async def test_reset_token_single_use_with_ledger(app, client, mailer, make_user):
    await make_user("alice@example.com")
    ledger = ResetTokenLedger(FakeRedis())
    app.dependency_overrides[deps.get_reset_ledger] = lambda: ledger

    reset_token = await _request_reset_token(client, mailer)
    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "first-password"})
    assert resp.status_code == 200
    resp = await client.post("/auth/reset-password", json={"resetToken": reset_token, "newPassword": "second-password"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid or expired reset token"
    assert (await _login(client, "alice@example.com", "first-password")).status_code == 200


async def test_ledger_consume_and_release():
    redis = FakeRedis()
    ledger = ResetTokenLedger(redis)
    assert await ledger.consume("data.sig", ttl=900) is True
    assert await ledger.consume("data.sig", ttl=900) is False
    await ledger.release("data.sig")
    assert await ledger.consume("data.sig", ttl=900) is True
    assert redis.store["reset-used:sig"] == ("1", 900)


class BrokenDirectory(UserDirectory):
    async def update_password(self, user_id, new_password):
        raise RuntimeError("database went away")


async def test_failed_password_update_releases_reset_token(session_factory, tokens, mailer, make_user):
    await make_user("alice@example.com", password="old-password")
    redis = FakeRedis()
    reset_token = tokens.issue_reset("alice@example.com")

    async with session_factory() as session:
        service = AuthService(BrokenDirectory(session), tokens, mailer, ledger=ResetTokenLedger(redis))
        with pytest.raises(RuntimeError):
            await service.reset_password(reset_token, "new-password")
    assert redis.store == {}

    # the token is still good once the directory recovers
    async with session_factory() as session:
        service = AuthService(UserDirectory(session), tokens, mailer, ledger=ResetTokenLedger(redis))
        await service.reset_password(reset_token, "new-password")
    assert list(redis.store) == [f"reset-used:{reset_token.rpartition('.')[2]}"]
