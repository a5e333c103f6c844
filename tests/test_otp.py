from qairoz.utils import email as email_utils
from qairoz.utils import otp as otp_utils
from qairoz.utils.otp import OTPStore, send_email_otp


def test_issue_returns_numeric_code(otp_store):
    code = otp_store.issue("player@college.edu")

    assert len(code) == 6
    assert code.isdigit()
    assert otp_store.has_active("player@college.edu")
    assert otp_store.time_remaining("player@college.edu") == 300


def test_code_is_not_stored_in_plaintext(otp_store):
    code = otp_store.issue("player@college.edu")

    record = otp_store._records["player@college.edu"]
    assert record.code_hash != code
    assert code not in record.code_hash


def test_verify_success_consumes_code(otp_store):
    code = otp_store.issue("player@college.edu")

    result = otp_store.verify("player@college.edu", code)

    assert result.success
    assert result.message == "Email verified successfully!"
    assert not otp_store.has_active("player@college.edu")
    again = otp_store.verify("player@college.edu", code)
    assert not again.success
    assert again.reason == "not_found"


def test_email_is_normalised(otp_store):
    code = otp_store.issue("  Player@College.EDU ")

    assert otp_store.verify("player@college.edu", code).success


def test_wrong_code_counts_down_attempts(otp_store):
    code = otp_store.issue("player@college.edu")
    wrong = "000000" if code != "000000" else "111111"

    first = otp_store.verify("player@college.edu", wrong)
    second = otp_store.verify("player@college.edu", wrong)

    assert first.message == "Invalid OTP. 2 attempts remaining."
    assert second.message == "Invalid OTP. 1 attempts remaining."
    assert second.attempts_left == 1
    # still verifiable with attempts left
    assert otp_store.verify("player@college.edu", code).success


def test_exhausted_attempts_evict_code(otp_store):
    code = otp_store.issue("player@college.edu")
    wrong = "000000" if code != "000000" else "111111"
    for _ in range(3):
        otp_store.verify("player@college.edu", wrong)

    result = otp_store.verify("player@college.edu", code)

    assert not result.success
    assert result.message == "Too many attempts. Please request a new OTP."
    assert not otp_store.has_active("player@college.edu")
    assert otp_store.verify("player@college.edu", code).reason == "not_found"


def test_expired_code_is_rejected(otp_store, clock):
    code = otp_store.issue("player@college.edu")
    clock.advance(301)

    result = otp_store.verify("player@college.edu", code)

    assert not result.success
    assert result.message == "OTP not found or expired. Please request a new one."
    assert len(otp_store) == 0


def test_code_still_valid_at_expiry_instant(otp_store, clock):
    code = otp_store.issue("player@college.edu")
    clock.advance(300)

    assert otp_store.verify("player@college.edu", code).success


def test_expired_branch_when_clock_moves_during_verify():
    ticks = iter([0.0, 0.0, 10.0, 20.0])
    store = OTPStore(expire_seconds=15, max_attempts=3, length=6, clock=lambda: next(ticks))
    code = store.issue("player@college.edu")  # t=0, expires at 15 (purge at 0)

    # purge sees t=10 (alive), expiry check sees t=20 (expired)
    result = store.verify("player@college.edu", code)

    assert result.reason == "expired"
    assert result.message == "OTP has expired. Please request a new one."


def test_reissue_invalidates_previous_code(otp_store):
    old = otp_store.issue("player@college.edu")
    new = otp_store.issue("player@college.edu")
    while new == old:
        new = otp_store.issue("player@college.edu")

    assert not otp_store.verify("player@college.edu", old).success
    assert otp_store.verify("player@college.edu", new).success


def test_reissue_resets_attempts(otp_store):
    otp_store.issue("player@college.edu")
    for _ in range(3):
        otp_store.verify("player@college.edu", "abcdef")

    code = otp_store.issue("player@college.edu")

    assert otp_store.verify("player@college.edu", code).success


def test_time_remaining_rounds_up(otp_store, clock):
    otp_store.issue("player@college.edu")
    clock.advance(100.2)

    assert otp_store.time_remaining("player@college.edu") == 200
    assert otp_store.time_remaining("nobody@college.edu") == 0


def test_cleanup_drops_only_expired(otp_store, clock):
    otp_store.issue("early@college.edu")
    clock.advance(200)
    otp_store.issue("late@college.edu")
    clock.advance(150)

    otp_store.cleanup_expired()

    assert not otp_store.has_active("early@college.edu")
    assert otp_store.has_active("late@college.edu")


def test_clear(otp_store):
    otp_store.issue("player@college.edu")

    otp_store.clear("player@college.edu")
    otp_store.clear("player@college.edu")

    assert len(otp_store) == 0


def test_send_email_otp_delivers_code(otp_store, monkeypatch):
    sent = {}

    def fake_send(to, code, expires_minutes=None):
        sent.update(to=to, code=code, expires_minutes=expires_minutes)
        return True

    monkeypatch.setattr(email_utils, "send_otp_email", fake_send)

    result = send_email_otp(otp_store, "player@college.edu")

    assert result == {
        "success": True,
        "message": "OTP generated successfully",
        "email_sent": True,
        "expires_in": 300,
    }
    assert sent["to"] == "player@college.edu"
    assert sent["expires_minutes"] == 5
    assert otp_store.verify("player@college.edu", sent["code"]).success


def test_send_email_otp_keeps_code_when_delivery_fails(otp_store, monkeypatch):
    def broken_send(to, code, expires_minutes=None):
        raise ConnectionError("smtp down")

    monkeypatch.setattr(email_utils, "send_otp_email", broken_send)

    result = send_email_otp(otp_store, "player@college.edu")

    assert result["success"] is True
    assert result["email_sent"] is False
    assert otp_store.has_active("player@college.edu")


def test_send_email_otp_reports_generation_failure(otp_store, monkeypatch):
    def broken_generate(length):
        raise RuntimeError("no entropy")

    monkeypatch.setattr(otp_utils, "_generate_numeric_otp", broken_generate)

    result = send_email_otp(otp_store, "player@college.edu")

    assert result["success"] is False
    assert result["message"] == "Failed to generate OTP. Please try again."
    assert not otp_store.has_active("player@college.edu")
