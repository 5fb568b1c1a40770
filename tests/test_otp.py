from api.v1.auth.otp import OtpService
from models.otp import OtpCode


def make_service(db, clock):
    return OtpService(db, now=clock, hash_rounds=4)


def test_generate_otp_is_six_digits(db, clock):
    otp_service = make_service(db, clock)
    codes = {otp_service.generate_otp() for _ in range(200)}
    assert all(len(code) == 6 and code.isdigit() for code in codes)
    assert len(codes) > 1


def test_unknown_email_can_resend_immediately(db, clock):
    otp_service = make_service(db, clock)
    assert otp_service.can_resend("nobody@example.com")
    assert otp_service.time_until_resend("nobody@example.com") == 0


def test_verify_is_single_use(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    assert otp_service.verify_otp("ada@example.com", "123456") is True
    assert otp_service.verify_otp("ada@example.com", "123456") is False


def test_wrong_code_keeps_record(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    assert otp_service.verify_otp("ada@example.com", "654321") is False
    assert db.query(OtpCode).count() == 1
    assert otp_service.verify_otp("ada@example.com", "123456") is True


def test_code_is_not_stored_in_plaintext(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "012345")

    record = db.query(OtpCode).one()
    assert b"012345" not in record.otp_code


def test_expired_code_fails_and_is_purged(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    clock.advance(minutes=5, seconds=1)

    assert otp_service.verify_otp("ada@example.com", "123456") is False
    assert db.query(OtpCode).count() == 0
    assert otp_service.can_resend("ada@example.com")


def test_code_still_valid_at_exact_expiry(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    clock.advance(minutes=5)

    assert otp_service.verify_otp("ada@example.com", "123456") is True


def test_resend_cooldown(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    assert not otp_service.can_resend("ada@example.com")
    assert otp_service.time_until_resend("ada@example.com") == 60

    clock.advance(seconds=30, milliseconds=500)
    assert not otp_service.can_resend("ada@example.com")
    assert otp_service.time_until_resend("ada@example.com") == 30

    clock.advance(seconds=29, milliseconds=500)
    assert otp_service.can_resend("ada@example.com")
    assert otp_service.time_until_resend("ada@example.com") == 0


def test_save_overwrites_previous_code(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "111111")
    clock.advance(seconds=61)
    otp_service.save_otp("ada@example.com", "222222")

    assert db.query(OtpCode).count() == 1
    assert otp_service.verify_otp("ada@example.com", "111111") is False
    assert otp_service.verify_otp("ada@example.com", "222222") is True


def test_email_lookup_ignores_case(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("Ada@Example.com", "123456")

    assert otp_service.verify_otp("ada@example.com", "123456") is True


def test_delete_expired_keeps_live_codes(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("old@example.com", "111111")
    clock.advance(minutes=4)
    otp_service.save_otp("new@example.com", "222222")
    clock.advance(minutes=2)

    assert otp_service.delete_expired() == 1
    assert [r.email for r in db.query(OtpCode).all()] == ["new@example.com"]


def test_overlong_code_is_rejected_without_error(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    # bcrypt refuses secrets over 72 bytes; these must read as a plain mismatch
    assert otp_service.verify_otp("ada@example.com", "1" * 100) is False
    assert otp_service.verify_otp("ada@example.com", "123456" + "0" * 80) is False
    assert db.query(OtpCode).count() == 1


def test_malformed_code_keeps_record(db, clock):
    otp_service = make_service(db, clock)
    otp_service.save_otp("ada@example.com", "123456")

    for bad in ["", "12345", "1234567", "12a456", "１２３４５６"]:
        assert otp_service.verify_otp("ada@example.com", bad) is False
    assert otp_service.verify_otp("ada@example.com", "123456") is True
