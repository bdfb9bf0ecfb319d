import hashlib
import hmac

from meetboard.webhook_security import compute_hmac_sha256, constant_time_compare, verify_cal_signature


def test_hmac_matches_stdlib_digest():
    expected = hmac.new(b"secret", b"payload", hashlib.sha256).hexdigest()
    assert compute_hmac_sha256("secret", b"payload") == expected


def test_empty_values_never_compare_equal():
    assert constant_time_compare("", "") is False
    assert constant_time_compare("abc", "") is False
    assert constant_time_compare("abc", "abc") is True


def test_cal_signature_verification():
    body = b'{"triggerEvent":"BOOKING_CREATED"}'
    signature = compute_hmac_sha256("cal_secret", body)

    assert verify_cal_signature("cal_secret", body, signature)
    assert verify_cal_signature("cal_secret", body, f" {signature.upper()} ")
    assert not verify_cal_signature("other_secret", body, signature)
    assert not verify_cal_signature("cal_secret", body + b" ", signature)
    assert not verify_cal_signature("cal_secret", body, None)
