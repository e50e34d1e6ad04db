from sacrewards.logging_config import redact_sensitive


def test_secrets_are_redacted():
    event = redact_sensitive(None, "info", {"event": "login_failed", "password": "hunter22", "token": "abc"})

    assert event == {"event": "login_failed", "password": "[redacted]", "token": "[redacted]"}


def test_account_number_keeps_last_four_digits():
    event = redact_sensitive(None, "info", {"event": "bank_details_saved", "account_number": "12345678901"})

    assert event["account_number"] == "*******8901"


def test_short_account_number_is_left_as_is():
    event = redact_sensitive(None, "info", {"account_number": "123"})

    assert event["account_number"] == "123"
