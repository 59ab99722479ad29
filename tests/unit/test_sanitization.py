from utils.logger import sanitize_log_data


def test_token_partial_redaction():
    data = {"access_token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9.long_token_here"}
    sanitized = sanitize_log_data(data)

    assert len(sanitized["access_token"]) == 11
    assert sanitized["access_token"].startswith(data["access_token"][:8])
    assert sanitized["access_token"].endswith("...")
    assert "long_token_here" not in sanitized["access_token"]


def test_customer_pii_redacted():
    data = {
        "order_id": 7,
        "phone": "9876543210",
        "delivery_address": {"address": "221 Residency Road", "lat": 12.96},
    }
    sanitized = sanitize_log_data(data)

    assert sanitized["order_id"] == 7
    assert sanitized["phone"] == "***REDACTED***"
    assert sanitized["delivery_address"] == "***REDACTED***"


def test_nested_dict_sanitization():
    data = {
        "payment": {
            "method": "upi",
            "upi_id": "asha@bank"
        }
    }
    sanitized = sanitize_log_data(data)

    assert sanitized["payment"]["method"] == "upi"
    assert sanitized["payment"]["upi_id"] == "***REDACTED***"


def test_non_sensitive_data_unchanged():
    data = {"order_id": 123, "status": "ready", "partner_id": 9}
    sanitized = sanitize_log_data(data)

    assert sanitized == data
