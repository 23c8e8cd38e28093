from app.utils.encrypt import decrypt_data, encrypt_data


def test_round_trip():
    token = encrypt_data("odoo-api-key")
    assert token != "odoo-api-key"
    assert decrypt_data(token) == "odoo-api-key"


def test_empty_values():
    assert encrypt_data("") == ""
    assert decrypt_data("") == ""
    assert decrypt_data(None) == ""


def test_malformed_or_tampered_input_returns_empty():
    token = encrypt_data("odoo-api-key")
    tampered = token[:-6] + ("A" if token[-6] != "A" else "B") + token[-5:]
    assert decrypt_data(tampered) == ""
    assert decrypt_data("iv:tag:ciphertext") == ""
