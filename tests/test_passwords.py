import passwords
from passwords import hash_password, verify_password


def test_hash_and_verify():
    digest = hash_password("passw0rd")
    assert digest != "passw0rd"
    assert verify_password("passw0rd", digest)
    assert not verify_password("passw0rd!", digest)


def test_hashes_are_salted():
    assert hash_password("same-secret1") != hash_password("same-secret1")


def test_cost_factor_is_embedded(monkeypatch):
    monkeypatch.setattr(passwords, "BCRYPT_ROUNDS", 5)
    assert hash_password("passw0rd").startswith("$2b$05$")


def test_malformed_digest_is_a_mismatch():
    assert verify_password("passw0rd", "not-a-bcrypt-hash") is False
