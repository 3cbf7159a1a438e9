from validators import is_valid_email, password_problems, username_problems


def test_username_rules():
    assert username_problems("budi_99") == []
    assert username_problems("ab")
    assert username_problems("a" * 21)
    assert username_problems("no spaces")


def test_email():
    assert is_valid_email("guru@school.example")
    assert not is_valid_email("guru@school")
    assert not is_valid_email("guru school@example.com")


def test_password_rules():
    assert password_problems("abc123") == []
    assert "Password must contain at least one number" in password_problems("abcdefg")
    assert "Password must contain at least one letter" in password_problems("1234567")
    assert password_problems("a1" * 40)
