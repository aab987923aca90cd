import bcrypt


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(password: str, hash_: str) -> bool:
    """False for a missing or malformed stored hash instead of raising."""
    if not hash_:
        return False
    try:
        return bcrypt.checkpw(password.encode(), hash_.encode())
    except ValueError:
        return False
