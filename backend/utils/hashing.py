# utils/hashing.py
import bcrypt

from config import settings

# bcrypt only looks at the first 72 bytes of a password
_MAX_BYTES = 72

def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:_MAX_BYTES]

def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        # Not a bcrypt hash (e.g. the random placeholder of a Google-only account)
        return False
