import secrets

# no 0/1/I/O to keep agreement numbers readable over the phone
ALPHABET = "23456789ABCDEFGHJKLMNPQRSTUVWXYZ"

def generate_public_id(prefix: str, length: int = 8) -> str:
    token = "".join(secrets.choice(ALPHABET) for _ in range(length))
    return f"{prefix}-{token}"
