import secrets

TOKEN_BYTES = 16

def random_token() -> str:
    """Hex token long enough that collisions between pending requests are not a concern."""
    return secrets.token_hex(TOKEN_BYTES)
