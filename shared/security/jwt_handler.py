from jose import JWTError, jwt

from shared.config.settings import JWT_SECRET_KEY

# Tokens are issued by the identity service; this cluster only verifies them
if not JWT_SECRET_KEY:
    raise ValueError("FATAL ERROR: JWT_SECRET_KEY is not set in the environment!")

SECRET_KEY = JWT_SECRET_KEY
ALGORITHM = "HS256"

def verify_access_token(token: str) -> dict | None:
    """Decodes and verifies the JWT. Returns payload if valid, None if invalid/expired."""
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None
