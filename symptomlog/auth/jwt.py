# symptomlog/auth/jwt.py
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError  # <-- python-jose

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60


# ---- JWT helpers ----
def create_access_token(
    data: Dict[str, Any],
    secret: str,
    algorithm: str = ALGORITHM,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Mint a signed token; `data` should carry at least a `sub` claim."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str = ALGORITHM) -> Optional[Dict[str, Any]]:
    try:
        return jwt.decode(token, secret, algorithms=[algorithm])
    except JWTError:
        return None
