import json
import logging
from typing import Optional

import firebase_admin
from firebase_admin import auth, credentials
from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

_firebase_app = None


def init_firebase():
    """Initialize the Firebase Admin SDK used to verify ID tokens."""
    global _firebase_app
    if _firebase_app is None:
        # Option 1: Use service account file path
        if settings.GOOGLE_APPLICATION_CREDENTIALS:
            cred = credentials.Certificate(settings.GOOGLE_APPLICATION_CREDENTIALS)
        # Option 2: Use environment variable with JSON content
        elif settings.FIREBASE_SERVICE_ACCOUNT:
            cred = credentials.Certificate(json.loads(settings.FIREBASE_SERVICE_ACCOUNT))
        else:
            raise ValueError(
                "Firebase credentials not configured. "
                "Set FIREBASE_SERVICE_ACCOUNT or GOOGLE_APPLICATION_CREDENTIALS"
            )

        _firebase_app = firebase_admin.initialize_app(cred)
    return _firebase_app


security = HTTPBearer()


class FirebaseUser:
    """Identity carried by a verified Firebase ID token."""

    def __init__(self, uid: str, email: Optional[str], name: Optional[str]):
        self.uid = uid
        self.email = email
        self.name = name


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> FirebaseUser:
    """
    Validate the bearer Firebase ID token and return the caller's identity.

    Account registration, login and token refresh happen against Firebase;
    this service only verifies the resulting tokens.
    """
    try:
        init_firebase()
    except ValueError as e:
        logger.error(f"Firebase is not configured: {e}")
        raise _unauthorized("Authentication is not available")

    try:
        decoded_token = auth.verify_id_token(credentials.credentials)
    except auth.ExpiredIdTokenError:
        raise _unauthorized("Token has expired")
    except auth.InvalidIdTokenError:
        raise _unauthorized("Invalid authentication token")
    except Exception as e:
        logger.warning(f"Token verification failed: {e}")
        raise _unauthorized(f"Authentication failed: {str(e)}")

    return FirebaseUser(
        uid=decoded_token["uid"],
        email=decoded_token.get("email"),
        name=decoded_token.get("name"),
    )
