import base64
import json
import logging
import time
from typing import Optional

import httpx
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.x509 import load_pem_x509_certificate
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .config import FIREBASE_PROJECT_ID
from .database import get_db
from .errors import Conflict, Transient, Unauthenticated
from .models import Profile, Role

logger = logging.getLogger(__name__)

# auto_error=False so a missing header becomes our Unauthenticated error, not a 403
security = HTTPBearer(auto_error=False)

GOOGLE_CERTS_URL = (
    "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com"
)

# Cache for Google's public keys
_cached_keys: Optional[dict] = None


def _b64url_decode(segment: str) -> bytes:
    padding_len = -len(segment) % 4
    return base64.urlsafe_b64decode(segment + "=" * padding_len)


def resolve_role(hint) -> Role:
    """Role requested at signup; anything missing or unknown becomes a hirer"""
    try:
        return Role(hint)
    except ValueError:
        return Role.HIRER


async def get_google_public_keys(force_refresh: bool = False) -> Optional[dict]:
    """Fetch Google's public keys for Firebase token verification"""
    global _cached_keys
    if _cached_keys and not force_refresh:
        return _cached_keys

    try:
        async with httpx.AsyncClient(timeout=10) as client:
            response = await client.get(GOOGLE_CERTS_URL)
    except httpx.TransportError as e:
        logger.error(f"❌ Error fetching Google public keys: {e}")
        raise Transient("Unable to reach the identity provider. Please try again.") from e

    if response.status_code != 200:
        logger.error(f"❌ Failed to fetch Google public keys: HTTP {response.status_code}")
        return None

    _cached_keys = response.json()
    logger.info(f"✅ Fetched {len(_cached_keys)} Google public keys")
    return _cached_keys


def check_claims(claims: dict, project_id: str, now: Optional[float] = None) -> None:
    """Audience, issuer and time checks for a decoded Firebase ID token"""
    now = time.time() if now is None else now

    if claims.get("aud") != project_id:
        logger.error("❌ Token audience mismatch")
        raise Unauthenticated("Invalid token audience")

    if claims.get("iss") != f"https://securetoken.google.com/{project_id}":
        logger.error("❌ Token issuer mismatch")
        raise Unauthenticated("Invalid token issuer")

    if claims.get("exp", 0) < now:
        raise Unauthenticated("Your session has expired. Please sign in again.")

    # 60 seconds of clock skew
    if claims.get("iat", 0) > now + 60:
        logger.warning("⚠️ Token issued in the future")
        raise Unauthenticated("Invalid token")

    if not (claims.get("sub") or claims.get("user_id")):
        raise Unauthenticated("Invalid token claims")


async def verify_firebase_token(token: str) -> dict:
    """
    Verify a Firebase ID token: RS256 signature against Google's certificates,
    then the standard claims. Returns the decoded payload.
    """
    if not FIREBASE_PROJECT_ID:
        logger.error("❌ FIREBASE_PROJECT_ID not configured")
        raise Unauthenticated("Authentication is not configured")

    parts = token.split(".")
    if len(parts) != 3:
        logger.warning(f"⚠️ Malformed token received: {len(parts)} parts")
        raise Unauthenticated("Invalid token format")
    header_b64, payload_b64, signature_b64 = parts

    try:
        header = json.loads(_b64url_decode(header_b64))
        claims = json.loads(_b64url_decode(payload_b64))
        signature = _b64url_decode(signature_b64)
    except ValueError as e:
        raise Unauthenticated("Invalid token encoding") from e

    if header.get("alg") != "RS256" or not header.get("kid"):
        raise Unauthenticated("Invalid token header")

    kid = header["kid"]
    public_keys = await get_google_public_keys()
    if not public_keys or kid not in public_keys:
        # Google rotates keys; refresh once before giving up
        public_keys = await get_google_public_keys(force_refresh=True)
        if not public_keys or kid not in public_keys:
            logger.error(f"❌ Key ID {kid} not found in public keys after retry")
            raise Unauthenticated("Unable to verify token signature")

    cert = load_pem_x509_certificate(public_keys[kid].encode(), default_backend())
    try:
        cert.public_key().verify(
            signature,
            f"{header_b64}.{payload_b64}".encode(),
            padding.PKCS1v15(),
            hashes.SHA256(),
        )
    except Exception as e:
        logger.error(f"❌ Token signature verification failed: {e}")
        raise Unauthenticated("Invalid token signature") from e

    check_claims(claims, FIREBASE_PROJECT_ID)
    return claims


def get_or_create_principal(db: Session, claims: dict) -> Profile:
    """
    Find the principal for verified token claims, creating it on first sign-in.

    The role hint (custom claim `role`) is only read here, on creation.
    """
    firebase_uid = claims.get("sub") or claims.get("user_id")
    principal = db.query(Profile).filter(Profile.firebase_uid == firebase_uid).first()
    if principal:
        return principal

    role = resolve_role(claims.get("role"))
    logger.info(f"🆕 Creating new {role.value}: {claims.get('email')}")
    principal = Profile(
        firebase_uid=firebase_uid,
        email=claims.get("email") or "",
        full_name=claims.get("name") or "User",
        role=role.value,
    )
    db.add(principal)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        # Two first requests raced; the other one created the row
        principal = db.query(Profile).filter(Profile.firebase_uid == firebase_uid).first()
        if principal is None:
            raise Conflict("An account with this email already exists.") from e
        return principal

    db.refresh(principal)
    return principal


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Profile:
    """Authenticated principal for the request, or Unauthenticated"""
    if not credentials or not credentials.credentials:
        raise Unauthenticated()

    claims = await verify_firebase_token(credentials.credentials)
    principal = get_or_create_principal(db, claims)
    logger.debug(f"✅ Principal authenticated: {principal.id}")
    return principal
