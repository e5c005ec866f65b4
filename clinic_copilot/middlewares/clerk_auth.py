from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from clerk_backend_api import Clerk
from clerk_backend_api.security.types import AuthenticateRequestOptions
from httpx import Request as HttpxRequest

from clinic_copilot.core.config import settings
from clinic_copilot.core.logger import get_logger
from clinic_copilot.schemas.user_schemas import AuthUser, VerifiedIdentity
from clinic_copilot.utils.app_container import AppContainer, get_container

logger = get_logger("clerk_auth")


class ClerkIdentityVerifier:
    """Verifies Clerk session tokens and turns them into a VerifiedIdentity."""

    def __init__(self, secret_key: Optional[str] = None, clerk_sdk: Optional[Clerk] = None):
        self.clerk_sdk = clerk_sdk or Clerk(bearer_auth=secret_key or settings.CLERK_SECRET_KEY)

    async def verify(self, request: Request) -> VerifiedIdentity:
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(f"Missing or invalid Authorization header for: {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing or invalid authorization token"
            )

        try:
            # authenticate_request expects an httpx request
            httpx_request = HttpxRequest(
                method=request.method,
                url=str(request.url),
                headers=dict(request.headers)
            )
            request_state = self.clerk_sdk.authenticate_request(
                httpx_request,
                AuthenticateRequestOptions()
            )
        except Exception as e:
            logger.error(f"Authentication error: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication failed"
            ) from e

        if not request_state.is_signed_in:
            logger.warning(f"Invalid Clerk token: {request_state.reason}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authentication token"
            )

        clerk_user_id = request_state.payload.get("sub") if request_state.payload else None
        if not clerk_user_id:
            logger.warning("No user_id in token payload")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token payload"
            )

        try:
            clerk_user = self.clerk_sdk.users.get(user_id=clerk_user_id)
        except Exception as e:
            logger.error(f"Failed to fetch Clerk user {clerk_user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Authentication failed"
            ) from e

        return self._identity_from_clerk_user(clerk_user)

    @staticmethod
    def _identity_from_clerk_user(clerk_user) -> VerifiedIdentity:
        addresses = clerk_user.email_addresses or []
        primary = next(
            (a for a in addresses if a.id == clerk_user.primary_email_address_id),
            addresses[0] if addresses else None,
        )
        if primary is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Identity has no email address"
            )

        name = " ".join(part for part in (clerk_user.first_name, clerk_user.last_name) if part)
        return VerifiedIdentity(
            email=primary.email_address,
            name=name or clerk_user.username or primary.email_address,
            picture=clerk_user.image_url,
        )


_verifier: Optional[ClerkIdentityVerifier] = None


def get_identity_verifier() -> ClerkIdentityVerifier:
    global _verifier
    if _verifier is None:
        _verifier = ClerkIdentityVerifier()
    return _verifier


async def get_verified_identity(
    request: Request,
    verifier: ClerkIdentityVerifier = Depends(get_identity_verifier),
) -> VerifiedIdentity:
    """FastAPI dependency: the identity asserted by the request's bearer token."""
    return await verifier.verify(request)


async def get_caller_session(
    identity: VerifiedIdentity = Depends(get_verified_identity),
    container: AppContainer = Depends(get_container),
) -> Optional[AuthUser]:
    """
    FastAPI dependency: the signed-in user, provided the caller's token belongs to them.

    Returns None when nobody is signed in. A token for anyone other than the
    signed-in user is refused with 401.
    """
    user = container.auth.user
    if user is not None and user.email != identity.email:
        logger.warning(f"Token for {identity.email} does not match signed-in user {user.id}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token does not match the signed-in user"
        )
    return user


async def get_signed_in_user(user: Optional[AuthUser] = Depends(get_caller_session)) -> AuthUser:
    """FastAPI dependency for routes that need the caller signed in."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not authenticated"
        )
    return user
