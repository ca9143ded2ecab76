import hmac

from fastapi import Header, HTTPException, status

from midtrans_gateway.core.settings import settings


async def require_checkout_api_key(x_api_key: str = Header("", alias="X-API-Key")) -> None:
    """Guard operator endpoints; disabled while no key is configured."""

    if not settings.checkout_api_key:
        return

    if not hmac.compare_digest(x_api_key.encode("utf-8"), settings.checkout_api_key.encode("utf-8")):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid API key",
        )
