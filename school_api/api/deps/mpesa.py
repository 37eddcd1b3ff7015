# school_api/api/deps/mpesa.py
from fastapi import HTTPException, Request, status

from school_api.services.mpesa import MpesaGateway


def get_mpesa_gateway(request: Request) -> MpesaGateway:
    """Return the gateway installed on ``app.state.mpesa_gateway``."""
    gateway = getattr(request.app.state, "mpesa_gateway", None)
    if gateway is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="M-Pesa gateway is not configured",
        )
    return gateway
