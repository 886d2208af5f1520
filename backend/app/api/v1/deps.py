# app/api/v1/deps.py
from fastapi import Depends, Request

from app.core.bootstrap import Services
from app.services.issuance import IssuanceHandler
from app.services.license_verifier import LicenseVerifier
from app.services.summariser import SummarisationGateway


def get_services(request: Request) -> Services:
    """
    FastAPI dependency returning the service bundle built at startup.

    Usage:
        @router.get("/thing")
        async def thing(services: Services = Depends(get_services)):
            ...
    """
    return request.app.state.services


def get_verifier(services: Services = Depends(get_services)) -> LicenseVerifier:
    return services.verifier


def get_gateway(services: Services = Depends(get_services)) -> SummarisationGateway:
    return services.gateway


def get_issuance_handler(services: Services = Depends(get_services)) -> IssuanceHandler:
    return services.issuance
