"""
Request-scoped wiring of the purchase services.

The gateway and storage clients are built once in ``create_app`` and kept
on ``app.state``; everything else is constructed per request around the
request's database session.
"""
from fastapi import Depends, Request
from sqlmodel import Session

from storefront.database import get_session
from storefront.services.confirmation import PaymentConfirmationVerifier
from storefront.services.downloads import DownloadAuthorizer
from storefront.services.intent_service import PaymentIntentService
from storefront.services.payment_gateway import PaymentGateway
from storefront.services.storage import SignedUrlGateway


def get_payment_gateway(request: Request) -> PaymentGateway:
    return request.app.state.payment_gateway


def get_storage(request: Request) -> SignedUrlGateway:
    return request.app.state.storage


def get_intent_service(
    request: Request,
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentIntentService:
    return PaymentIntentService(session, gateway, currency=request.app.state.settings.currency)


def get_confirmation_verifier(
    session: Session = Depends(get_session),
    gateway: PaymentGateway = Depends(get_payment_gateway),
) -> PaymentConfirmationVerifier:
    return PaymentConfirmationVerifier(session, gateway)


def get_download_authorizer(
    session: Session = Depends(get_session),
    storage: SignedUrlGateway = Depends(get_storage),
) -> DownloadAuthorizer:
    return DownloadAuthorizer(session, storage)
