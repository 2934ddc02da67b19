import logging

from fastapi import APIRouter, HTTPException, Request

from crypto_exchange.errors import ApiNotConfiguredError
from crypto_exchange.schemas.quote import ApiStatus, CryptoQuote, MessageResponse
from crypto_exchange.services.tracking import CryptoTrackingService

logger = logging.getLogger(__name__)

router = APIRouter()


def _service(request: Request) -> CryptoTrackingService:
    return request.app.state.tracking_service


def _require_configured(service: CryptoTrackingService) -> None:
    if not service.is_api_configured():
        raise ApiNotConfiguredError()


@router.get('/crypto', response_model=list[CryptoQuote])
def list_quotes(request: Request):
    return _service(request).list_all()


@router.get('/crypto/status', response_model=ApiStatus)
def get_status(request: Request):
    service = _service(request)
    configured = service.is_api_configured()
    return ApiStatus(
        api_configured=configured,
        tracked_currencies=service.count(),
        message=(
            'API is configured and ready'
            if configured
            else 'API key not configured. Set COINMARKETCAP_API_KEY in the environment'
        ),
    )


@router.post('/crypto/refresh-all')
def refresh_all(request: Request):
    service = _service(request)
    _require_configured(service)
    result = service.refresh_all()
    logger.info('[API][refresh_all] updated=%d attempted=%d', result.updated, result.attempted)
    return {
        'message': 'Refresh completed for all tracked cryptocurrencies',
        **result.model_dump(),
    }


@router.get('/crypto/{symbol}', response_model=CryptoQuote)
def get_quote(symbol: str, request: Request):
    row = _service(request).get(symbol)
    if row is None:
        raise HTTPException(status_code=404, detail='QUOTE_NOT_FOUND')
    return row


@router.post('/crypto/{symbol}', response_model=CryptoQuote, status_code=201)
def add_quote(symbol: str, request: Request):
    service = _service(request)
    _require_configured(service)
    row = service.add(symbol)
    if row is None:
        raise HTTPException(status_code=400, detail='QUOTE_FETCH_FAILED')
    return row


@router.delete('/crypto/{symbol}', response_model=MessageResponse)
def remove_quote(symbol: str, request: Request):
    if not _service(request).remove(symbol):
        raise HTTPException(status_code=404, detail='QUOTE_NOT_FOUND')
    return MessageResponse(message=f'Successfully removed {symbol.strip().upper()} from tracking')


@router.post('/crypto/{symbol}/refresh', response_model=CryptoQuote)
def refresh_quote(symbol: str, request: Request):
    service = _service(request)
    _require_configured(service)
    row = service.refresh_one(symbol)
    if row is None:
        raise HTTPException(status_code=404, detail='QUOTE_NOT_FOUND')
    return row


@router.get('/metrics/refresh')
def refresh_metrics(request: Request):
    metrics = request.app.state.refresh_scheduler.metrics()
    metrics['tracked_currencies'] = _service(request).count()
    return metrics
