"""
Gestionnaires d’exceptions de l'API.
- HTTPException: corps JSON FastAPI standard {"detail": ...}.
- StorefrontError échappée d'un service: statut et code métier de l'erreur.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from storefront.errors import StorefrontError

logger = logging.getLogger(__name__)

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)

    @app.exception_handler(StorefrontError)
    async def storefront_error_handler(request: Request, exc: StorefrontError):
        logger.warning("storefront error path=%s code=%s", request.url.path, exc.code)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "code": exc.code})
