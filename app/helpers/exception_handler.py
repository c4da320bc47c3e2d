import logging

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CustomException(Exception):
    http_code: int
    code: str
    message: str

    def __init__(self, http_code: int = None, code: str = None, message: str = None):
        self.http_code = http_code if http_code else 500
        self.code = code if code else str(self.http_code)
        self.message = message
        super().__init__(message)


async def http_exception_handler(request: Request, exc: CustomException):
    logger.warning(f"{request.method} {request.url.path} -> {exc.http_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.http_code,
        content={'success': False, 'code': exc.code, 'message': exc.message}
    )
