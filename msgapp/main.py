import os
import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pythonjsonlogger import jsonlogger
from .routes import router
from .core import bootstrap
from .errors import MsgAppError
from .schemas.common import ErrorOut

# setup structured logging
logger = logging.getLogger('msgapp')
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(os.getenv('LOG_LEVEL', 'INFO').upper())

CORS_ORIGINS = [o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',') if o.strip()]

app = FastAPI(title="msgapp API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(router, prefix="/api")


@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}


@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg': 'request_start', 'method': request.method, 'path': request.url.path})
    response = await call_next(request)
    logger.info({'msg': 'request_end', 'status': response.status_code})
    return response


@app.exception_handler(MsgAppError)
async def handle_business_error(request: Request, exc: MsgAppError):
    logger.warning({'msg': exc.code, 'path': request.url.path, 'error': exc.message})
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorOut(error=exc.code, message=exc.message).model_dump(),
    )


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.error({'msg': 'unhandled_exception', 'path': request.url.path}, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content=ErrorOut(
            error='internal_error',
            message='An unexpected error occurred. Please try again later.',
        ).model_dump(),
    )


@app.on_event("startup")
async def startup():
    await bootstrap()
