import os
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from .routes import router
from .core import redis_startup, init_metrics, shutdown_connections
from .models import init_models
import logging
from pythonjsonlogger import jsonlogger

# setup structured logging
logger = logging.getLogger('podshare')
handler = logging.StreamHandler()
formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
handler.setFormatter(formatter)
logger.addHandler(handler)
logger.setLevel(logging.INFO)

app = FastAPI(title="PodShare API", version="0.3.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.getenv('CORS_ORIGINS', '*').split(',')],
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)

app.include_router(router, prefix="/api")

@app.get('/healthz')
async def healthz():
    return {'status': 'ok'}

@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    # malformed input is a client error like a missing field
    return JSONResponse(status_code=400, content={'detail': jsonable_encoder(exc.errors())})

@app.middleware('http')
async def log_requests(request: Request, call_next):
    logger.info({'msg':'request_start','method':request.method,'path':request.url.path})
    response = await call_next(request)
    logger.info({'msg':'request_end','status': response.status_code})
    return response

@app.on_event("startup")
async def startup():
    # Best-effort init, don't block app from starting if a dependency fails
    try:
        await init_models()
    except Exception as e:
        logger.warning({'msg': 'db_init_failed', 'error': str(e)})
    try:
        await redis_startup()
    except Exception as e:
        logger.warning({'msg': 'redis_start_failed', 'error': str(e)})
    try:
        init_metrics()
    except Exception as e:
        logger.warning({'msg': 'metrics_init_failed', 'error': str(e)})

@app.on_event("shutdown")
async def shutdown():
    await shutdown_connections()
