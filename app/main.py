# app/main.py

from contextlib import asynccontextmanager
from fastapi.middleware.cors import CORSMiddleware
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from api.routes import stats
from config.settings import settings
import socketio
import logging

logger = logging.getLogger(__name__)

# Import Socket.IO instance and register all namespaces
from api.socketio import sio, gateway


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events"""
    logger.info(f"{settings.APP_NAME} starting, bridge clients identify with '{settings.BRIDGE_SENTINEL}'")

    yield

    # Shutdown: notify clients and drop pending history purges
    await gateway.shutdown()
    logger.info(f"{settings.APP_NAME} stopped")


fastapi_app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)


@fastapi_app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Consistent JSON body for unexpected HTTP errors"""
    logger.exception(f"Unhandled error on {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "path": request.url.path}
    )


fastapi_app.add_middleware(
    middleware_class=CORSMiddleware,
    allow_origins=["*"] if settings.cors_origins == "*" else settings.cors_origins,
    allow_methods=["GET"],
    allow_headers=["*"],
)

fastapi_app.include_router(stats.router)

# Wrap FastAPI app with Socket.IO
# This allows Socket.IO to handle /socket.io/* paths and pass everything else to FastAPI
# Namespaces are registered in api/socketio/__init__.py
app = socketio.ASGIApp(sio, fastapi_app)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
