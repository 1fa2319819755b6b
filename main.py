from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi import status
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging
from carrental.config import ALLOW_ORIGINS, LOG_LEVEL
from carrental.database.connections import lifespan
from carrental.includes import get_all_routers, gather_routers
from carrental.services.json import return_error_json
from carrental.utilities.errors import ValidationError, error_code_for


logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")
logger = logging.getLogger(__name__)
logger.info("🚀 Starting FastAPI application")

app = FastAPI(
    title="Car Rental API",
    description="Cars, bookings, reviews and additional services for a car rental service",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
)
app = gather_routers(app, get_all_routers())

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return return_error_json(
        message=str(exc.detail),
        error_code=error_code_for(exc),
        code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    message = errors[0]["msg"] if errors else ValidationError.message
    return return_error_json(message=message, error_code=ValidationError.code, code=status.HTTP_400_BAD_REQUEST, errors=errors)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return return_error_json(
        message="An unexpected error occurred.",
        error_code="INTERNAL_ERROR",
        code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.get("/")
async def index(req: Request):
    return {"status": "success", "message": "Welcome to the Car Rental API"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
