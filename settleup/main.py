import logging
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from settleup.core.config import settings
from settleup.core.errors import ValidationError, InvariantError
from settleup.api.v1.routes.system import router as system_router
from settleup.api.v1.routes.expense import router as expense_router
from settleup.api.v1.routes.group import router as group_router
from settleup.api.v1.routes.friend import router as friend_router
from settleup.api.v1.routes.balances import router as balances_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Settleup Backend")

@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    logger.warning("rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=400, content={"detail": exc.message})

@app.exception_handler(InvariantError)
async def invariant_error_handler(request: Request, exc: InvariantError):
    logger.error("invariant broken on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=500, content={"detail": exc.message})

@app.get("/")
async def root():
    return {"message": "Settleup Backend is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(expense_router, prefix="/api/v1/expenses")
app.include_router(group_router, prefix="/api/v1/groups")
app.include_router(friend_router, prefix="/api/v1/friends")
app.include_router(balances_router, prefix="/api/v1/balances")
