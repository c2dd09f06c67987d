"""FastAPI 应用入口"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import BanditError, SimulationStateError
from web.routers import simulation

app = FastAPI(title="多臂老虎机模拟")

# 注册 API 路由
app.include_router(simulation.router)


@app.exception_handler(BanditError)
async def bandit_error_handler(request: Request, exc: BanditError):
    """引擎异常 → HTTP 错误：状态冲突 409，其余 400"""
    status_code = 409 if isinstance(exc, SimulationStateError) else 400
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@app.get("/")
async def index():
    """API 简介"""
    return {
        "name": app.title,
        "endpoints": [route.path for route in simulation.router.routes],
    }
