import logging

from fastapi import FastAPI

from .db import init_db
from .errors import register_error_handlers
from .utils import add_cors
from .settings import settings
from . import commands, controls, diagnostics, resources, sensors

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("homedash")

app = FastAPI(title="Homedash API", version="0.1.0")
add_cors(app)
register_error_handlers(app)

app.include_router(resources.router)
app.include_router(sensors.router)
app.include_router(commands.router)
app.include_router(controls.router)
app.include_router(diagnostics.router)

@app.on_event("startup")
async def on_startup():
    init_db()
    log.info("store ready, command priority order=%s", settings.command_priority_order)

@app.get("/api/health")
def health():
    return {"status": "ok"}
