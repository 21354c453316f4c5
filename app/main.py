import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.database import Database
from .core.errors import register_error_handlers
from .core.schema import ensure_schema
from .routers import clients, documents, inquiries, items, quotations, share, tasks, tokens

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database.from_settings(settings)
    await db.open()
    await ensure_schema(db)
    app.state.db = db
    try:
        yield
    finally:
        await db.close()


app = FastAPI(
    title="Solar EPC Backend",
    version="1.0.0",
    lifespan=lifespan,
)

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]

configured_origins = settings.cors_origins or []
if "*" in configured_origins:
    allowed_origins = ["*"]
else:
    allowed_origins = list(dict.fromkeys(configured_origins + DEFAULT_CORS_ORIGINS))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(clients.router, prefix=settings.api_prefix, tags=["clients"])
app.include_router(inquiries.router, prefix=settings.api_prefix, tags=["inquiries"])
app.include_router(items.router, prefix=settings.api_prefix, tags=["items"])
app.include_router(quotations.router, prefix=settings.api_prefix, tags=["quotations"])
app.include_router(documents.router, prefix=settings.api_prefix, tags=["documents"])
app.include_router(tokens.router, prefix=settings.api_prefix, tags=["tokens"])
app.include_router(tasks.router, prefix=settings.api_prefix, tags=["tasks"])
app.include_router(share.router, prefix=settings.api_prefix, tags=["share"])


@app.get("/health")
async def health():
    return {"status": "ok"}
