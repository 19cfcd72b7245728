from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalyst.config import settings
from catalyst.api import codebase, jobs, prompt, templates
from catalyst.logging_config import configure_logging
from catalyst.services.code_generator import CodeGenerator
from catalyst.services.code_modification_service import CodeModificationService
from catalyst.services.job_queue import JobQueue
from catalyst.services.llm_service import LLMService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    configure_logging(settings.log_level)

    llm = LLMService()
    modifier = CodeModificationService(llm)
    queue = JobQueue(CodeGenerator(llm), modifier, settings)
    app.state.modification_service = modifier
    app.state.job_queue = queue

    queue.start()
    try:
        yield
    finally:
        await queue.stop()


app = FastAPI(
    title="Project Catalyst API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(prompt.router, prefix="/api/prompt", tags=["prompt"])
app.include_router(templates.router, prefix="/api/templates", tags=["templates"])
app.include_router(codebase.router, prefix="/api/codebase", tags=["codebase"])


@app.get("/api/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
