from fastapi import Request

from catalyst.services.code_modification_service import CodeModificationService
from catalyst.services.job_queue import JobQueue


def get_job_queue(request: Request) -> JobQueue:
    return request.app.state.job_queue


def get_modification_service(request: Request) -> CodeModificationService:
    return request.app.state.modification_service
