"""FastAPI dependencies resolving the generation components from app state."""

from fastapi import Request

from apiforge.core.generation.queue import GenerationQueue
from apiforge.services.projects import ProjectService


def get_project_service(request: Request) -> ProjectService:
    return request.app.state.project_service


def get_generation_queue(request: Request) -> GenerationQueue:
    return request.app.state.generation_queue
