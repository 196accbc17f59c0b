"""Dependency providers for API routes.

Services are built by the app factory and hung on ``app.state``; these
functions hand them to route handlers.
"""

from fastapi import Request

from .exercise_library import ExerciseLibrary
from .gateway import ModelGateway
from .planner import Planner
from .store import CoachStore


def get_store(request: Request) -> CoachStore:
    return request.app.state.store


def get_gateway(request: Request) -> ModelGateway:
    return request.app.state.gateway


def get_planner(request: Request) -> Planner:
    return request.app.state.planner


def get_exercise_library(request: Request) -> ExerciseLibrary:
    return request.app.state.exercise_library
