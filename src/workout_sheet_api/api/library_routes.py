"""API routes for the exercise library, saved workouts and student share links."""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Response
from pydantic import BaseModel, Field

from workout_sheet_api.models import Exercise, Gender, LibraryExercise, Level, SavedWorkout, ShareLink
from workout_sheet_api.services.library_service import (
    DuplicateExerciseError,
    InvalidRecordError,
    LibraryError,
    LibraryService,
    LibraryUnavailableError,
    RecordNotFoundError,
)
from workout_sheet_api.services.share_service import ShareError, ShareService, whatsapp_url

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------


class LibraryExerciseIn(BaseModel):
    name: str
    video_url: Optional[str] = None
    muscle_group: Optional[str] = None


class SavedWorkoutIn(BaseModel):
    name: str
    exercises: List[Exercise]
    gender: Gender = 'masculino'
    weekly_frequency: int = Field(default=3, ge=1, le=7)
    level: Level = 'iniciante'
    sub_level: int = Field(default=1, ge=1, le=3)
    level_complement: str = ""
    student_name: Optional[str] = None


class SavedWorkoutPatch(BaseModel):
    """Either rename the workout, replace its exercises, or both"""
    name: Optional[str] = None
    exercises: Optional[List[Exercise]] = None


class ShareRequest(BaseModel):
    name: str
    email: str
    phone: str = ""
    workout_id: str


class ShareResponse(BaseModel):
    share: ShareLink
    whatsapp_url: str


def _raise_http(exc: LibraryError):
    """Translate library failures into HTTP errors."""
    if isinstance(exc, LibraryUnavailableError):
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    if isinstance(exc, RecordNotFoundError):
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    if isinstance(exc, DuplicateExerciseError):
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    if isinstance(exc, InvalidRecordError):
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    raise HTTPException(status_code=502, detail=str(exc)) from exc


# ---------------------------------------------------------------------------
# Exercise library
# ---------------------------------------------------------------------------


@router.get("/library/exercises", response_model=List[LibraryExercise])
def list_exercises(search: Optional[str] = Query(None)):
    try:
        return LibraryService().list_exercises(search)
    except LibraryError as exc:
        _raise_http(exc)


@router.post("/library/exercises", response_model=LibraryExercise, status_code=201)
def create_exercise(payload: LibraryExerciseIn):
    try:
        return LibraryService().create_exercise(payload.name, payload.video_url, payload.muscle_group)
    except LibraryError as exc:
        _raise_http(exc)


@router.put("/library/exercises/{exercise_id}", response_model=LibraryExercise)
def update_exercise(exercise_id: str, payload: LibraryExerciseIn):
    try:
        return LibraryService().update_exercise(
            exercise_id, payload.name, payload.video_url, payload.muscle_group
        )
    except LibraryError as exc:
        _raise_http(exc)


@router.delete("/library/exercises/{exercise_id}", status_code=204)
def delete_exercise(exercise_id: str):
    try:
        LibraryService().delete_exercise(exercise_id)
    except LibraryError as exc:
        _raise_http(exc)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Saved workouts
# ---------------------------------------------------------------------------


@router.get("/library/workouts", response_model=List[SavedWorkout])
def list_workouts(gender: Optional[Gender] = Query(None), level: Optional[Level] = Query(None)):
    try:
        return LibraryService().list_workouts(gender=gender, level=level)
    except LibraryError as exc:
        _raise_http(exc)


@router.post("/library/workouts", response_model=SavedWorkout, status_code=201)
def save_workout(payload: SavedWorkoutIn):
    try:
        return LibraryService().save_workout(
            payload.name,
            payload.exercises,
            gender=payload.gender,
            weekly_frequency=payload.weekly_frequency,
            level=payload.level,
            sub_level=payload.sub_level,
            level_complement=payload.level_complement,
            student_name=payload.student_name,
        )
    except LibraryError as exc:
        _raise_http(exc)


@router.get("/library/workouts/{workout_id}", response_model=SavedWorkout)
def get_workout(workout_id: str):
    try:
        return LibraryService().get_workout(workout_id)
    except LibraryError as exc:
        _raise_http(exc)


@router.patch("/library/workouts/{workout_id}", response_model=SavedWorkout)
def patch_workout(workout_id: str, payload: SavedWorkoutPatch):
    """Rename a saved workout and/or replace its exercise list."""
    if payload.name is None and payload.exercises is None:
        raise HTTPException(status_code=422, detail="Informe o novo nome ou os exercícios")

    service = LibraryService()
    try:
        workout = None
        if payload.name is not None:
            workout = service.rename_workout(workout_id, payload.name)
        if payload.exercises is not None:
            workout = service.update_workout_exercises(workout_id, payload.exercises)
        return workout
    except LibraryError as exc:
        _raise_http(exc)


@router.delete("/library/workouts/{workout_id}", status_code=204)
def delete_workout(workout_id: str):
    try:
        LibraryService().delete_workout(workout_id)
    except LibraryError as exc:
        _raise_http(exc)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Student share links
# ---------------------------------------------------------------------------


@router.post("/share", response_model=ShareResponse, status_code=201)
def create_share(payload: ShareRequest):
    """Create a student's public link to a saved workout."""
    try:
        workout = LibraryService().get_workout(payload.workout_id)
    except LibraryError as exc:
        _raise_http(exc)

    try:
        share = ShareService().create_share(payload.name, payload.email, payload.phone, workout)
    except ShareError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    return ShareResponse(share=share, whatsapp_url=whatsapp_url(share))
