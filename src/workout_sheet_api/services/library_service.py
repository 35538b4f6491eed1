"""Exercise and saved-workout library backed by Supabase.

Tables:
- exercises: id, name, video_url, muscle_group, created_at, updated_at
- ready_workouts: id, name, category (gender), weekly_frequency,
  level_category, level_number, level_complement, workout_data (JSON list of
  exercises), student_name, created_at, updated_at
"""
import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError
from supabase import create_client

from workout_sheet_api.models import Exercise, LibraryExercise, SavedWorkout

logger = logging.getLogger(__name__)

_EXERCISES_TABLE = "exercises"
_WORKOUTS_TABLE = "ready_workouts"


class LibraryError(RuntimeError):
    """Raised when a library operation fails."""


class LibraryUnavailableError(LibraryError):
    """Raised when Supabase is not configured."""


class RecordNotFoundError(LibraryError):
    """Raised when the requested record does not exist."""


class DuplicateExerciseError(LibraryError):
    """Raised when an exercise with the same name already exists."""


class InvalidRecordError(LibraryError):
    """Raised when a record is missing required data."""


def _get_supabase_client():
    """Get Supabase client instance, or None when credentials are missing."""
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")

    if not supabase_url or not supabase_key:
        logger.warning("Supabase credentials not configured. Library will be unavailable.")
        return None

    try:
        return create_client(supabase_url, supabase_key)
    except Exception as e:
        logger.error(f"Failed to create Supabase client: {e}")
        return None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_name(name: str) -> str:
    return " ".join((name or "").split()).lower()


def exercise_to_json(exercise: Exercise) -> Dict[str, Any]:
    """Serialize an exercise the way workout_data stores it (camelCase)."""
    return {
        "id": exercise.id,
        "name": exercise.name,
        "series": exercise.series,
        "repetitions": exercise.repetitions,
        "rest": exercise.rest,
        "videoLink": exercise.video_link,
        "notes": exercise.notes,
        "category": exercise.category,
    }


def exercises_from_json(data: Any) -> List[Exercise]:
    """Parse workout_data, skipping malformed entries."""
    if not isinstance(data, list):
        return []

    exercises = []
    for item in data:
        if not isinstance(item, dict):
            continue
        payload = dict(item)
        if "videoLink" in payload and "video_link" not in payload:
            payload["video_link"] = payload.pop("videoLink")
        for key in ("video_link", "rest", "notes"):
            if payload.get(key) is None:
                payload.pop(key, None)
        if payload.get("repetitions") is not None:
            payload["repetitions"] = str(payload["repetitions"])
        try:
            exercises.append(Exercise(**payload))
        except ValidationError as e:
            logger.warning(f"Skipping malformed stored exercise: {e.errors()[0].get('msg')}")
    return exercises


def _row_to_library_exercise(row: Dict[str, Any]) -> LibraryExercise:
    return LibraryExercise(**{**row, "id": str(row["id"])})


def _row_to_saved_workout(row: Dict[str, Any]) -> SavedWorkout:
    return SavedWorkout(
        id=str(row["id"]),
        name=row.get("name") or "",
        gender=row.get("category") or "masculino",
        weekly_frequency=row.get("weekly_frequency") or 3,
        level=row.get("level_category") or "iniciante",
        sub_level=row.get("level_number") or 1,
        level_complement=row.get("level_complement") or "",
        student_name=row.get("student_name"),
        exercises=exercises_from_json(row.get("workout_data")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


class LibraryService:
    """CRUD over the exercise library and the saved (ready) workouts."""

    def _client(self):
        client = _get_supabase_client()
        if client is None:
            raise LibraryUnavailableError("Biblioteca indisponível: Supabase não configurado")
        return client

    @staticmethod
    def _run(action: str, query) -> List[Dict[str, Any]]:
        """Execute a query builder, wrapping client failures into LibraryError."""
        try:
            result = query.execute()
        except Exception as e:
            logger.error(f"Library {action} failed: {e}")
            raise LibraryError(f"Falha ao {action}") from e
        return result.data or []

    # ------------------------------------------------------------------
    # Exercises
    # ------------------------------------------------------------------

    def list_exercises(self, search: Optional[str] = None) -> List[LibraryExercise]:
        """Exercises ordered by name, optionally filtered by a name substring."""
        client = self._client()
        rows = self._run(
            "listar exercícios",
            client.table(_EXERCISES_TABLE).select("*").order("name"),
        )
        exercises = [_row_to_library_exercise(row) for row in rows]
        term = _normalize_name(search or "")
        if term:
            exercises = [e for e in exercises if term in _normalize_name(e.name)]
        return exercises

    def _ensure_unique_name(self, client, name: str, exclude_id: Optional[str] = None) -> None:
        rows = self._run(
            "verificar exercícios",
            client.table(_EXERCISES_TABLE).select("id,name"),
        )
        wanted = _normalize_name(name)
        for row in rows:
            if str(row.get("id")) == str(exclude_id):
                continue
            if _normalize_name(row.get("name", "")) == wanted:
                raise DuplicateExerciseError(f"Já existe um exercício com o nome '{name.strip()}'")

    def create_exercise(
        self,
        name: str,
        video_url: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> LibraryExercise:
        name = (name or "").strip()
        if not name:
            raise InvalidRecordError("Nome do exercício é obrigatório")

        client = self._client()
        self._ensure_unique_name(client, name)
        rows = self._run(
            "criar exercício",
            client.table(_EXERCISES_TABLE).insert({
                "name": name,
                "video_url": (video_url or "").strip() or None,
                "muscle_group": (muscle_group or "").strip() or None,
            }),
        )
        if not rows:
            raise LibraryError("Falha ao criar exercício")
        logger.info(f"Library exercise created: {name}")
        return _row_to_library_exercise(rows[0])

    def update_exercise(
        self,
        exercise_id: str,
        name: str,
        video_url: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> LibraryExercise:
        name = (name or "").strip()
        if not name:
            raise InvalidRecordError("Nome do exercício é obrigatório")

        client = self._client()
        self._ensure_unique_name(client, name, exclude_id=exercise_id)
        rows = self._run(
            "atualizar exercício",
            client.table(_EXERCISES_TABLE).update({
                "name": name,
                "video_url": (video_url or "").strip() or None,
                "muscle_group": (muscle_group or "").strip() or None,
                "updated_at": _now(),
            }).eq("id", exercise_id),
        )
        if not rows:
            raise RecordNotFoundError(f"Exercício {exercise_id} não encontrado")
        return _row_to_library_exercise(rows[0])

    def delete_exercise(self, exercise_id: str) -> None:
        client = self._client()
        rows = self._run(
            "excluir exercício",
            client.table(_EXERCISES_TABLE).delete().eq("id", exercise_id),
        )
        if not rows:
            raise RecordNotFoundError(f"Exercício {exercise_id} não encontrado")
        logger.info(f"Library exercise deleted: {exercise_id}")

    # ------------------------------------------------------------------
    # Saved workouts
    # ------------------------------------------------------------------

    def list_workouts(self, gender: Optional[str] = None, level: Optional[str] = None) -> List[SavedWorkout]:
        """Saved workouts, newest first, optionally filtered by gender and level."""
        client = self._client()
        query = client.table(_WORKOUTS_TABLE).select("*")
        if gender:
            query = query.eq("category", gender)
        if level:
            query = query.eq("level_category", level)
        rows = self._run("listar treinos", query.order("created_at", desc=True))
        return [_row_to_saved_workout(row) for row in rows]

    def get_workout(self, workout_id: str) -> SavedWorkout:
        client = self._client()
        rows = self._run(
            "carregar treino",
            client.table(_WORKOUTS_TABLE).select("*").eq("id", workout_id).limit(1),
        )
        if not rows:
            raise RecordNotFoundError(f"Treino {workout_id} não encontrado")
        return _row_to_saved_workout(rows[0])

    def save_workout(
        self,
        name: str,
        exercises: List[Exercise],
        gender: str = "masculino",
        weekly_frequency: int = 3,
        level: str = "iniciante",
        sub_level: int = 1,
        level_complement: str = "",
        student_name: Optional[str] = None,
    ) -> SavedWorkout:
        name = (name or "").strip()
        if not name:
            raise InvalidRecordError("Nome do treino é obrigatório")
        if not exercises:
            raise InvalidRecordError("Adicione pelo menos um exercício antes de salvar")

        client = self._client()
        rows = self._run(
            "salvar treino",
            client.table(_WORKOUTS_TABLE).insert({
                "name": name,
                "category": gender,
                "weekly_frequency": weekly_frequency,
                "level_category": level,
                "level_number": sub_level,
                "level_complement": level_complement or None,
                "student_name": student_name,
                "workout_data": [exercise_to_json(e) for e in exercises],
            }),
        )
        if not rows:
            raise LibraryError("Falha ao salvar treino")
        logger.info(f"Saved workout '{name}' with {len(exercises)} exercises")
        return _row_to_saved_workout(rows[0])

    def rename_workout(self, workout_id: str, name: str) -> SavedWorkout:
        name = (name or "").strip()
        if not name:
            raise InvalidRecordError("Nome do treino é obrigatório")

        client = self._client()
        rows = self._run(
            "renomear treino",
            client.table(_WORKOUTS_TABLE).update({"name": name, "updated_at": _now()}).eq("id", workout_id),
        )
        if not rows:
            raise RecordNotFoundError(f"Treino {workout_id} não encontrado")
        return _row_to_saved_workout(rows[0])

    def update_workout_exercises(self, workout_id: str, exercises: List[Exercise]) -> SavedWorkout:
        """Replace the exercises of a saved workout (whole-record replacement)."""
        client = self._client()
        rows = self._run(
            "atualizar treino",
            client.table(_WORKOUTS_TABLE).update({
                "workout_data": [exercise_to_json(e) for e in exercises],
                "updated_at": _now(),
            }).eq("id", workout_id),
        )
        if not rows:
            raise RecordNotFoundError(f"Treino {workout_id} não encontrado")
        return _row_to_saved_workout(rows[0])

    def delete_workout(self, workout_id: str) -> None:
        client = self._client()
        rows = self._run(
            "excluir treino",
            client.table(_WORKOUTS_TABLE).delete().eq("id", workout_id),
        )
        if not rows:
            raise RecordNotFoundError(f"Treino {workout_id} não encontrado")
        logger.info(f"Saved workout deleted: {workout_id}")
