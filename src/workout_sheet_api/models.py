"""Data models for workout sheets."""
import uuid
from collections import OrderedDict
from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from workout_sheet_api.config import settings

Category = Literal['A', 'B', 'C', 'D', 'E']
Gender = Literal['masculino', 'feminino']
Level = Literal['iniciante', 'intermediario', 'avancado']


def new_exercise_id() -> str:
    """Generate an opaque, never reused exercise identifier."""
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Exercise(BaseModel):
    """One row of a workout sheet."""
    id: str = Field(default_factory=new_exercise_id)
    name: str = Field(..., min_length=1)
    series: int = Field(default=1, ge=1)
    repetitions: str = "10"
    rest: str = ""
    video_link: str = ""
    notes: str = ""
    category: Category = 'A'

    class Config:
        frozen = True
        extra = "ignore"


class WorkoutSheet(BaseModel):
    """A workout sheet: exercises grouped into categories A-E plus student data."""
    title: str = "Ficha de Treino"
    student_name: Optional[str] = None
    gender: Gender = 'masculino'
    weekly_frequency: int = Field(default=3, ge=1, le=7)
    level: Level = 'iniciante'
    sub_level: int = Field(default=1, ge=1, le=3)
    level_complement: str = ""
    objective: str = ""
    header_text: str = "FICHA DE TREINO"
    exercises: List[Exercise] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    last_modified: datetime = Field(default_factory=_utcnow)

    class Config:
        extra = "ignore"

    def categories(self) -> List[str]:
        """Sorted distinct categories that have at least one exercise."""
        return sorted({exercise.category for exercise in self.exercises})

    def exercises_by_category(self) -> Dict[str, List[Exercise]]:
        """Group exercises by category, keeping insertion order inside each group."""
        grouped: Dict[str, List[Exercise]] = OrderedDict()
        for category in self.categories():
            grouped[category] = []
        for exercise in self.exercises:
            grouped[exercise.category].append(exercise)
        return grouped


class BrandingConfig(BaseModel):
    """Studio branding printed on exported sheets."""
    studio_name: str = Field(default_factory=lambda: settings.STUDIO_NAME)
    logo: Optional[str] = None  # data URL or bare base64 image


# ---------------------------------------------------------------------------
# Library records
# ---------------------------------------------------------------------------


class LibraryExercise(BaseModel):
    """Row of the `exercises` table."""
    id: str
    name: str
    video_url: Optional[str] = None
    muscle_group: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"


class SavedWorkout(BaseModel):
    """Row of the `ready_workouts` table."""
    id: str
    name: str
    gender: Gender = 'masculino'
    weekly_frequency: int = 3
    level: Level = 'iniciante'
    sub_level: int = 1
    level_complement: str = ""
    student_name: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"

    @property
    def categories(self) -> List[str]:
        return sorted({exercise.category for exercise in self.exercises})

    def to_sheet(self, student_name: Optional[str] = None) -> WorkoutSheet:
        """Build an exportable sheet from this saved workout."""
        return WorkoutSheet(
            title=self.name,
            student_name=student_name or self.student_name,
            gender=self.gender,
            weekly_frequency=self.weekly_frequency,
            level=self.level,
            sub_level=self.sub_level,
            level_complement=self.level_complement,
            exercises=self.exercises,
        )


class ShareLink(BaseModel):
    """A student's public link to a saved workout."""
    id: str
    name: str
    email: str
    phone: str = ""
    workout_id: str
    workout_name: str
    public_link: str
    created_at: datetime = Field(default_factory=_utcnow)
