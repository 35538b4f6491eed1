"""Student share links and WhatsApp messages for saved workouts."""
import logging
import re
import uuid
from typing import Optional
from urllib.parse import quote

from workout_sheet_api.config import settings
from workout_sheet_api.models import SavedWorkout, ShareLink

logger = logging.getLogger(__name__)

_NON_DIGITS = re.compile(r'\D')
_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

WHATSAPP_MESSAGE = "Olá {name}! Seu treino personalizado está pronto. Acesse: {link}"


class ShareError(ValueError):
    """Raised when a share link cannot be created from the given data."""


def build_public_link(student_id: str, workout_id: str, base_url: Optional[str] = None) -> str:
    """<base_url>/app/<student_id>?workout=<workout_id>"""
    base = (base_url or settings.PUBLIC_BASE_URL).rstrip("/")
    return f"{base}/app/{quote(str(student_id), safe='')}?workout={quote(str(workout_id), safe='')}"


def whatsapp_url(share: ShareLink) -> str:
    """wa.me deep link with the ready-made greeting for the student."""
    digits = _NON_DIGITS.sub("", share.phone or "")
    message = WHATSAPP_MESSAGE.format(name=share.name, link=share.public_link)
    encoded = quote(message, safe="!'()*")
    return f"https://wa.me/{digits}?text={encoded}"


class ShareService:
    """Creates per-student links to saved workouts."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url or settings.PUBLIC_BASE_URL

    def create_share(self, name: str, email: str, phone: str, workout: SavedWorkout) -> ShareLink:
        name = (name or "").strip()
        email = (email or "").strip()
        if not name or not email:
            raise ShareError("Nome e email do aluno são obrigatórios")
        if not _EMAIL_PATTERN.match(email):
            raise ShareError(f"Email inválido: {email}")
        if workout is None:
            raise ShareError("Selecione um treino para o aluno")

        student_id = uuid.uuid4().hex
        share = ShareLink(
            id=student_id,
            name=name,
            email=email,
            phone=(phone or "").strip(),
            workout_id=workout.id,
            workout_name=workout.name,
            public_link=build_public_link(student_id, workout.id, self.base_url),
        )
        logger.info(f"Share link created for workout {workout.id}")
        return share
