"""HTTP tests for the ingestion, export, library and share endpoints."""

import io
from unittest.mock import MagicMock, patch

from openpyxl import Workbook

from workout_sheet_api.config import settings
from workout_sheet_api.models import LibraryExercise, SavedWorkout
from workout_sheet_api.services.library_service import (
    DuplicateExerciseError,
    LibraryError,
    LibraryUnavailableError,
    RecordNotFoundError,
)

LIBRARY = "workout_sheet_api.api.library_routes.LibraryService"


def _sheet_payload(sample_sheet):
    return {"sheet": sample_sheet.model_dump(mode="json"), "branding": {"studio_name": "Studio Fit"}}


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestIngestEndpoints:
    def test_ingest_text(self, client):
        resp = client.post("/ingest/text", json={"text": "TREINO B\nRosca direta\t\t3\t12"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["count"] == 1
        assert body["message"] is None
        assert body["exercises"][0]["category"] == "B"
        assert body["exercises"][0]["series"] == 3

    def test_ingest_text_empty_result(self, client):
        resp = client.post("/ingest/text", json={"text": "Exercício\tVídeo\tSéries"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is False
        assert body["count"] == 0
        assert body["message"] == "Nenhum exercício encontrado"

    def test_ingest_text_over_limit(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_IMPORT_LINES", 1)
        resp = client.post("/ingest/text", json={"text": "Supino\t4\nRemada\t3"})
        assert resp.status_code == 413

    def test_ingest_rows(self, client):
        resp = client.post("/ingest/rows", json={
            "rows": [["Agachamento", "", "4", "10-12", "90s", "cuidado com o joelho"]],
            "category": "C",
        })

        ex = resp.json()["exercises"][0]
        assert ex["category"] == "C"
        assert ex["repetitions"] == "10-12"
        assert ex["rest"] == "90s"
        assert ex["notes"] == "cuidado com o joelho"

    def test_ingest_xlsx_file(self, client):
        wb = Workbook()
        wb.active.title = "Treino B"
        wb.active.append(["Supino", None, 4, 12])
        buffer = io.BytesIO()
        wb.save(buffer)

        resp = client.post(
            "/ingest/file",
            files={"file": ("treino.xlsx", buffer.getvalue(), "application/octet-stream")},
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["sheet_names"] == ["Treino B"]
        assert body["exercises"][0]["category"] == "B"

    def test_ingest_unsupported_file(self, client):
        resp = client.post("/ingest/file", files={"file": ("treino.pdf", b"%PDF-1.4", "application/pdf")})
        assert resp.status_code == 415

    def test_ingest_file_too_large(self, client, monkeypatch):
        monkeypatch.setattr(settings, "MAX_UPLOAD_BYTES", 4)
        resp = client.post("/ingest/file", files={"file": ("treino.txt", b"Supino\t4\t12", "text/plain")})
        assert resp.status_code == 413

    def test_split_link(self, client):
        resp = client.post("/ingest/split-link", json={"text": "Supino https://youtu.be/xyz"})
        assert resp.json() == {"name": "Supino", "video_link": "https://youtu.be/xyz", "embed_url": None}

    def test_split_link_youtube_embed(self, client):
        resp = client.post("/ingest/split-link", json={"text": "Supino https://youtu.be/abcdefghijk"})
        assert resp.json()["embed_url"] == "https://www.youtube.com/embed/abcdefghijk"

    def test_tokenize(self, client):
        resp = client.post("/ingest/tokenize", json={"text": 'Supino\t"a\nb"\t4'})
        assert resp.json() == {"rows": [["Supino", "a b", "4"]]}


class TestExportEndpoints:
    def test_export_xlsx(self, client, sample_sheet):
        resp = client.post("/export/xlsx", json=_sheet_payload(sample_sheet))

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert 'filename="treino-masculino-intermediario-2-3x-semana.xlsx"' in resp.headers["content-disposition"]

    def test_export_pdf(self, client, sample_sheet):
        resp = client.post("/export/pdf", json=_sheet_payload(sample_sheet))

        assert resp.status_code == 200
        assert resp.content.startswith(b"%PDF")
        assert "ficha-treino-joao-da-silva-" in resp.headers["content-disposition"]

    def test_export_png(self, client, sample_sheet):
        resp = client.post("/export/png", json=_sheet_payload(sample_sheet))
        assert resp.status_code == 200
        assert resp.content.startswith(b"\x89PNG")

    def test_export_text(self, client, sample_sheet):
        resp = client.post("/export/text", json=_sheet_payload(sample_sheet))
        assert "TREINO A" in resp.json()["text"]

    def test_export_empty_sheet(self, client):
        resp = client.post("/export/pdf", json={"sheet": {"exercises": []}})
        assert resp.status_code == 422
        assert resp.json()["detail"] == "Nenhum exercício para exportar"


class TestLibraryEndpoints:
    def test_list_exercises(self, client):
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.list_exercises.return_value = [LibraryExercise(id="1", name="Supino")]
            resp = client.get("/library/exercises", params={"search": "sup"})

        assert resp.status_code == 200
        assert resp.json()[0]["name"] == "Supino"
        service_cls.return_value.list_exercises.assert_called_once_with("sup")

    def test_create_duplicate_exercise(self, client):
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.create_exercise.side_effect = DuplicateExerciseError("duplicado")
            resp = client.post("/library/exercises", json={"name": "Supino"})
        assert resp.status_code == 409

    def test_delete_exercise(self, client):
        with patch(LIBRARY) as service_cls:
            resp = client.delete("/library/exercises/1")
        assert resp.status_code == 204
        service_cls.return_value.delete_exercise.assert_called_once_with("1")

    def test_library_unavailable(self, client):
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.list_workouts.side_effect = LibraryUnavailableError("sem supabase")
            resp = client.get("/library/workouts")
        assert resp.status_code == 503

    def test_library_failure(self, client):
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.get_workout.side_effect = LibraryError("falha")
            resp = client.get("/library/workouts/w1")
        assert resp.status_code == 502

    def test_save_workout(self, client, sample_exercises):
        saved = SavedWorkout(id="w1", name="Hipertrofia", exercises=sample_exercises)
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.save_workout.return_value = saved
            resp = client.post("/library/workouts", json={
                "name": "Hipertrofia",
                "exercises": [e.model_dump() for e in sample_exercises],
            })

        assert resp.status_code == 201
        assert resp.json()["id"] == "w1"

    def test_patch_workout_rename_and_replace(self, client, sample_exercises):
        saved = SavedWorkout(id="w1", name="Novo", exercises=sample_exercises[:1])
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.rename_workout.return_value = saved
            service_cls.return_value.update_workout_exercises.return_value = saved
            resp = client.patch("/library/workouts/w1", json={
                "name": "Novo",
                "exercises": [sample_exercises[0].model_dump()],
            })

        assert resp.status_code == 200
        service_cls.return_value.rename_workout.assert_called_once_with("w1", "Novo")
        service_cls.return_value.update_workout_exercises.assert_called_once()

    def test_patch_workout_requires_changes(self, client):
        resp = client.patch("/library/workouts/w1", json={})
        assert resp.status_code == 422


class TestShareEndpoint:
    def test_create_share(self, client, sample_exercises, monkeypatch):
        monkeypatch.setattr(settings, "PUBLIC_BASE_URL", "https://app.example.com")
        saved = SavedWorkout(id="w1", name="Hipertrofia", exercises=sample_exercises)
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.get_workout.return_value = saved
            resp = client.post("/share", json={
                "name": "Ana",
                "email": "ana@example.com",
                "phone": "(11) 98765-4321",
                "workout_id": "w1",
            })

        assert resp.status_code == 201
        body = resp.json()
        assert body["share"]["public_link"].startswith("https://app.example.com/app/")
        assert body["share"]["public_link"].endswith("?workout=w1")
        assert body["whatsapp_url"].startswith("https://wa.me/11987654321?text=")

    def test_share_unknown_workout(self, client):
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.get_workout.side_effect = RecordNotFoundError("não encontrado")
            resp = client.post("/share", json={"name": "Ana", "email": "ana@example.com", "workout_id": "x"})
        assert resp.status_code == 404

    def test_share_invalid_email(self, client, sample_exercises):
        saved = SavedWorkout(id="w1", name="Hipertrofia", exercises=sample_exercises)
        with patch(LIBRARY) as service_cls:
            service_cls.return_value.get_workout.return_value = saved
            resp = client.post("/share", json={"name": "Ana", "email": "ana", "workout_id": "w1"})
        assert resp.status_code == 422
