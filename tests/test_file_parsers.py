"""Tests for the uploaded-file parsers (text, CSV, Excel)."""

import asyncio
import io
from unittest.mock import patch

import pytest
from openpyxl import Workbook, load_workbook

from workout_sheet_api.config import settings
from workout_sheet_api.parsers.base import ImportLimitError

from workout_sheet_api.parsers.csv_parser import CSVParser
from workout_sheet_api.parsers.excel_parser import ExcelParser
from workout_sheet_api.parsers.models import FileInfo
from workout_sheet_api.parsers.text_parser import TextParser


def _file_info(filename: str, content: bytes) -> FileInfo:
    return FileInfo(filename=filename, extension="." + filename.rsplit(".", 1)[-1], size_bytes=len(content))


def _workbook_bytes(sheets) -> bytes:
    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets:
        ws = wb.create_sheet(title=title)
        for row in rows:
            ws.append(row)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class TestTextParser:
    def test_can_parse(self):
        parser = TextParser()
        assert parser.can_parse(FileInfo(filename="a.txt", extension=".txt"))
        assert not parser.can_parse(FileInfo(filename="a.csv", extension=".csv"))

    def test_parse_with_markers(self):
        content = "TREINO A\nSupino\t4\t12\nTREINO B\nAgachamento\t4\t10\t90s\n".encode("utf-8")
        result = asyncio.run(TextParser().parse(content, _file_info("treino.txt", content)))

        assert result.success
        assert result.detected_format == "text"
        assert [(e.name, e.category) for e in result.exercises] == [("Supino", "A"), ("Agachamento", "B")]

    def test_latin1_content(self):
        content = "Elevação lateral\t3\t15\n".encode("latin-1")
        result = asyncio.run(TextParser().parse(content, _file_info("treino.txt", content)))
        assert result.exercises[0].name == "Elevação lateral"

    def test_wide_gaps_split(self):
        content = b"Supino reto    4    12    60s\n"
        result = asyncio.run(TextParser().parse(content, _file_info("treino.txt", content)))
        assert result.exercises[0].series == 4
        assert result.exercises[0].rest == "60s"

    def test_empty_file_reports_warning(self):
        result = asyncio.run(TextParser().parse(b"\n\n", _file_info("vazio.txt", b"\n\n")))
        assert not result.success
        assert "Nenhum exercício encontrado" in result.warnings


class TestCSVParser:
    def test_semicolon_export_with_header(self):
        content = (
            "#;Exercício;Link do Vídeo;Série;Repetição;Pausa;Observação\n"
            "1;Supino;https://youtu.be/abc;4;10-12;60s;controlar\n"
            "2;Crucifixo;;3;12;;\n"
        ).encode("utf-8")
        result = asyncio.run(CSVParser().parse(content, _file_info("treino.csv", content)))

        assert result.success
        assert result.detected_format == "csv"
        supino, crucifixo = result.exercises
        assert supino.name == "Supino"
        assert supino.video_link == "https://youtu.be/abc"
        assert supino.series == 4
        assert supino.repetitions == "10-12"
        assert supino.rest == "60s"
        assert supino.notes == "controlar"
        assert crucifixo.series == 3
        assert crucifixo.repetitions == "12"

    def test_header_columns_in_any_order(self):
        content = (
            "Repetições,Exercício,Séries,Descanso\n"
            "12,Remada curvada,4,60s\n"
        ).encode("utf-8")
        result = asyncio.run(CSVParser().parse(content, _file_info("treino.csv", content)))

        ex = result.exercises[0]
        assert ex.name == "Remada curvada"
        assert ex.series == 4
        assert ex.repetitions == "12"
        assert ex.rest == "60s"

    def test_without_header_uses_canonical_order(self):
        content = b"Supino,,4,12,60s\n"
        result = asyncio.run(CSVParser().parse(content, _file_info("treino.csv", content)))
        assert result.exercises[0].series == 4
        assert any("Cabeçalho" in w for w in result.warnings)

    def test_marker_rows_switch_category(self):
        content = (
            "Exercício,Série,Repetição\n"
            "TREINO B,,\n"
            "Rosca direta,3,12\n"
        ).encode("utf-8")
        result = asyncio.run(CSVParser().parse(content, _file_info("treino.csv", content)))
        assert [(e.name, e.category) for e in result.exercises] == [("Rosca direta", "B")]

    def test_quoted_multiline_cell(self):
        content = 'Supino,,4,12,60s,"descer devagar\nsubir rápido"\n'.encode("utf-8")
        result = asyncio.run(CSVParser().parse(content, _file_info("treino.csv", content)))
        assert result.exercises[0].notes == "descer devagar subir rápido"

    def test_empty_file(self):
        result = asyncio.run(CSVParser().parse(b"", _file_info("vazio.csv", b"")))
        assert not result.success
        assert result.errors


class TestExcelParser:
    def test_sheet_titles_pick_categories(self):
        content = _workbook_bytes([
            ("Treino A", [
                ["#", "Exercício", "Link do Vídeo", "Série", "Repetição", "Pausa", "Observação"],
                [1, "Supino", "https://youtu.be/abc", 4, "10-12", "60s", "controlar"],
            ]),
            ("Treino C", [
                ["#", "Exercício", "Link do Vídeo", "Série", "Repetição", "Pausa", "Observação"],
                [1, "Agachamento", None, 4, 10, "90s", None],
            ]),
        ])
        result = asyncio.run(ExcelParser().parse(content, _file_info("treino.xlsx", content)))

        assert result.success
        assert result.detected_format == "excel_multi_sheet"
        assert result.sheet_names == ["Treino A", "Treino C"]
        supino, agachamento = result.exercises
        assert (supino.category, supino.series, supino.repetitions) == ("A", 4, "10-12")
        assert supino.video_link == "https://youtu.be/abc"
        assert (agachamento.category, agachamento.repetitions, agachamento.rest) == ("C", "10", "90s")

    def test_untitled_sheets_follow_sheet_order(self):
        content = _workbook_bytes([
            ("Peito", [["Supino", None, 4, 12]]),
            ("Costas", [["Remada", None, 3, 10]]),
        ])
        result = asyncio.run(ExcelParser().parse(content, _file_info("treino.xlsx", content)))
        assert [e.category for e in result.exercises] == ["A", "B"]

    def test_marker_rows_inside_sheet(self):
        content = _workbook_bytes([
            ("Planilha1", [
                ["TREINO A"],
                ["Supino", None, 4, 12],
                ["TREINO B"],
                ["Agachamento", None, 4, 10],
            ]),
        ])
        result = asyncio.run(ExcelParser().parse(content, _file_info("treino.xlsx", content)))
        assert result.detected_format == "excel_single_sheet"
        assert [(e.name, e.category) for e in result.exercises] == [("Supino", "A"), ("Agachamento", "B")]

    def test_hyperlinked_label_contributes_target(self):
        wb = Workbook()
        ws = wb.active
        ws.title = "Treino A"
        ws.append(["Exercício", "Vídeo", "Série", "Repetição"])
        ws.append(["Supino", "Ver Vídeo", 4, 12])
        ws.cell(row=2, column=2).hyperlink = "https://youtu.be/abc"
        buffer = io.BytesIO()
        wb.save(buffer)
        content = buffer.getvalue()

        result = asyncio.run(ExcelParser().parse(content, _file_info("treino.xlsx", content)))
        assert result.exercises[0].video_link == "https://youtu.be/abc"
        assert result.exercises[0].notes == ""

    def test_round_trip_of_exported_workbook(self, sample_sheet):
        from workout_sheet_api.services.export_service import ExportService

        content = ExportService().render_xlsx(sample_sheet)
        result = asyncio.run(ExcelParser().parse(content, _file_info("export.xlsx", content)))

        assert [(e.name, e.category) for e in result.exercises] == [
            (e.name, e.category) for e in sample_sheet.exercises
        ]
        assert result.exercises[0].video_link == "https://youtu.be/abcdefghijk"
        assert result.exercises[0].notes == "controlar a descida"

    def test_corrupt_file(self):
        result = asyncio.run(ExcelParser().parse(b"not a zip", _file_info("treino.xlsx", b"not a zip")))
        assert not result.success
        assert result.errors

    def test_exported_workbook_is_readable_by_openpyxl(self, sample_sheet):
        from workout_sheet_api.services.export_service import ExportService

        wb = load_workbook(io.BytesIO(ExportService().render_xlsx(sample_sheet)))
        assert wb.sheetnames == ["Treino A", "Treino B"]


class TestRowLimit:
    def test_text_rows_checked_before_normalizing(self):
        content = b"A\t1\nB\t2\nC\t3\n"
        with patch("workout_sheet_api.parsers.text_parser.normalize_rows") as mock_normalize:
            with pytest.raises(ImportLimitError):
                asyncio.run(TextParser(max_rows=2).parse(content, _file_info("treino.txt", content)))
        mock_normalize.assert_not_called()

    def test_csv_stops_reading_past_the_limit(self):
        content = "".join(f"Exercicio {i},,3,12\n" for i in range(50)).encode("utf-8")
        with patch("workout_sheet_api.parsers.csv_parser.normalize_rows") as mock_normalize:
            with pytest.raises(ImportLimitError):
                asyncio.run(CSVParser(max_rows=10).parse(content, _file_info("treino.csv", content)))
        mock_normalize.assert_not_called()

    def test_excel_limit_counts_rows_across_sheets(self, monkeypatch):
        monkeypatch.setattr(settings, "MAX_IMPORT_LINES", 3)
        content = _workbook_bytes([
            ("Treino A", [["Supino", None, 4, 12], ["Remada", None, 3, 10]]),
            ("Treino B", [["Agachamento", None, 4, 8], ["Leg press", None, 4, 12]]),
        ])
        with patch("workout_sheet_api.parsers.excel_parser.normalize_rows", return_value=[]) as mock_normalize:
            with pytest.raises(ImportLimitError):
                asyncio.run(ExcelParser().parse(content, _file_info("treino.xlsx", content)))
        assert mock_normalize.call_count == 1

    def test_rows_within_limit_are_parsed(self):
        content = b"A\t1\nB\t2\n"
        result = asyncio.run(TextParser(max_rows=2).parse(content, _file_info("treino.txt", content)))
        assert result.count == 2
