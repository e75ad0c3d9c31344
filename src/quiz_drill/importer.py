"""Import question sets from spreadsheets and structured files."""
import csv
import json
import logging
from pathlib import Path
from zipfile import BadZipFile

from quiz_drill.db import save_state
from quiz_drill.models import (
    DEFAULT_EXPLANATION, ParseError, Question, QuestionType, ValidationError,
)
from quiz_drill.store import QuestionStore, validate_question

logger = logging.getLogger(__name__)

# Column order: type, prompt, option A-D, answer, explanation
TYPE_COL, PROMPT_COL, FIRST_OPTION_COL, ANSWER_COL, EXPLANATION_COL = 0, 1, 2, 6, 7

BLANK_MARKERS = ("填空", "blank", "fill")
MULTIPLE_MARKERS = ("多选", "multiple", "multi")


def cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def detect_type(text: str) -> str:
    text = text.lower()
    if any(marker in text for marker in BLANK_MARKERS):
        return QuestionType.BLANK
    if any(marker in text for marker in MULTIPLE_MARKERS):
        return QuestionType.MULTIPLE
    return QuestionType.SINGLE


def read_rows(file_path: str) -> list[list[str]]:
    """Read the data rows (header excluded) of a spreadsheet as text cells."""
    path = Path(file_path)
    suffix = path.suffix.lower()
    try:
        if suffix in (".xlsx", ".xlsm"):
            from openpyxl import load_workbook
            from openpyxl.utils.exceptions import InvalidFileException
            try:
                wb = load_workbook(file_path, read_only=True, data_only=True)
            except (InvalidFileException, BadZipFile, KeyError) as e:
                raise ParseError(f"{path.name} is not a readable workbook: {e}") from e
            try:
                raw = [list(row) for row in wb.active.iter_rows(values_only=True)]
            finally:
                wb.close()
        elif suffix == ".csv":
            with open(file_path, newline="", encoding="utf-8-sig") as f:
                raw = list(csv.reader(f))
        else:
            raise ParseError(f"unsupported spreadsheet format: {suffix or path.name}")
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"could not read {path.name}: {e}") from e
    return [[cell_text(c) for c in row] for row in raw[1:]]


def row_to_question(row: list[str], question_id: str) -> Question | None:
    """Build a question from one row, or None for a (nearly) empty row."""
    if sum(1 for c in row if c) < 2:
        return None
    row = row + [""] * (EXPLANATION_COL + 1 - len(row))
    q_type = detect_type(row[TYPE_COL])
    options = row[FIRST_OPTION_COL:ANSWER_COL]
    while options and not options[-1]:
        options.pop()
    if q_type == QuestionType.BLANK:
        options = []
    question = Question(
        id=question_id,
        type=q_type,
        prompt=row[PROMPT_COL],
        answer=row[ANSWER_COL],
        options=options,
        explanation=row[EXPLANATION_COL] or DEFAULT_EXPLANATION,
    )
    validate_question(question)
    return question


def parse_rows(rows: list[list[str]]) -> tuple[list[Question], int]:
    """Turn spreadsheet rows into questions. Returns (questions, skipped_count)."""
    questions = []
    skipped = 0
    for line_no, row in enumerate(rows, start=2):
        try:
            question = row_to_question(row, f"q{len(questions) + 1:04d}")
        except ValidationError as e:
            logger.warning("Skipping row %d: %s", line_no, e)
            skipped += 1
            continue
        if question is not None:
            questions.append(question)
    return questions, skipped


def read_records(file_path: str) -> list[dict]:
    """Read a JSON or YAML list of question records."""
    path = Path(file_path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"could not read {path.name}: {e}") from e
    if path.suffix.lower() == ".json":
        try:
            data = json.loads(text)
        except ValueError as e:
            raise ParseError(f"could not parse {path.name}: {e}") from e
    else:
        import yaml
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ParseError(f"could not parse {path.name}: {e}") from e
    if isinstance(data, dict):
        data = data.get("questions")
    if not isinstance(data, list):
        raise ParseError(f"{path.name} does not contain a list of questions")
    return data


def parse_records(records: list) -> tuple[list[Question], int]:
    questions = []
    skipped = 0
    seen = set()
    for i, record in enumerate(records, start=1):
        if not isinstance(record, dict):
            skipped += 1
            continue
        try:
            question = Question.from_dict(record)
        except (TypeError, ValueError, ValidationError) as e:
            logger.warning("Skipping record %d: %s", i, e)
            skipped += 1
            continue
        if not question.id:
            question.id = f"q{len(questions) + 1:04d}"
        if question.type not in QuestionType.ALL:
            question.type = detect_type(str(question.type))
        question.mastery_level = 0
        try:
            validate_question(question)
            if question.id in seen:
                raise ValidationError(f"duplicate question id: {question.id}")
        except ValidationError as e:
            logger.warning("Skipping record %d: %s", i, e)
            skipped += 1
            continue
        seen.add(question.id)
        questions.append(question)
    return questions, skipped


def load_questions(file_path: str) -> tuple[list[Question], int]:
    suffix = Path(file_path).suffix.lower()
    if suffix in (".json", ".yaml", ".yml"):
        return parse_records(read_records(file_path))
    return parse_rows(read_rows(file_path))


def import_file(db_path: str, store: QuestionStore, file_path: str) -> dict:
    """Replace the store's questions with those in file_path and save.

    Raises ParseError without touching the store if the file can't be read
    or holds no valid questions.
    """
    questions, skipped = load_questions(file_path)
    if not questions:
        raise ParseError(f"no valid questions found in {Path(file_path).name}")
    store.replace_all(questions)
    save_state(db_path, store)
    logger.info("Imported %d questions from %s (%d skipped)", len(questions), file_path, skipped)
    return {"filename": Path(file_path).name, "imported": len(questions), "skipped": skipped}
