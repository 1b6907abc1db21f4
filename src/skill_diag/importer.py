"""Bulk import of questions from CSV, JSON or YAML files."""
import csv
import io
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from skill_diag.errors import QuestionValidationError
from skill_diag.questions import add_question, validate_question

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = [
    "category", "topic", "question", "option_a", "option_b",
    "option_c", "option_d", "correct_answer", "difficulty",
]

CSV_TEMPLATE = """category,topic,question,option_a,option_b,option_c,option_d,correct_answer,difficulty
Quantitative,Arithmetic,What is 15 + 27?,32,42,52,62,42,easy
Logical,Reasoning,If all cats are animals and all animals are living beings then all cats are?,Living beings,Plants,Non-living,None of these,Living beings,medium
Technical,Java Basics,Which keyword is used to define a class in Java?,class,Class,define,struct,class,easy
Verbal,Vocabulary,What is the synonym of 'Eloquent'?,Articulate,Silent,Confused,Angry,Articulate,medium
"""


@dataclass
class ImportReport:
    filename: str
    imported: int = 0
    skipped: list[tuple[int, list[str]]] = field(default_factory=list)


def write_template(path: str) -> None:
    Path(path).write_text(CSV_TEMPLATE, encoding="utf-8")


def parse_csv(text: str) -> list[tuple[int, dict]]:
    """Parse CSV text into ``(line_number, record)`` pairs.

    Raises:
        QuestionValidationError: the header lacks a required column.
    """
    reader = csv.reader(io.StringIO(text))
    rows = [(reader.line_num, row) for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        raise QuestionValidationError(["CSV file must contain a header row and at least one data row"])
    _, header = rows[0]
    header = [h.strip().lower() for h in header]
    missing = [c for c in REQUIRED_COLUMNS if c not in header]
    if missing:
        raise QuestionValidationError([f"Missing required columns: {', '.join(missing)}"])

    records = []
    for line_num, values in rows[1:]:
        if len(values) != len(header):
            records.append((line_num, None))
            continue
        row = {h: v.strip() for h, v in zip(header, values)}
        records.append((line_num, {
            "category": row["category"],
            "topic": row["topic"],
            "question": row["question"],
            "options": [row["option_a"], row["option_b"], row["option_c"], row["option_d"]],
            "correct_answer": row["correct_answer"],
            "difficulty": row["difficulty"].lower() or "medium",
        }))
    return records


def parse_structured(data) -> list[tuple[int, dict]]:
    if isinstance(data, dict):
        data = data.get("questions", [])
    if not isinstance(data, list):
        raise QuestionValidationError(["Expected a list of questions"])
    return [(i, item if isinstance(item, dict) else None) for i, item in enumerate(data, 1)]


def read_questions(file_path: str) -> list[tuple[int, dict]]:
    path = Path(file_path)
    suffix = path.suffix.lower()
    text = path.read_text(encoding="utf-8")

    if suffix == ".json":
        return parse_structured(json.loads(text))
    elif suffix in (".yaml", ".yml"):
        return parse_structured(yaml.safe_load(text))
    return parse_csv(text)


def _text(value) -> str:
    """Scalars from JSON or YAML may be numbers or booleans; compare them as text."""
    return "" if value is None else str(value)


def import_questions(db_path: str, file_path: str) -> ImportReport:
    """Validate every record in a file and insert the valid ones."""
    report = ImportReport(filename=Path(file_path).name)
    for position, record in read_questions(file_path):
        if record is None:
            report.skipped.append((position, ["Malformed row"]))
            continue
        raw_options = record.get("options")
        options = [_text(o) for o in raw_options] if isinstance(raw_options, list) else []
        fields = (
            _text(record.get("category")),
            _text(record.get("topic")),
            _text(record.get("question")),
            options,
            _text(record.get("correct_answer")),
            _text(record.get("difficulty")) or "medium",
        )
        errors = validate_question(*fields)
        if errors:
            report.skipped.append((position, errors))
            continue
        add_question(db_path, *fields)
        report.imported += 1
    logger.info(
        "Imported %d question(s) from %s, skipped %d",
        report.imported, report.filename, len(report.skipped),
    )
    return report
