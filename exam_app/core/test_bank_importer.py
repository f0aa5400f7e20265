"""Utilities for importing tests from a human-friendly text file.

A bank holds one or more tests. Each test starts with a header block followed
by its question blocks; blocks are separated by blank lines or '---'.

    TEST: python-basics
    NAME: Python Basics
    TIMELIMIT: 30          (minutes)
    PASSMARKS: 6
    MAXATTEMPTS: 3         (optional, omit for unlimited)
    NEGATIVE: 25           (optional, percent of a question's marks lost when wrong)
    DESCRIPTION: One line shown before starting (optional)

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    C: Third option text   (options C and D are optional)
    D: Fourth option text
    CORRECT: A|B|C|D
    MARKS: 2               (optional, default 1)
    NEGMARKS: 0.5          (optional, overrides the test's NEGATIVE percent)

The answer key stays in the bank; only the practice backend reads it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from exam_app.core.models import TestDefinition


class TestBankImportError(Exception):
    """Raised when a test bank cannot be parsed."""

    __test__ = False


@dataclass(slots=True)
class BankQuestion:
    text: str
    options: list[str]
    correct_index: int
    marks: float = 1.0
    negative_marks: float = 0.0


@dataclass(slots=True)
class BankTest:
    """One test of the bank, answer key included."""

    test_id: str
    name: str
    time_limit_minutes: int
    passing_marks: float
    max_attempts: int | None = None
    negative_mark_percentage: float = 0.0
    description: str = ""
    questions: list[BankQuestion] = field(default_factory=list)

    @property
    def total_marks(self) -> float:
        return sum(question.marks for question in self.questions)

    def to_definition(self) -> TestDefinition:
        return TestDefinition(
            id=self.test_id,
            name=self.name,
            time_limit_minutes=self.time_limit_minutes,
            total_marks=self.total_marks,
            passing_marks=self.passing_marks,
            max_attempts=self.max_attempts,
            negative_marking=self.negative_mark_percentage > 0,
            negative_mark_percentage=self.negative_mark_percentage,
            question_count=len(self.questions),
            description=self.description,
        )


@dataclass(slots=True)
class ImportedBank:
    source_path: Path
    tests: list[BankTest]


_OPTION_ORDER = ["A", "B", "C", "D"]
_MIN_OPTIONS = 2
_HEADER_KEYS = {"TEST", "NAME", "TIMELIMIT", "PASSMARKS", "MAXATTEMPTS", "NEGATIVE", "DESCRIPTION"}


def load_bank_from_file(file_path: Path) -> ImportedBank:
    text = file_path.read_text(encoding="utf-8")
    tests = parse_bank_text(text)
    if not tests:
        raise TestBankImportError("Test bank did not contain any tests.")
    return ImportedBank(source_path=file_path, tests=tests)


def parse_bank_text(text: str) -> list[BankTest]:
    tests: list[BankTest] = []
    current: BankTest | None = None
    for block in _split_blocks(text):
        if block.upper().startswith("TEST:"):
            current = _parse_header(block)
            if any(existing.test_id == current.test_id for existing in tests):
                raise TestBankImportError(f"Duplicate test id '{current.test_id}'.")
            tests.append(current)
            continue
        if current is None:
            raise TestBankImportError("Question found before any TEST: header.")
        current.questions.append(_parse_question(block, current.negative_mark_percentage))

    for test in tests:
        if not test.questions:
            raise TestBankImportError(f"Test '{test.test_id}' has no questions.")
        if test.passing_marks > test.total_marks:
            raise TestBankImportError(
                f"PASSMARKS of '{test.test_id}' exceeds its total marks ({test.total_marks:g})."
            )
    return tests


def _split_blocks(text: str) -> list[str]:
    blocks: list[str] = []
    current_block: list[str] = []
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---" or not stripped:
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            continue
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return blocks


def _parse_header(block: str) -> BankTest:
    values: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, sep, value = line.partition(":")
        key = key.strip().upper()
        if not sep or key not in _HEADER_KEYS:
            raise TestBankImportError(f"Unknown line in test header: '{line}'.")
        values[key] = value.strip()

    test_id = values.get("TEST", "")
    if not test_id:
        raise TestBankImportError("TEST must name a test id.")
    if "TIMELIMIT" not in values:
        raise TestBankImportError(f"Test '{test_id}' is missing TIMELIMIT.")
    time_limit = _parse_number(values["TIMELIMIT"], "TIMELIMIT", int)
    if time_limit <= 0:
        raise TestBankImportError("TIMELIMIT must be a positive number of minutes.")
    passing = _parse_number(values.get("PASSMARKS", "0"), "PASSMARKS", float)
    max_attempts = None
    if values.get("MAXATTEMPTS"):
        max_attempts = _parse_number(values["MAXATTEMPTS"], "MAXATTEMPTS", int)
        if max_attempts <= 0:
            raise TestBankImportError("MAXATTEMPTS must be a positive integer.")
    negative = _parse_number(values.get("NEGATIVE", "0"), "NEGATIVE", float)
    if not 0 <= negative <= 100:
        raise TestBankImportError("NEGATIVE must be a percentage between 0 and 100.")

    return BankTest(
        test_id=test_id,
        name=values.get("NAME") or test_id,
        time_limit_minutes=time_limit,
        passing_marks=passing,
        max_attempts=max_attempts,
        negative_mark_percentage=negative,
        description=values.get("DESCRIPTION", ""),
    )


def _parse_question(block: str, negative_percentage: float) -> BankQuestion:
    question_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    marks = 1.0
    negative_marks: float | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("MARKS:"):
            marks = _parse_number(line.split(":", 1)[1].strip(), "MARKS", float)
            if marks <= 0:
                raise TestBankImportError("MARKS must be positive.")
            current_section = None
            continue

        if upper.startswith("NEGMARKS:"):
            negative_marks = _parse_number(line.split(":", 1)[1].strip(), "NEGMARKS", float)
            if negative_marks < 0:
                raise TestBankImportError("NEGMARKS cannot be negative.")
            current_section = None
            continue

        if len(line) > 2 and line[0].upper() in _OPTION_ORDER and line[1] == ":":
            letter = line[0].upper()
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section in _OPTION_ORDER:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise TestBankImportError(f"Encountered text outside of a known section: '{line}'.")

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise TestBankImportError("Question text missing (Q: ...)")

    letters = _OPTION_ORDER[: len(options)]
    if len(options) < _MIN_OPTIONS or sorted(options) != letters:
        raise TestBankImportError("Each question needs two to four options, lettered from A without gaps.")
    option_list = [options[letter].strip() for letter in letters]
    if any(not option for option in option_list):
        raise TestBankImportError("Option text cannot be empty.")

    if correct_letter is None:
        raise TestBankImportError(f"Question '{question_text[:40]}' has no CORRECT answer.")
    if correct_letter not in letters:
        raise TestBankImportError(f"CORRECT must be one of {', '.join(letters)}.")

    if negative_marks is None:
        negative_marks = round(marks * negative_percentage / 100, 4)

    return BankQuestion(
        text=question_text,
        options=option_list,
        correct_index=letters.index(correct_letter),
        marks=marks,
        negative_marks=negative_marks,
    )


def _parse_number(raw_value: str, label: str, kind: type):
    try:
        return kind(raw_value)
    except ValueError as exc:
        raise TestBankImportError(f"{label} must be a number, got '{raw_value}'.") from exc
