"""
Record Validator

This module turns a raw, loosely-shaped topic record (as found in the
educational corpus) into a normalized ``ValidatedTopic``, or rejects it with
a ``ValidationError`` that enumerates every violated rule.

Rule categories are checked in order. Checking stops after the first
category that reports a violation, but every violation within that category
is collected:

1. required    -- mandatory fields present, value types well-formed
2. identifier  -- topic id is lowercase and hyphen-separated
3. children    -- code examples, Q&As, resources and practice problems
                  carry their content
4. urls        -- resource and practice problem links parse as absolute URIs
5. uniqueness  -- optional child sub-ids are unique per collection

The validator is a pure function with no side effects.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

from pydantic import AnyUrl, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError, Violation
from .models import (
    CodeExample,
    PracticeGroup,
    PracticeProblem,
    QuestionAnswer,
    Resource,
    ValidatedTopic,
)


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

TOPIC_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

_URL = TypeAdapter(AnyUrl)
_WORD_CHAR = re.compile(r"[^\W_]")

# record key -> ValidatedTopic attribute
TEXT_FIELDS: Dict[str, str] = {
    "subtitle": "subtitle",
    "summary": "summary",
    "analogy": "analogy",
    "explanation": "explanation",
    "visualConcept": "visual_concept",
    "realWorldUse": "real_world_use",
    "diagram": "diagram",
    "category": "category",
}

STRING_LIST_FIELDS: Dict[str, str] = {
    "keyPoints": "key_points",
    "tags": "tags",
}

CODE_FIELDS = ("codeExamples",)
QA_FIELDS = ("questions", "behavioralQuestions")
LINK_FIELDS = ("resources", "discussions")
CHILD_FIELDS = CODE_FIELDS + QA_FIELDS + LINK_FIELDS
PRACTICE_FIELD = "practiceProblems"
_PRACTICE_KEYS = ("name", "link", "difficulty", "platform", "description")

_CHILD_TEXT_KEYS: Dict[str, Sequence[str]] = {
    "codeExamples": ("id", "title", "description", "language", "code", "content"),
    "questions": ("id", "question", "answer"),
    "behavioralQuestions": ("id", "question", "answer"),
    "resources": ("id", "title", "url", "description", "type"),
    "discussions": ("id", "title", "url", "description", "type"),
}


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _get(record: Mapping[str, Any], key: str) -> Any:
    """Read a key by its camelCase name, falling back to snake_case."""
    if key in record:
        return record[key]
    return record.get(_snake(key))


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_facet(value: Any) -> str:
    """Lower-case and trim a facet value; non-strings normalize to ``""``."""
    return value.strip().lower() if isinstance(value, str) else ""


def _children(record: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    items = _get(record, key)
    if not isinstance(items, (list, tuple)):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def _practice(record: Mapping[str, Any]) -> List[Tuple[str, Mapping[str, Any]]]:
    """Flatten practice groups into ``(path, problem)`` pairs."""
    flat = []
    for g, group in enumerate(_children(record, PRACTICE_FIELD)):
        for p, problem in enumerate(_children(group, "problems")):
            flat.append((f"{PRACTICE_FIELD}[{g}].problems[{p}]", problem))
    return flat


def _code_body(example: Mapping[str, Any]) -> Any:
    code = example.get("code")
    if _blank(code):
        return example.get("content")
    return code


# ---------------------------------------------------------------------
# Rule Categories
# ---------------------------------------------------------------------

def _check_required(record: Mapping[str, Any]) -> List[Violation]:
    violations: List[Violation] = []

    for key in ("id", "title"):
        value = record.get(key)
        if value is None:
            violations.append(Violation(key, "required.missing", "field is required"))
        elif _blank(value):
            violations.append(
                Violation(key, "required.empty", "must be a non-empty string")
            )
        elif key == "title" and not _WORD_CHAR.search(value):
            violations.append(
                Violation(key, "required.title_tokens", "must contain a letter or digit")
            )

    for key in TEXT_FIELDS:
        value = _get(record, key)
        if value is not None and not isinstance(value, str):
            violations.append(Violation(key, "required.type", "must be a string"))

    for key in STRING_LIST_FIELDS:
        value = _get(record, key)
        if value is None:
            continue
        if not isinstance(value, (list, tuple)):
            violations.append(Violation(key, "required.type", "must be a list"))
            continue
        for i, item in enumerate(value):
            if not isinstance(item, str):
                violations.append(
                    Violation(f"{key}[{i}]", "required.type", "must be a string")
                )

    for key in CHILD_FIELDS:
        value = _get(record, key)
        if value is None:
            continue
        if not isinstance(value, (list, tuple)):
            violations.append(Violation(key, "required.type", "must be a list"))
            continue
        for i, item in enumerate(value):
            path = f"{key}[{i}]"
            if not isinstance(item, Mapping):
                violations.append(
                    Violation(path, "required.type", "must be an object")
                )
                continue
            for child_key in _CHILD_TEXT_KEYS[key]:
                child_value = item.get(child_key)
                if child_value is not None and not isinstance(child_value, str):
                    violations.append(
                        Violation(
                            f"{path}.{child_key}",
                            "required.type",
                            "must be a string",
                        )
                    )

    violations.extend(_check_practice_types(record))

    return violations


def _check_practice_types(record: Mapping[str, Any]) -> List[Violation]:
    groups = _get(record, PRACTICE_FIELD)
    if groups is None:
        return []
    if not isinstance(groups, (list, tuple)):
        return [Violation(PRACTICE_FIELD, "required.type", "must be a list")]

    violations: List[Violation] = []
    for g, group in enumerate(groups):
        path = f"{PRACTICE_FIELD}[{g}]"
        if not isinstance(group, Mapping):
            violations.append(Violation(path, "required.type", "must be an object"))
            continue
        if group.get("title") is not None and not isinstance(group["title"], str):
            violations.append(Violation(f"{path}.title", "required.type", "must be a string"))
        problems = group.get("problems")
        if problems is None:
            continue
        if not isinstance(problems, (list, tuple)):
            violations.append(Violation(f"{path}.problems", "required.type", "must be a list"))
            continue
        for p, problem in enumerate(problems):
            problem_path = f"{path}.problems[{p}]"
            if not isinstance(problem, Mapping):
                violations.append(
                    Violation(problem_path, "required.type", "must be an object")
                )
                continue
            for key in _PRACTICE_KEYS:
                value = problem.get(key)
                if value is not None and not isinstance(value, str):
                    violations.append(
                        Violation(f"{problem_path}.{key}", "required.type", "must be a string")
                    )
    return violations


def _check_identifier(record: Mapping[str, Any]) -> List[Violation]:
    if TOPIC_ID_PATTERN.match(record["id"]):
        return []
    return [
        Violation(
            "id",
            "identifier.pattern",
            f"{record['id']!r} must be lowercase words separated by single hyphens",
        )
    ]


def _check_children(record: Mapping[str, Any]) -> List[Violation]:
    violations: List[Violation] = []

    for key in CODE_FIELDS:
        for i, example in enumerate(_children(record, key)):
            if _blank(example.get("language")):
                violations.append(
                    Violation(f"{key}[{i}].language", "children.language",
                              "code example language is required")
                )
            if _blank(_code_body(example)):
                violations.append(
                    Violation(f"{key}[{i}].code", "children.code",
                              "code example code is required")
                )

    for key in QA_FIELDS:
        for i, qa in enumerate(_children(record, key)):
            for part in ("question", "answer"):
                if _blank(qa.get(part)):
                    violations.append(
                        Violation(f"{key}[{i}].{part}", f"children.{part}",
                                  f"{part} is required")
                    )

    for key in LINK_FIELDS:
        for i, link in enumerate(_children(record, key)):
            for part in ("title", "url"):
                if _blank(link.get(part)):
                    violations.append(
                        Violation(f"{key}[{i}].{part}", f"children.{part}",
                                  f"resource {part} is required")
                    )

    for path, problem in _practice(record):
        for part in ("name", "link"):
            if _blank(problem.get(part)):
                violations.append(
                    Violation(f"{path}.{part}", f"children.{part}",
                              f"practice problem {part} is required")
                )

    return violations


def _check_urls(record: Mapping[str, Any]) -> List[Violation]:
    violations: List[Violation] = []

    for key in LINK_FIELDS:
        for i, link in enumerate(_children(record, key)):
            url = link["url"].strip()
            try:
                _URL.validate_python(url)
            except PydanticValidationError:
                violations.append(
                    Violation(f"{key}[{i}].url", "urls.invalid",
                              f"{url!r} is not a valid URI")
                )

    for path, problem in _practice(record):
        link = problem["link"].strip()
        try:
            _URL.validate_python(link)
        except PydanticValidationError:
            violations.append(
                Violation(f"{path}.link", "urls.invalid", f"{link!r} is not a valid URI")
            )

    return violations


def _check_uniqueness(record: Mapping[str, Any]) -> List[Violation]:
    violations: List[Violation] = []

    for key in CHILD_FIELDS:
        seen: Dict[str, int] = {}
        for i, child in enumerate(_children(record, key)):
            sub_id = _text(child.get("id"))
            if not sub_id:
                continue
            if sub_id in seen:
                violations.append(
                    Violation(
                        f"{key}[{i}].id",
                        "uniqueness.duplicate",
                        f"duplicate id {sub_id!r} (first used at {key}[{seen[sub_id]}])",
                    )
                )
            else:
                seen[sub_id] = i

    return violations


RULE_CATEGORIES: Sequence[Callable[[Mapping[str, Any]], List[Violation]]] = (
    _check_required,
    _check_identifier,
    _check_children,
    _check_urls,
    _check_uniqueness,
)


# ---------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------

def _build(record: Mapping[str, Any]) -> ValidatedTopic:
    fields: Dict[str, Any] = {
        "id": record["id"],
        "title": _text(record["title"]),
    }

    for key, attr in TEXT_FIELDS.items():
        fields[attr] = _text(_get(record, key))
    fields["category"] = normalize_facet(fields["category"])

    key_points = _get(record, "keyPoints") or ()
    fields["key_points"] = tuple(p.strip() for p in key_points if p.strip())

    tags = (normalize_facet(t) for t in _get(record, "tags") or ())
    fields["tags"] = tuple(dict.fromkeys(t for t in tags if t))

    fields["code_examples"] = tuple(
        CodeExample(
            id=_text(ex.get("id")),
            title=_text(ex.get("title")),
            description=_text(ex.get("description")),
            language=normalize_facet(ex.get("language")),
            code=_code_body(ex),
        )
        for ex in _children(record, "codeExamples")
    )

    for key in QA_FIELDS:
        fields[_snake(key)] = tuple(
            QuestionAnswer(
                id=_text(qa.get("id")),
                question=_text(qa.get("question")),
                answer=_text(qa.get("answer")),
            )
            for qa in _children(record, key)
        )

    for key in LINK_FIELDS:
        fields[key] = tuple(
            Resource(
                id=_text(link.get("id")),
                title=_text(link.get("title")),
                url=link["url"].strip(),
                description=_text(link.get("description")),
                type=normalize_facet(link.get("type")),
            )
            for link in _children(record, key)
        )

    fields["practice_problems"] = tuple(
        PracticeGroup(
            title=_text(group.get("title")),
            problems=tuple(
                PracticeProblem(
                    name=_text(problem.get("name")),
                    link=problem["link"].strip(),
                    difficulty=normalize_facet(problem.get("difficulty")),
                    platform=normalize_facet(problem.get("platform")),
                    description=_text(problem.get("description")),
                )
                for problem in _children(group, "problems")
            ),
        )
        for group in _children(record, PRACTICE_FIELD)
    )

    return ValidatedTopic(**fields)


# ---------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------

def check(record: Any) -> List[Violation]:
    """
    Return the violations of the first failing rule category.

    An empty list means the record is valid.
    """
    if not isinstance(record, Mapping):
        return [Violation("$", "required.type", "record must be an object")]

    for rule_category in RULE_CATEGORIES:
        violations = rule_category(record)
        if violations:
            return violations
    return []


def validate(record: Any) -> ValidatedTopic:
    """
    Validate and normalize a raw topic record.

    Parameters
    ----------
    record : Any
        A raw topic mapping using the corpus's camelCase keys (snake_case
        spellings are accepted too). Unknown keys are ignored.

    Returns
    -------
    ValidatedTopic
        The normalized topic. Facets are lower-cased and trimmed, empty
        optional fields are ``""`` or ``()``.

    Raises
    ------
    ValidationError
        Listing every violation of the first failing rule category. No
        partial object is ever returned.
    """
    violations = check(record)
    if violations:
        raise ValidationError(violations)

    try:
        return _build(record)
    except PydanticValidationError as exc:
        raise ValidationError(
            Violation(
                ".".join(str(part) for part in err["loc"]) or "$",
                "schema." + err["type"],
                err["msg"],
            )
            for err in exc.errors()
        ) from exc


def prefix_violations(prefix: str, violations: Sequence[Violation]) -> List[Violation]:
    """Re-address violations under a batch prefix such as ``[3]``."""
    return [
        Violation(f"{prefix}.{v.path}" if v.path != "$" else prefix, v.rule, v.message)
        for v in violations
    ]
