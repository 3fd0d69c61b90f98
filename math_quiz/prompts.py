"""Curriculum tables and prompt templates for quiz generation."""
from __future__ import annotations

import random
import time
import uuid

MATH_CLASSES: dict[str, list[str]] = {
    "Algebra I": ["Linear Equations", "Polynomials", "Factoring", "Systems of Equations", "Inequalities"],
    "Geometry": ["Area and Perimeter", "Triangles", "Circles", "Volume", "Coordinate Geometry"],
    "Algebra II": ["Quadratic Functions", "Exponential Functions", "Logarithms", "Rational Functions",
                   "Complex Numbers"],
    "Trigonometry": ["Trigonometric Functions", "Unit Circle", "Identities", "Law of Sines", "Law of Cosines"],
    "Pre-Calculus": ["Polynomial Functions", "Sequences and Series", "Conic Sections", "Matrices", "Limits"],
}

DIFFICULTY_FOCUS: dict[str, dict[str, list[str]]] = {
    "Algebra I": {
        "easy": ["One-step linear equations (2x = 10)", "Simple substitution (if x = 3, find 2x + 1)",
                 "Basic polynomial addition/subtraction", "Simple factoring (x² + 5x + 6)",
                 "Single-variable inequalities (x > 5)"],
        "medium": ["Two-step linear equations with fractions", "Systems of equations by substitution",
                   "Polynomial multiplication (distributive property)",
                   "Factoring trinomials with leading coefficient ≠ 1", "Compound inequalities"],
        "hard": ["Multi-step equations with variables on both sides",
                 "Systems with no solution or infinite solutions", "Complex polynomial operations",
                 "Factoring by grouping", "Absolute value inequalities"],
    },
    "Geometry": {
        "easy": ["Area of basic shapes (square, rectangle, triangle)", "Perimeter calculations",
                 "Basic angle relationships", "Simple coordinate geometry (distance between points)",
                 "Volume of rectangular prisms"],
        "medium": ["Area of complex shapes (trapezoids, parallelograms)", "Pythagorean theorem applications",
                   "Circle area and circumference", "Coordinate geometry with slopes", "Surface area calculations"],
        "hard": ["Composite figure area/volume problems", "Geometric proofs and reasoning",
                 "Complex coordinate geometry transformations", "Circle theorems and arc length",
                 "3D geometry and spatial reasoning"],
    },
    "Algebra II": {
        "easy": ["Evaluating quadratic functions at given points", "Simple exponential growth (2^x)",
                 "Basic logarithm evaluation (log₁₀(100))", "Simple rational function evaluation",
                 "Basic complex number arithmetic"],
        "medium": ["Solving quadratic equations by factoring", "Exponential equations (3^x = 27)",
                   "Logarithm properties and equations", "Rational function simplification",
                   "Complex number operations"],
        "hard": ["Quadratic formula with complex solutions", "Exponential modeling problems",
                 "Change of base formula and applications", "Rational inequalities",
                 "Complex number graphing and polar form"],
    },
    "Trigonometry": {
        "easy": ["Basic trig ratios in right triangles", "Unit circle values at special angles",
                 "Simple trig function evaluation", "Basic angle conversions (degrees/radians)",
                 "Simple trig equations"],
        "medium": ["Trig functions of general angles", "Basic trig identities applications",
                   "Law of Sines with one triangle", "Amplitude and period of trig functions",
                   "Inverse trig function evaluation"],
        "hard": ["Complex trig identity proofs", "Law of Cosines applications", "Trig function transformations",
                 "Multiple angle formulas", "Trig equations with multiple solutions"],
    },
    "Pre-Calculus": {
        "easy": ["Polynomial function evaluation", "Simple sequence identification", "Basic matrix operations",
                 "Simple limit evaluation", "Conic section identification"],
        "medium": ["Polynomial division and remainder theorem", "Arithmetic/geometric sequence formulas",
                   "Matrix multiplication", "Limit laws application", "Conic section equations"],
        "hard": ["Polynomial function analysis and graphing", "Series convergence and sum",
                 "Matrix determinants and inverses", "Complex limits and continuity",
                 "Conic section transformations"],
    },
}

GENERAL_GUIDELINES = {
    "easy": """\
- Questions should be solvable in 30-45 seconds
- Require 1-2 basic steps
- Use simple numbers (avoid complex fractions/decimals)
- Direct application of basic formulas""",
    "medium": """\
- Questions should take 45-90 seconds to solve
- Require 2-4 computational steps
- May involve moderate fractions/decimals
- May require formula manipulation or multi-step reasoning""",
    "hard": """\
- Questions should take 90+ seconds to solve
- Require multiple steps and advanced reasoning
- Test deep conceptual understanding
- Require synthesis of multiple concepts""",
}

SYSTEM_PROMPT = """\
You are an expert math teacher specializing in SAT preparation. Create high-quality, \
grade-appropriate practice questions that strictly adhere to the {difficulty} difficulty level.

Every question must test a different mathematical skill. Never repeat question types, \
solution methods or numerical patterns within a quiz.

Every calculation must be correct and the marked correct answer must be mathematically accurate.

Explanations give ONLY the final, clean solution steps. Never show multiple attempts or \
self-correction ("Wait, let me recalculate", "This doesn't match"). End with the final answer.

Your entire response must be ONLY the JSON object. Start with {{ and end with }}. \
No markdown, no code fences, no commentary."""

JSON_FORMAT_RULES = """\
**JSON FORMATTING RULES:**
- Return ONLY valid JSON, no markdown code blocks or extra text
- Inside strings, escape quotes as \\" and write newlines as \\n
- All JSON keys use double quotes
- NO trailing commas in arrays or objects
- Write math as plain text: "x^2" or "x squared", "log base 2", "3/4"
- Keep every explanation on a single line"""

QUIZ_SHAPE = """\
{{
  "quiz": {{
    "selectedClasses": [{classes_json}],
    "difficulty": "{difficulty}",
    "questions": [
      {{
        "id": 1,
        "question": "Question text here",
        "options": {{"A": "Option A", "B": "Option B", "C": "Option C", "D": "Option D"}},
        "correctAnswer": "A",
        "explanation": "Step-by-step solution in simple text",
        "topic": "Topic name",
        "mathClass": "{first_class}"
      }}
    ]
  }}
}}"""

QUIZ_PROMPT = """\
Generate a {difficulty} SAT math quiz with {count} questions for students who have taken \
these math classes: {classes}.

**{difficulty_upper} DIFFICULTY REQUIREMENTS:**

{focus}
**GENERAL {difficulty_upper} GUIDELINES:**
{guidelines}

**QUESTION TOPICS:**
{topics}

**QUESTION DISTRIBUTION REQUIREMENTS:**
{distribution}

Each question has exactly 4 options A-D with one correct answer and plausible distractors.

{format_rules}

Respond with a JSON object like this:
{shape}

**GENERATION CONTEXT:**
Generation ID: {generation_id}
Timestamp: {timestamp}
This is a fresh quiz. Vary topics, numbers and problem contexts."""


def format_focus(classes: list[str], difficulty: str) -> str:
    """Bullet the difficulty-specific skills for each class."""
    lines = []
    for name in classes:
        skills = DIFFICULTY_FOCUS.get(name, {}).get(difficulty)
        if not skills:
            continue
        lines.append(f"**{name} - {difficulty} level:**")
        lines.extend(f"• {skill}" for skill in skills)
        lines.append("")
    return "\n".join(lines) + "\n" if lines else ""


def format_distribution(classes: list[str], total: int) -> str:
    """Split *total* questions across *classes*, earlier classes taking the remainder."""
    per_class, remainder = divmod(total, len(classes))
    lines = []
    for i, name in enumerate(classes):
        n = per_class + (1 if i < remainder else 0)
        lines.append(f"- Generate {n} question{'s' if n != 1 else ''} from {name}")
    return "\n".join(lines)


def pick_topics(classes: list[str], count: int, rng: random.Random | None = None) -> list[str]:
    rng = rng or random.Random()
    topics = [f"{name}: {topic}" for name in classes for topic in MATH_CLASSES.get(name, [])]
    rng.shuffle(topics)
    return topics[:count]


def build_quiz_prompt(
    classes: list[str],
    difficulty: str,
    count: int,
    rng: random.Random | None = None,
) -> str:
    topics = pick_topics(classes, count, rng)
    return QUIZ_PROMPT.format(
        difficulty=difficulty,
        difficulty_upper=difficulty.upper(),
        count=count,
        classes=", ".join(classes),
        focus=format_focus(classes, difficulty),
        guidelines=GENERAL_GUIDELINES[difficulty],
        topics="\n".join(
            f"- Question {i}: Create a {difficulty} question about {topic}"
            for i, topic in enumerate(topics, 1)
        ),
        distribution=format_distribution(classes, count),
        format_rules=JSON_FORMAT_RULES,
        shape=QUIZ_SHAPE.format(
            classes_json=", ".join(f'"{c}"' for c in classes),
            difficulty=difficulty,
            first_class=classes[0],
        ),
        generation_id=uuid.uuid4().hex[:12],
        timestamp=int(time.time() * 1000),
    )


def build_system_prompt(difficulty: str) -> str:
    return SYSTEM_PROMPT.format(difficulty=difficulty)
