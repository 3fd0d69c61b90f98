"""CLI entry point for math-quiz.

Usage:
  python -m math_quiz serve [--host HOST] [--port PORT]
  python -m math_quiz generate [--classes "Algebra I,Geometry"] [--count N] [--difficulty D]
  python -m math_quiz classes
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys


def main():
    args = sys.argv[1:]
    command = args[0] if args else "serve"

    if command == "serve":
        _serve(args[1:])
    elif command == "generate":
        _generate(args[1:])
    elif command == "classes":
        _classes()
    else:
        print(f"Unknown command: {command}")
        print("Commands: serve, generate, classes")
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str) -> str:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _serve(args: list[str]):
    import uvicorn

    port = int(_parse_flag(args, "--port", "8765"))
    host = _parse_flag(args, "--host", "127.0.0.1")
    print(f"Starting Math Quiz on http://{host}:{port}")
    print("Press Ctrl+C to stop\n")
    uvicorn.run(
        "math_quiz.app:app",
        host=host,
        port=port,
        reload=False,
        timeout_graceful_shutdown=5,
    )


def _generate(args: list[str]):
    from math_quiz.config import load_settings
    from math_quiz.providers.factory import get_llm
    from math_quiz.quiz_generator import QuizGenerationError, QuizInputError, generate_quiz

    logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s", stream=sys.stderr)

    classes = [c.strip() for c in _parse_flag(args, "--classes", "Algebra I").split(",") if c.strip()]
    difficulty = _parse_flag(args, "--difficulty", "medium")
    try:
        count = int(_parse_flag(args, "--count", "5"))
    except ValueError:
        print("--count must be a number")
        sys.exit(1)

    settings = load_settings()
    try:
        llm = get_llm(settings)
    except ValueError as e:
        print(e)
        sys.exit(1)

    print(f"Generating {count} {difficulty} questions using {llm.name()}...", file=sys.stderr)
    try:
        quiz = asyncio.run(generate_quiz(llm, classes, count, difficulty, settings=settings))
    except (QuizInputError, QuizGenerationError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    if quiz.is_partial:
        print(f"Only {len(quiz.questions)}/{count} questions passed validation", file=sys.stderr)
    print(json.dumps(quiz.to_dict(), indent=2, ensure_ascii=False))


def _classes():
    from math_quiz.prompts import MATH_CLASSES

    print("Math Classes")
    print("=" * 40)
    for name, topics in MATH_CLASSES.items():
        print(f"{name}:")
        for topic in topics:
            print(f"  - {topic}")


if __name__ == "__main__":
    main()
