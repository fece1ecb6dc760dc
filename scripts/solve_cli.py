"""Solve a math problem from the terminal.

Usage:
  python scripts/solve_cli.py "Factor x^2 + 5x + 6"
  python scripts/solve_cli.py --url http://localhost:3000 "Integrate 2x + 3 dx"

Falls back to the demo solution when the server is not reachable.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path


# Ensure repo root is importable so `import mathsolver...` works when running this file directly.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def render_segments(segments) -> str:
    parts = []
    for seg in segments:
        parts.append(seg.content if seg.kind == "text" else f"`{seg.content}`")
    return "".join(parts)


def render_solution(result: dict) -> str:
    from mathsolver.step_formatter import format_steps

    calc = result.get("calculation", {})
    lines = [
        f"Problem: {result.get('originalProblem', '')}",
        f"Result:  {render_segments_text(calc.get('result', ''))}",
        "",
        "Explanation:",
        result.get("explanation", ""),
        "",
        "Step-by-step solution:",
    ]
    for step in format_steps(calc.get("steps")):
        line = f"  Step {step.number}: {render_segments(step.title_segments)}"
        if step.math:
            line += f"\n          {render_segments(step.math_segments)}"
        lines.append(line)
    return "\n".join(lines)


def render_segments_text(text: str) -> str:
    from mathsolver.step_formatter import scan_inline_math

    return render_segments(scan_inline_math(text))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Solve a math problem with the LLM-backed API")
    parser.add_argument("problem", nargs="+", help="the math problem, e.g. 'Factor x^2 + 5x + 6'")
    parser.add_argument("--url", default=os.getenv("MATHSOLVER_URL", "http://localhost:3000"))
    args = parser.parse_args(argv)

    from mathsolver.client import MathSolverClient

    problem = " ".join(args.problem)
    with MathSolverClient(base_url=args.url) as client:
        status = client.check_connection()
        print(f"Server: {status}")
        result = client.solve(problem)

    if result is None:
        print("Please enter a math problem.")
        return 2
    if result.get("demo"):
        print("Server unavailable - showing demo solution\n")
    print(render_solution(result))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
