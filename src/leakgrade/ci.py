"""CI/CD integration: `leakgrade ci`."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from leakgrade.analyzer import scan_key_value
from leakgrade.config import get_weighting, load_config, validate_config
from leakgrade.rules import ConfigError, count_severities
from leakgrade.scoring import GRADE_ORDER, grade, grade_worse_than
from leakgrade.utils import read_source

logger = logging.getLogger(__name__)


def run_ci(
    project_dir: Path,
    path: str | None = None,
    fail_grade: str | None = None,
    comment_on_pr: bool | None = None,
    output_format: str = "json",
    output_file: Path | None = None,
    badge_file: Path | None = None,
    comment_file: Path | None = None,
) -> tuple[bool, dict]:
    """Scan an env file and gate on its grade, return (passed, results_dict).

    Unset arguments fall back to the project config. Fails when the grade
    is worse than ``fail_grade``. Raises ConfigError for an invalid config or
    threshold and InputError if the file is missing.
    """
    config = load_config(project_dir)
    errors = validate_config(config)
    if errors:
        raise ConfigError(f"Config error: {errors[0]}")
    ci_config = config.get("ci", {})
    path = path or ci_config.get("path", ".env.example")
    fail_grade = (fail_grade or config.get("fail_grade", "D")).upper()
    if fail_grade not in GRADE_ORDER:
        raise ConfigError(f"Invalid fail grade: {fail_grade} (expected A, B, C, D or F)")
    if comment_on_pr is None:
        comment_on_pr = bool(ci_config.get("comment_on_pr", True))

    target = Path(path)
    if not target.is_absolute():
        target = project_dir / target
    text = read_source(target)

    findings = scan_key_value(text, max_findings=config.get("max_findings", 500))
    result = grade(findings, get_weighting(config))
    passed = not grade_worse_than(result.letter, fail_grade)
    logger.info("CI scan of %s: grade %s (fail below %s)", path, result.letter, fail_grade)

    if output_file:
        output = _format_output(output_format, findings, result, path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(output, encoding="utf-8")

    if badge_file:
        from leakgrade.exporters.badge import generate_badge

        badge_svg = generate_badge(result.score, result.letter)
        badge_file.parent.mkdir(parents=True, exist_ok=True)
        badge_file.write_text(badge_svg, encoding="utf-8")

    comment = None
    if comment_on_pr:
        from leakgrade.report import generate_report

        comment = generate_report(findings, result, path, comment_file)

    counts = count_severities(findings)
    return passed, {
        "path": path,
        "score": result.score,
        "grade": result.letter,
        "label": result.label,
        "passed": passed,
        "fail_grade": fail_grade,
        "findings_total": len(findings),
        **counts,
        "comment": comment,
    }


def _format_output(fmt: str, findings, result, path: str) -> str:
    if fmt == "sarif":
        from leakgrade.exporters.sarif import findings_to_sarif

        return json.dumps(findings_to_sarif(findings, uri=path), indent=2)
    else:  # json
        from leakgrade.exporters.json_export import findings_to_json

        return json.dumps(findings_to_json(findings, result, source=path), indent=2)


def generate_github_workflow(
    path: str = ".env.example",
    fail_grade: str = "D",
    comment_on_pr: bool = True,
) -> str:
    """Generate a GitHub Actions workflow YAML for LeakGrade.

    With ``comment_on_pr`` the rendered findings table is posted to the pull
    request through the ``gh`` CLI preinstalled on GitHub runners.
    """
    if comment_on_pr:
        comment_args = "--comment-file leakgrade-comment.md"
        comment_step = """
      - name: Post PR comment
        if: always() && github.event_name == 'pull_request' && hashFiles('leakgrade-comment.md') != ''
        env:
          GH_TOKEN: ${{ github.token }}
        run: gh pr comment ${{ github.event.pull_request.number }} --body-file leakgrade-comment.md
"""
    else:
        comment_args = "--no-comment"
        comment_step = ""

    return f"""name: LeakGrade Secret Scan

on:
  push:
    branches: [main]
  pull_request:
    branches: [main]

jobs:
  leakgrade:
    runs-on: ubuntu-latest
    permissions:
      contents: read
      security-events: write
      pull-requests: write
    steps:
      - uses: actions/checkout@v4

      - name: Set up Python
        uses: actions/setup-python@v5
        with:
          python-version: '3.12'

      - name: Install LeakGrade
        run: pip install leakgrade

      - name: Scan env file
        run: >-
          leakgrade ci --path {path} --fail-grade {fail_grade}
          --format sarif --output results.sarif {comment_args}

      - name: Upload SARIF
        if: always()
        uses: github/codeql-action/upload-sarif@v3
        with:
          sarif_file: results.sarif
{comment_step}"""
