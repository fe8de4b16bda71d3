from __future__ import annotations

import logging
from dataclasses import replace as dc_replace
from pathlib import Path
from typing import List, NoReturn, Tuple

import typer
import yaml

from .aggregation import summarize_tree
from .config import ReadingLevelConfig, load_config, parse_doc_type
from .errors import ConfigError, ParseError
from .gates import (
    GateInput,
    GateKind,
    GateReport,
    GateRule,
    evaluate_gates,
    load_baseline,
    parse_gate_specs,
)
from .infobox import render_infobox
from .models import DocumentResult
from .pipeline import analyze_corpus, analyze_document, discover_documents, read_document
from .report import ReportPayload, build_report, dumps_report, render_report

app = typer.Typer(help="Documentation reading-level analyzer.", no_args_is_help=True)
analyze_app = typer.Typer(help="Analyze markdown documents.", no_args_is_help=True)
app.add_typer(analyze_app, name="analyze")

OUTPUT_FORMATS = ("text", "json")
CONFIG_ERROR_EXIT = 2
GATE_FAILED_EXIT = 1


@app.callback()
def main_options(
    log_level: str = typer.Option(
        "WARNING", "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)."
    ),
) -> None:
    """Compute readability metrics for markdown docs and enforce quality gates."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise typer.BadParameter(f"Unknown log level {log_level!r}.", param_hint="--log-level")
    logging.basicConfig(
        level=level, format="%(levelname)s %(name)s: %(message)s"
    )


@analyze_app.command("file")
def analyze_file(
    path: Path = typer.Argument(
        ..., exists=True, file_okay=True, dir_okay=False, readable=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    output_format: str = typer.Option(
        "text", "--format", "-f", help="Report format: text or json."
    ),
    json_output: Path | None = typer.Option(
        None, "--json-output", help="Also write the JSON report to this path."
    ),
    gate: List[str] | None = typer.Option(
        None,
        "--gate",
        "-g",
        help="Quality gate to enforce, e.g. 'no_violations' or 'max_average_grade=12'.",
    ),
    baseline: Path | None = typer.Option(
        None, "--baseline", help="Previous JSON report for the no_grade_increase gate."
    ),
    doc_type: str | None = typer.Option(
        None, "--doc-type", help="Override the inferred document type."
    ),
    words_per_minute: int | None = typer.Option(
        None, "--words-per-minute", help="Override words_per_minute."
    ),
    exemption_density: float | None = typer.Option(
        None, "--exemption-density", help="Override the structural exemption percent."
    ),
) -> None:
    """Analyze one markdown file: metrics, tier, violations and suggestions."""
    try:
        cfg = _load_run_config(config, words_per_minute, exemption_density)
        rules, baseline_grade = _load_gates(cfg, gate, baseline)
        _check_format(output_format)
        forced_type = parse_doc_type(doc_type) if doc_type else None
        # The single-file fast path skips discovery and the worker pool.
        document = read_document(path)
    except ConfigError as exc:
        _abort(f"Configuration error: {exc}")
    except ParseError as exc:
        _abort(f"Cannot read {path}: {exc.reason}")

    if forced_type is not None:
        document.doc_type = forced_type
    result = analyze_document(document, cfg, type_path=path.as_posix())
    gate_report, payload = _evaluate_and_build([result], cfg, rules, baseline_grade)
    _emit(payload, output_format, json_output, single_file=True)
    _finish(gate_report)


@analyze_app.command("dir")
def analyze_dir(
    path: Path = typer.Argument(
        ..., exists=True, file_okay=False, dir_okay=True, readable=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
    output_format: str = typer.Option(
        "text", "--format", "-f", help="Report format: text or json."
    ),
    json_output: Path | None = typer.Option(
        None, "--json-output", help="Also write the JSON report to this path."
    ),
    gate: List[str] | None = typer.Option(
        None,
        "--gate",
        "-g",
        help="Quality gate to enforce, e.g. 'no_violations' or 'max_average_grade=12'.",
    ),
    baseline: Path | None = typer.Option(
        None, "--baseline", help="Previous JSON report for the no_grade_increase gate."
    ),
    words_per_minute: int | None = typer.Option(
        None, "--words-per-minute", help="Override words_per_minute."
    ),
    exemption_density: float | None = typer.Option(
        None, "--exemption-density", help="Override the structural exemption percent."
    ),
    workers: int | None = typer.Option(
        None, "--workers", "-w", help="Number of parallel worker threads."
    ),
    top_n: int | None = typer.Option(
        None, "--top-n", help="Length of the ranked lists."
    ),
) -> None:
    """Analyze every markdown file under a directory and print a summary table."""
    try:
        cfg = _load_run_config(
            config, words_per_minute, exemption_density, workers=workers, top_n=top_n
        )
        rules, baseline_grade = _load_gates(cfg, gate, baseline)
        _check_format(output_format)
        files = discover_documents(path, cfg.file_extensions)
    except ConfigError as exc:
        _abort(f"Configuration error: {exc}")
    except OSError as exc:
        _abort(f"Cannot read {path}: {exc}")

    results = analyze_corpus(files, cfg, path)
    for result in results:
        if result.error is not None:
            # One diagnostic line per document that could not be analyzed.
            typer.echo(f"{result.path}: {result.error}", err=True)
    gate_report, payload = _evaluate_and_build(results, cfg, rules, baseline_grade)
    _emit(payload, output_format, json_output, single_file=False)
    _finish(gate_report)


@analyze_app.command("infobox")
def analyze_infobox(
    path: Path = typer.Argument(
        ..., exists=True, file_okay=True, dir_okay=False, readable=True
    ),
    config: Path | None = typer.Option(None, "--config", "-c"),
) -> None:
    """Print the markdown reading-guide box for one file."""
    try:
        cfg = load_config(config)
        document = read_document(path)
    except ConfigError as exc:
        _abort(f"Configuration error: {exc}")
    except ParseError as exc:
        _abort(f"Cannot read {path}: {exc.reason}")
    result = analyze_document(document, cfg, type_path=path.as_posix())
    typer.echo(render_infobox(result))


@app.command("print-config")
def print_config() -> None:
    """Print the default configuration as YAML."""
    cfg = ReadingLevelConfig()
    typer.echo(yaml.safe_dump(cfg.to_dict(), sort_keys=False))


def main() -> None:
    app()


def _load_run_config(
    config_path: Path | None,
    words_per_minute: int | None,
    exemption_density: float | None,
    workers: int | None = None,
    top_n: int | None = None,
) -> ReadingLevelConfig:
    """Load the config file and apply CLI overrides; the result is never mutated."""
    cfg = load_config(config_path)
    overrides = {
        "words_per_minute": words_per_minute,
        "exemption_density": exemption_density,
        "workers": workers,
        "top_n": top_n,
    }
    changes = {key: value for key, value in overrides.items() if value is not None}
    return dc_replace(cfg, **changes) if changes else cfg


def _load_gates(
    cfg: ReadingLevelConfig, gate_specs: List[str] | None, baseline: Path | None
) -> Tuple[List[GateRule], float | None]:
    """Parse config + CLI gates and the optional baseline before any analysis."""
    rules = parse_gate_specs([*cfg.gates, *(gate_specs or [])])
    baseline_grade = load_baseline(baseline) if baseline is not None else None
    if baseline_grade is None and any(
        rule.kind is GateKind.NO_GRADE_INCREASE for rule in rules
    ):
        raise ConfigError("The no_grade_increase gate needs --baseline.")
    return rules, baseline_grade


def _check_format(output_format: str) -> None:
    if output_format not in OUTPUT_FORMATS:
        raise ConfigError(
            f"Unknown format {output_format!r} (expected one of {', '.join(OUTPUT_FORMATS)})."
        )


def _evaluate_and_build(
    results: List[DocumentResult],
    cfg: ReadingLevelConfig,
    rules: List[GateRule],
    baseline_grade: float | None,
) -> Tuple[GateReport | None, ReportPayload]:
    """Summarize, run the gates, and build the report payload."""
    scopes = summarize_tree(results, cfg.top_n)
    summary = scopes["."]
    gate_report = None
    if rules:
        gate_report = evaluate_gates(
            rules,
            GateInput(
                results=tuple(results),
                summary=summary,
                scopes=scopes,
                baseline_grade=baseline_grade,
            ),
        )
    return gate_report, build_report(results, summary, scopes, gate_report)


def _emit(
    payload: ReportPayload,
    output_format: str,
    json_output: Path | None,
    single_file: bool,
) -> None:
    rendered_json = dumps_report(payload)
    if json_output is not None:
        try:
            json_output.parent.mkdir(parents=True, exist_ok=True)
            json_output.write_text(rendered_json + "\n", encoding="utf-8")
        except OSError as exc:
            _abort(f"Cannot write JSON report {json_output}: {exc}")
    if output_format == "json":
        typer.echo(rendered_json)
    else:
        typer.echo(render_report(payload, single_file=single_file))


def _finish(gate_report: GateReport | None) -> None:
    """Exit 1 when a configured gate failed; runs without gates always exit 0."""
    if gate_report is not None and not gate_report.passed:
        raise typer.Exit(code=GATE_FAILED_EXIT)


def _abort(message: str) -> NoReturn:
    typer.echo(message, err=True)
    raise typer.Exit(code=CONFIG_ERROR_EXIT)


if __name__ == "__main__":
    main()
