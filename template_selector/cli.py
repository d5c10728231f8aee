"""
Template Selector - Command Line Interface

Usage:
    template-selector select job_sheet.txt --templates templates/
    template-selector select scan.txt --mode multi_signal --page-count 2 --json
    template-selector batch documents/ --templates templates/ --workers 8
    template-selector list-templates --templates templates/
    template-selector run-fixtures

Exit codes of `select`: 0 auto-selected, 2 sent to review, 3 hard stop.
"""

import json
import sys
from pathlib import Path
from typing import Optional, List, Dict, Tuple

import click
from loguru import logger
from rich.console import Console
from rich.table import Table

from .config import SelectionMode, SelectorConfig, load_config
from .decision.decision_engine import DecisionType
from .document import DocumentContext, DocumentMetadata, FormType, MatchingMetadata
from .fixtures.fixture_runner import run_all_fixtures
from .performance.worker_pool import BatchItem, BatchReport, BatchStatus, SelectionWorkerPool
from .selection.selector import SelectionResult, TemplateSelector
from .signals.base import ConfidenceBand
from .templates.builtin_templates import builtin_templates
from .templates.registry import InMemoryTemplateRegistry, load_registry
from .trace.trace_export import TraceExporter, TraceFormat


EXIT_CODES = {
    DecisionType.AUTO_SELECT: 0,
    DecisionType.REVIEW_QUEUE: 2,
    DecisionType.HARD_STOP: 3,
}

BAND_STYLES = {
    ConfidenceBand.HIGH: 'green',
    ConfidenceBand.MEDIUM: 'yellow',
    ConfidenceBand.LOW: 'red',
}

DECISION_STYLES = {
    DecisionType.AUTO_SELECT: 'green',
    DecisionType.REVIEW_QUEUE: 'yellow',
    DecisionType.HARD_STOP: 'red',
}

PAGE_SEPARATOR = '\f'


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure loguru logging."""
    logger.remove()

    log_level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{message}</cyan>",
        level=log_level,
        colorize=True
    )

    if log_file:
        logger.add(
            log_file,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}",
            level="DEBUG",
            rotation="10 MB"
        )


def _load_registry(templates_path: Optional[Path]) -> InMemoryTemplateRegistry:
    if templates_path is None:
        return InMemoryTemplateRegistry(builtin_templates())
    try:
        return load_registry(str(templates_path))
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot load templates from {templates_path}: {e}")


def _load_selector_config(config_path: Optional[Path], mode: Optional[str]) -> SelectorConfig:
    try:
        config = load_config(config_path)
        return config.with_mode(mode) if mode else config
    except ValueError as e:
        raise click.ClickException(str(e))


def _read_document(path: Path) -> Tuple[str, Optional[Tuple[str, ...]]]:
    """Document text, plus per-page texts when the file has form feeds."""
    text = path.read_text(encoding='utf-8')
    if PAGE_SEPARATOR in text:
        return text, tuple(text.split(PAGE_SEPARATOR))
    return text, None


def _build_metadata(
    page_count: Optional[int],
    form_type: Optional[str],
    sections: Tuple[str, ...],
) -> Optional[DocumentMetadata]:
    if page_count is None and form_type is None and not sections:
        return None
    return DocumentMetadata(
        page_count=page_count if page_count is not None else 1,
        detected_sections=tuple(sections) if sections else None,
        form_type=FormType.parse(form_type),
    )


def _print_result(result: SelectionResult, console: Console):
    """Print the candidate table and decision."""
    table = Table(title="Template Candidates")

    table.add_column("#", justify="right")
    table.add_column("Template", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Band", style="bold")
    table.add_column("Matched", overflow="fold")
    table.add_column("Missing", overflow="fold")

    for rank, candidate in enumerate(result.candidates, start=1):
        style = BAND_STYLES.get(candidate.confidence, 'white')
        table.add_row(
            str(rank),
            candidate.template_slug,
            str(candidate.score),
            f"[{style}]{candidate.confidence.display_name}[/]",
            ', '.join(candidate.matched_tokens),
            ', '.join(candidate.missing_required),
        )

    console.print(table)
    console.print()

    decision_type = result.decision.decision_type
    style = DECISION_STYLES[decision_type]
    if result.selected:
        console.print(f"[bold {style}]{decision_type.display_name}[/] {result.template_slug}")
    else:
        console.print(f"[bold {style}]{decision_type.display_name}[/] {result.reason_code.display_message}")
        console.print(f"  {result.block_reason}")

    console.print(f"Top score: {result.top_score}  Gap: {result.score_gap}  Trace: {result.trace.trace_id}")


@click.group()
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Write logs to file'
)
@click.version_option(package_name='template-selector')
def main(verbose: bool, log_file: Optional[Path]):
    """
    Template Selector - pick the template for a scanned document, or refuse to.
    """
    setup_logging(verbose=verbose, log_file=log_file)


@main.command('select')
@click.argument('document', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    '--templates', '-t',
    'templates_path',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Template file or directory (built-in templates when omitted)'
)
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to selector configuration YAML'
)
@click.option(
    '--mode', '-m',
    type=click.Choice([m.value for m in SelectionMode]),
    default=None,
    help='Scoring mode (overrides the configuration)'
)
@click.option('--explicit-template', default=None, help='Force a template id or slug')
@click.option('--client', default=None, help='Client name for metadata boosting')
@click.option('--asset-type', default=None, help='Asset type for metadata boosting')
@click.option('--work-type', default=None, help='Work type for metadata boosting')
@click.option('--page-count', type=click.IntRange(min=1), default=None, help='Document page count')
@click.option(
    '--form-type',
    type=click.Choice([f.value for f in FormType]),
    default=None,
    help='How the document was filled in'
)
@click.option('--section', 'sections', multiple=True, help='Detected section heading (repeatable)')
@click.option(
    '--trace-dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Write the selection trace to this directory'
)
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_context
def select_command(
    ctx: click.Context,
    document: Path,
    templates_path: Optional[Path],
    config_path: Optional[Path],
    mode: Optional[str],
    explicit_template: Optional[str],
    client: Optional[str],
    asset_type: Optional[str],
    work_type: Optional[str],
    page_count: Optional[int],
    form_type: Optional[str],
    sections: Tuple[str, ...],
    trace_dir: Optional[Path],
    as_json: bool,
):
    """
    Select the template for DOCUMENT (a text file; pages separated by form feeds).

    Examples:

        # Token fingerprint against built-in templates
        template-selector select job_sheet.txt

        # Multi-signal with layout metadata
        template-selector select scan.txt -m multi_signal --page-count 2 --form-type printed
    """
    registry = _load_registry(templates_path)
    config = _load_selector_config(config_path, mode)
    try:
        text, pages = _read_document(document)
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Cannot read {document}: {e}")

    matching = MatchingMetadata(client=client, asset_type=asset_type, work_type=work_type)
    context = DocumentContext(
        document_text=text,
        page_texts=pages,
        metadata=_build_metadata(page_count, form_type, sections),
        explicit_template_id=explicit_template,
        matching_metadata=None if matching.is_empty else matching,
        document_id=document.stem,
    )

    result = TemplateSelector(registry, config).select(context)

    if trace_dir:
        path = TraceExporter(str(trace_dir)).export(result.trace)
        logger.info(f"Trace written to {path}")

    if as_json:
        click.echo(json.dumps(result.to_dict(include_trace=True), indent=2, sort_keys=True, ensure_ascii=False))
    else:
        _print_result(result, Console())

    ctx.exit(EXIT_CODES[result.decision.decision_type])


@main.command('batch')
@click.argument('directory', type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option(
    '--templates', '-t',
    'templates_path',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Template file or directory (built-in templates when omitted)'
)
@click.option(
    '--config', '-c',
    'config_path',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help='Path to selector configuration YAML'
)
@click.option('--mode', '-m', type=click.Choice([m.value for m in SelectionMode]), default=None)
@click.option('--pattern', default='*.txt', show_default=True, help='Glob pattern for documents')
@click.option('--workers', '-w', type=click.IntRange(min=1), default=4, show_default=True)
@click.option(
    '--trace-dir',
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help='Append every trace to a JSON Lines log in this directory'
)
def batch_command(
    directory: Path,
    templates_path: Optional[Path],
    config_path: Optional[Path],
    mode: Optional[str],
    pattern: str,
    workers: int,
    trace_dir: Optional[Path],
):
    """Select templates for every document in DIRECTORY concurrently."""
    registry = _load_registry(templates_path)
    config = _load_selector_config(config_path, mode)
    files: List[Path] = sorted(directory.glob(pattern))

    if not files:
        logger.warning(f"No documents matching {pattern} in {directory}")
        return

    contexts = []
    unreadable: Dict[int, BatchItem] = {}
    for index, path in enumerate(files):
        try:
            text, pages = _read_document(path)
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read {path}: {e}")
            unreadable[index] = BatchItem(
                document_id=path.stem,
                status=BatchStatus.FAILED,
                error=f"unreadable: {type(e).__name__}",
            )
            continue
        contexts.append(DocumentContext(document_text=text, page_texts=pages, document_id=path.stem))

    with SelectionWorkerPool(registry, config, max_workers=workers) as pool:
        report = pool.run_batch(contexts)

    # Unreadable files keep their place in directory order
    selected = iter(report.items)
    report = BatchReport(
        items=[unreadable[i] if i in unreadable else next(selected) for i in range(len(files))],
        started_at=report.started_at,
        finished_at=report.finished_at,
    )

    if trace_dir:
        exporter = TraceExporter(str(trace_dir))
        for item in report.items:
            if item.trace is not None:
                exporter.export(item.trace, TraceFormat.JSONL)

    console = Console()
    table = Table(title="Batch Selection")
    table.add_column("Document", style="cyan")
    table.add_column("Status", style="bold")
    table.add_column("Template")
    table.add_column("Score", justify="right")

    for item in report.items:
        if item.status == BatchStatus.COMPLETED and item.result is not None:
            status = "[green]✓" if item.result.selected else "[yellow]⚠"
            table.add_row(
                item.document_id,
                status,
                item.result.template_slug or item.result.reason_code.value,
                str(item.result.top_score),
            )
        else:
            table.add_row(item.document_id, f"[red]{item.status.name}", item.error or '', '')

    console.print(table)
    console.print()
    console.print(f"[bold]Total:[/] {len(report.items)} documents")
    console.print(f"[bold green]Completed:[/] {report.count(BatchStatus.COMPLETED)}")
    console.print(f"[bold yellow]Late:[/] {report.count(BatchStatus.LATE)}")
    console.print(f"[bold red]Failed:[/] {report.count(BatchStatus.FAILED)}")


@main.command('list-templates')
@click.option(
    '--templates', '-t',
    'templates_path',
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help='Template file or directory (built-in templates when omitted)'
)
def list_templates_command(templates_path: Optional[Path]):
    """List active templates."""
    registry = _load_registry(templates_path)

    table = Table(title="Active Templates")
    table.add_column("Slug", style="cyan")
    table.add_column("Template ID")
    table.add_column("Version")
    table.add_column("Required (all)")
    table.add_column("Required (any)")

    for template in registry.list_active_templates():
        selection = template.selection_config
        table.add_row(
            template.template_slug,
            template.template_id,
            template.version_id,
            ', '.join(selection.required_tokens_all),
            ', '.join(selection.required_tokens_any),
        )

    Console().print(table)


@main.command('run-fixtures')
@click.option('--json', 'as_json', is_flag=True, help='Print results as JSON')
@click.pass_context
def run_fixtures_command(ctx: click.Context, as_json: bool):
    """Run the built-in selection fixtures against the built-in templates."""
    summary = run_all_fixtures()

    if as_json:
        click.echo(json.dumps({
            'total': summary.total,
            'passed': summary.passed,
            'failed': summary.failed,
            'by_category': summary.by_category,
            'results': [r.to_dict() for r in summary.results],
        }, indent=2, sort_keys=True))
    else:
        console = Console()
        table = Table(title="Selection Fixtures")
        table.add_column("Fixture", style="cyan")
        table.add_column("Status", style="bold")
        table.add_column("Outcome")
        table.add_column("Score", justify="right")
        table.add_column("Errors", overflow="fold")

        for result in summary.results:
            table.add_row(
                result.fixture.id,
                "[green]✓" if result.passed else "[red]✗",
                result.actual_outcome.value,
                str(result.actual_score),
                '; '.join(result.errors),
            )

        console.print(table)
        console.print()
        console.print(f"[bold]Total:[/] {summary.total}")
        console.print(f"[bold green]Passed:[/] {summary.passed}")
        console.print(f"[bold red]Failed:[/] {summary.failed}")

    ctx.exit(0 if summary.all_passed else 1)


if __name__ == "__main__":
    main()
