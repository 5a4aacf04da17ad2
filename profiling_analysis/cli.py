# profiling_analysis/cli.py - Command-line interface
"""
Command-line interface for profile analysis.
"""

import click
import functools
import sys
from pathlib import Path

from profiling_analysis.utils.logger import setup_logging
from profiling_analysis.utils.config import Config
from profiling_analysis.exceptions import InvalidArgumentError, MalformedSnapshotError, SnapshotNotFoundError


EXIT_USAGE = 2
EXIT_NOT_FOUND = 3
EXIT_MALFORMED = 4


def handle_command_errors(func):
    """
    Turn snapshot loading and configuration failures into a message and a
    distinct exit code.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SnapshotNotFoundError as e:
            click.echo(f"Error: {e}", err=True)
            click.echo("Please provide a valid profile file with --input option.", err=True)
            sys.exit(EXIT_NOT_FOUND)
        except MalformedSnapshotError as e:
            click.echo(f"Error: invalid profile data: {e}", err=True)
            sys.exit(EXIT_MALFORMED)
        except InvalidArgumentError as e:
            click.echo(f"Error: invalid configuration: {e}", err=True)
            sys.exit(EXIT_USAGE)
    return wrapper


@click.group(invoke_without_command=True)
@click.option('--log-level', default='WARNING', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']))
@click.option('--log-file', type=click.Path(), help='Log file path')
@click.option('--config', 'config_file', type=click.Path(), help='YAML configuration file')
@click.pass_context
def cli(ctx, log_level, log_file, config_file):
    """
    Profile Analysis Tool

    Query, summarize, categorize and compare aggregated profile snapshots.
    """
    ctx.ensure_object(dict)

    # Setup logging
    setup_logging(level=log_level, log_file=log_file)

    # Store context
    ctx.obj['config'] = Config(config_file)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.option('--input', 'input_file', type=click.Path(), help='Input profile file')
@click.option('--top', type=int, help='Show top N entries')
@click.option('--file', 'file_pattern', help='Filter by file substring')
@click.option('--function', 'function_pattern', help='Filter by function substring')
@click.option('--pattern', help='Filter by substring of function or file')
@click.option('--regex', help='Filter by regular expression on function or file')
@click.option('--min-pct', type=float, help='Minimum percentage of samples')
@click.option('--include-system', is_flag=True, help='Keep system code and low-share entries when no filter is given')
@click.pass_context
@handle_command_errors
def query(ctx, input_file, top, file_pattern, function_pattern, pattern, regex, min_pct, include_system):
    """
    Query profile data.

    Filters are combined. Without any filter, system code and entries below
    analysis.noise_min_percentage are hidden unless --include-system is given
    or analysis.include_system is set.

    Example:
        profiling-analysis query --input profile.json --top 10
        profiling-analysis query --input profile.json --pattern distance
    """
    from profiling_analysis.analyzer import query as q
    from profiling_analysis.exporters.json_exporter import load_snapshot
    from profiling_analysis.exporters.stdout import StdoutExporter
    from profiling_analysis.collector.snapshot import AllocationSnapshot

    cfg = ctx.obj['config']
    snapshot = load_snapshot(input_file or cfg.get('output.default_input'))
    top_n = top if top is not None else cfg.get('analysis.top_n', 20)

    predicates = []
    if file_pattern:
        predicates.append(lambda e: file_pattern in e.file)
    if function_pattern:
        predicates.append(lambda e: function_pattern in e.function)
    if pattern:
        predicates.append(lambda e: pattern in e.function or pattern in e.file)
    if min_pct is not None:
        if isinstance(snapshot, AllocationSnapshot):
            raise click.UsageError("--min-pct is only available for sample profiles")
        predicates.append(q.min_percentage(min_pct))

    entries = snapshot.entries
    if regex:
        try:
            entries = q.by_regex(entries, regex, field='both')
        except ValueError as e:
            raise click.BadParameter(str(e), param_hint='--regex')

    include_system = include_system or cfg.get('analysis.include_system', False)
    if not predicates and not regex and not include_system:
        system_patterns = cfg.get('analysis.system_patterns')
        if isinstance(snapshot, AllocationSnapshot):
            predicates.append(q.negate(lambda e: q.is_system_code(e, system_patterns)))
        else:
            noise_min = cfg.get('analysis.noise_min_percentage', 0.5)
            predicates.append(q.negate(lambda e: q.is_noise(e, noise_min, system_patterns)))

    results = q.top_n(entries, top_n, predicate=q.combine(*predicates, mode='and'))

    exporter = StdoutExporter(use_colors=cfg.get('output.use_colors', True))
    if isinstance(snapshot, AllocationSnapshot):
        exporter.print_allocation_sites(results)
    else:
        exporter.print_entries(results)


@cli.command()
@click.option('--input', 'input_file', type=click.Path(), help='Input profile file')
@click.option('--top', type=int, help='Number of entries to show')
@click.option('--title', default='Profile Summary', help='Custom title for summary')
@click.option('--categories', 'show_categories', is_flag=True, help='Include categorized hotspots and recommendations')
@click.pass_context
@handle_command_errors
def summary(ctx, input_file, top, title, show_categories):
    """
    Generate a comprehensive summary.

    Example:
        profiling-analysis summary --input profile.json --categories
    """
    from profiling_analysis.analyzer.categorizer import summarize
    from profiling_analysis.analyzer.recommendations import analyze_allocation_patterns
    from profiling_analysis.exporters.json_exporter import load_snapshot
    from profiling_analysis.exporters.stdout import StdoutExporter
    from profiling_analysis.collector.snapshot import AllocationSnapshot

    cfg = ctx.obj['config']
    snapshot = load_snapshot(input_file or cfg.get('output.default_input'))
    top_n = top if top is not None else cfg.get('analysis.top_n', 20)
    exporter = StdoutExporter(use_colors=cfg.get('output.use_colors', True))

    if isinstance(snapshot, AllocationSnapshot):
        exporter.print_allocation_summary(snapshot, top_n=top_n)
        if show_categories:
            exporter.print_recommendations(analyze_allocation_patterns(
                snapshot,
                package_patterns=cfg.get('allocations.package_patterns', []),
                small_allocation_bytes=cfg.get('allocations.small_allocation_bytes', 1000),
                large_site_bytes=cfg.get('allocations.large_site_bytes', 1000000),
            ))
        return

    exporter.print_summary(snapshot, top_n=top_n, title=title)

    if show_categories:
        buckets = cfg.build_categorizer().categorize(snapshot)
        exporter.print_categorized(
            summarize(buckets, snapshot.total_captured),
            min_percentage=cfg.get('analysis.category_min_percentage', 5.0)
        )
        generator = cfg.build_recommendation_generator()
        exporter.print_recommendations(generator.generate(buckets, snapshot.total_captured))


@cli.command()
@click.argument('first')
@click.argument('second')
@click.option('--top', type=int, default=20, help='Show top N changes')
@click.option('--benchmarks', 'by_name', is_flag=True, help='Treat arguments as benchmark names')
@click.option('--dir', 'save_dir', type=click.Path(), help='Benchmark directory')
@click.pass_context
@handle_command_errors
def compare(ctx, first, second, top, by_name, save_dir):
    """
    Compare two profiles (FIRST is the baseline).

    Example:
        profiling-analysis compare old.json new.json
        profiling-analysis compare --benchmarks baseline optimized
    """
    from profiling_analysis.analyzer.diff import diff_snapshots
    from profiling_analysis.exporters.json_exporter import BenchmarkStore, load_snapshot
    from profiling_analysis.exporters.stdout import StdoutExporter

    cfg = ctx.obj['config']

    if by_name:
        store = BenchmarkStore(save_dir or cfg.get('benchmarks.save_dir'))
        before, after = store.load(first), store.load(second)
    else:
        before, after = load_snapshot(first), load_snapshot(second)

    try:
        diff = diff_snapshots(before, after)
    except ValueError as e:
        raise click.UsageError(str(e))

    exporter = StdoutExporter(use_colors=cfg.get('output.use_colors', True))
    exporter.print_diff(diff, before, after, top_n=top)


@cli.command()
@click.option('--input', 'input_file', type=click.Path(), help='Input profile file')
@click.option('--format', 'output_format', type=click.Choice(['csv', 'markdown', 'prometheus']), default='csv', help='Export format')
@click.option('--output', type=click.Path(), help='Output file (default: stdout)')
@click.option('--top', type=int, help='Limit number of entries')
@click.option('--user-code', is_flag=True, help='Only export non-system code')
@click.option('--recommendations', 'with_recommendations', is_flag=True, help='Include recommendations (markdown)')
@click.pass_context
@handle_command_errors
def export(ctx, input_file, output_format, output, top, user_code, with_recommendations):
    """
    Export profile data.

    Example:
        profiling-analysis export --format csv --output hotspots.csv
        profiling-analysis export --format markdown --recommendations
    """
    from profiling_analysis.analyzer import query as q
    from profiling_analysis.analyzer.report_generator import ReportGenerator
    from profiling_analysis.collector.snapshot import AllocationSnapshot
    from profiling_analysis.exporters.json_exporter import load_snapshot
    from profiling_analysis.exporters.prometheus import PrometheusExporter

    cfg = ctx.obj['config']
    input_path = input_file or cfg.get('output.default_input')
    snapshot = load_snapshot(input_path)
    is_allocation = isinstance(snapshot, AllocationSnapshot)

    entries = list(snapshot.entries)
    if user_code:
        system_patterns = cfg.get('analysis.system_patterns')
        entries = q.by_predicate(entries, q.negate(lambda e: q.is_system_code(e, system_patterns)))
    if top is not None:
        entries = q.top_n(entries, top)

    generator = ReportGenerator()

    if output_format == 'csv':
        text = generator.generate_allocation_csv(entries) if is_allocation else generator.generate_csv(entries)
    elif output_format == 'markdown':
        if is_allocation:
            raise click.UsageError("Markdown export is only available for sample profiles")
        recommendations = None
        if with_recommendations:
            buckets = cfg.build_categorizer().categorize(entries)
            recommendations = cfg.build_recommendation_generator().generate(buckets, snapshot.total_captured)
        text = generator.generate_markdown_report(
            snapshot,
            entries=entries if (user_code or top is not None) else None,
            top_n=top if top is not None else cfg.get('analysis.top_n', 20),
            recommendations=recommendations,
        )
    else:
        exporter = PrometheusExporter(top_n=top if top is not None else len(snapshot.entries))
        exporter.record_snapshot(snapshot, name=Path(input_path).stem)
        text = exporter.get_metrics_text()

    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text)
        click.echo(f"Exported {len(entries)} entries to: {output_path}", err=True)
    else:
        click.echo(text, nl=False)


@cli.command()
@click.option('--dir', 'save_dir', type=click.Path(), help='Benchmark directory')
@click.pass_context
def benchmarks(ctx, save_dir):
    """
    List stored benchmarks.
    """
    from profiling_analysis.exporters.json_exporter import BenchmarkStore

    store = BenchmarkStore(save_dir or ctx.obj['config'].get('benchmarks.save_dir'))
    names = store.list()

    if not names:
        click.echo(f"No benchmarks found in {store.save_dir}")
        return

    for name in names:
        click.echo(name)


@cli.command(name='help')
@click.pass_context
def help_command(ctx):
    """
    Show this help message.
    """
    click.echo(ctx.parent.get_help())


if __name__ == '__main__':
    cli(obj={})
