"""
scry CLI — Click command group.

Commands: extract (text to stdout), binder (outline), check (project check).
"""

import logging
import sys
from pathlib import Path

import click

from scry import __version__
from scry.config import (
    ALL_FOLDERS,
    DEFAULT_JOBS,
    DEFAULT_UNICODE_FALLBACK,
    DRAFT,
    JOBS_ENVVAR,
    RESEARCH,
    TRASH,
)

_LOG_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────


def _load(project: Path):
    """Locate and load a project, exiting with ✗ on fatal errors."""
    from scry.bundle import Bundle, locate_project_file
    from scry.errors import ManifestError, StructureError
    from scry.manifest import load_tree

    try:
        project_file = locate_project_file(project)
        tree = load_tree(project_file)
    except (FileNotFoundError, ManifestError, StructureError) as e:
        click.secho(f"✗ {e}", fg="red")
        sys.exit(1)

    return tree, Bundle.for_project(project_file)


# ──────────────────────────────────────────────
# Main group
# ──────────────────────────────────────────────


@click.group()
@click.version_option(__version__, prog_name="scry")
@click.option("-v", "--verbose", count=True, help="Log to stderr (-v info, -vv debug).")
def main(verbose: int) -> None:
    """Extract plain text from Scrivener projects."""
    logging.basicConfig(
        level=_LOG_LEVELS[min(verbose, len(_LOG_LEVELS) - 1)],
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


# ──────────────────────────────────────────────
# Extraction
# ──────────────────────────────────────────────


@main.command()
@click.argument("project", type=click.Path(exists=True, path_type=Path))
@click.option("-d", "--draft", is_flag=True, help="Draft folder (default scope).")
@click.option("-r", "--research", is_flag=True, help="Research folder.")
@click.option("--trash", is_flag=True, help="Trash folder.")
@click.option("-F", "--folder", "folders", multiple=True, metavar="NAME",
              help="Top-level folder by title. Repeatable.")
@click.option("-a", "--all", "all_folders", is_flag=True,
              help="Every top-level folder except the trash.")
@click.option("-c", "--content", is_flag=True, help="Body text (default kind).")
@click.option("-t", "--titles", is_flag=True, help="Document titles.")
@click.option("-s", "--synopses", is_flag=True, help="Synopses.")
@click.option("-n", "--notes", is_flag=True, help="Document notes.")
@click.option("-i", "--inlines", is_flag=True, help="Inline annotations.")
@click.option("-f", "--footnotes", is_flag=True, help="Footnotes.")
@click.option("-m", "--comments", is_flag=True, help="Linked comments.")
@click.option("--json", "as_json", is_flag=True, help="Write an itemised JSON document.")
@click.option("--keep-empty", is_flag=True, help="Keep empty items in JSON output.")
@click.option("-j", "--jobs", type=click.IntRange(min=1), default=DEFAULT_JOBS,
              envvar=JOBS_ENVVAR, show_envvar=True, help="Worker threads.")
@click.option("--fallback-char", default=DEFAULT_UNICODE_FALLBACK, show_default=False,
              help="Replacement for invalid Unicode escapes (default U+FFFD).")
def extract(
    project: Path,
    draft: bool,
    research: bool,
    trash: bool,
    folders: tuple[str, ...],
    all_folders: bool,
    content: bool,
    titles: bool,
    synopses: bool,
    notes: bool,
    inlines: bool,
    footnotes: bool,
    comments: bool,
    as_json: bool,
    keep_empty: bool,
    jobs: int,
    fallback_char: str,
) -> None:
    """Extract text from PROJECT (a .scriv bundle or .scrivx file)."""
    from scry.extract import ContentKind, extract_items
    from scry.output import write_json, write_lines

    if len(fallback_char) != 1:
        click.secho("✗ --fallback-char must be a single character.", fg="red")
        sys.exit(1)

    scopes = [
        scope for scope, wanted in (
            (DRAFT, draft),
            (RESEARCH, research),
            (TRASH, trash),
            (ALL_FOLDERS, all_folders),
        ) if wanted
    ]
    scopes.extend(folders)
    if not scopes:
        scopes = [DRAFT]

    kinds = [
        kind for kind, wanted in (
            (ContentKind.BODY, content),
            (ContentKind.TITLE, titles),
            (ContentKind.SYNOPSIS, synopses),
            (ContentKind.NOTE, notes),
            (ContentKind.ANNOTATION, inlines),
            (ContentKind.FOOTNOTE, footnotes),
            (ContentKind.COMMENT, comments),
        ) if wanted
    ]
    if not kinds:
        kinds = [ContentKind.BODY]

    tree, bundle = _load(project)
    items = extract_items(
        tree, bundle, scopes=scopes, kinds=kinds, jobs=jobs, fallback_char=fallback_char
    )

    if as_json:
        write_json(items, sys.stdout, keep_empty=keep_empty)
    else:
        write_lines(items, sys.stdout)

    recovered = sum(1 for item in items if item.errors)
    if recovered:
        click.secho(f"⚠ {recovered} item(s) recovered from errors", fg="yellow", err=True)


# ──────────────────────────────────────────────
# Inspection
# ──────────────────────────────────────────────


@main.command()
@click.argument("project", type=click.Path(exists=True, path_type=Path))
def binder(project: Path) -> None:
    """Print the binder outline of PROJECT."""
    tree, _bundle = _load(project)

    stack = [(node, 0) for node in reversed(tree.top_level())]
    while stack:
        node, depth = stack.pop()
        click.echo(f"{'  ' * depth}{node.title or '(untitled)'}  [{node.label}]")
        stack.extend((child, depth + 1) for child in reversed(node.children))


@main.command()
@click.argument("project", type=click.Path(exists=True, path_type=Path))
def check(project: Path) -> None:
    """Check PROJECT for binder and content problems."""
    from scry.validation import Severity, check_project

    click.echo(f"Checking project: {project}")
    click.echo()

    result = check_project(project)
    marks = {
        Severity.PASS: click.style("✓", fg="green"),
        Severity.WARN: click.style("⚠", fg="yellow"),
        Severity.FAIL: click.style("✗", fg="red"),
    }
    for finding in result.findings:
        click.echo(f"  {marks[finding.severity]} {finding.message}")

    counts = result.counts()
    click.echo()
    click.echo(
        f"Results: {counts[Severity.PASS]} passed, "
        f"{counts[Severity.WARN]} warnings, "
        f"{counts[Severity.FAIL]} failures"
    )

    if result.ok:
        click.secho("✓ Check PASSED", fg="green", bold=True)
    else:
        click.secho("✗ Check FAILED", fg="red", bold=True)
        sys.exit(1)
