"""
Project check — report problems before extracting.

- Manifest parses and builds a binder tree (fail)
- Draft folder present (warn)
- Every document in scope has content (warn)
- Every content file converts without markup errors (warn)
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable

from scry.binder import NodeKind, ProjectTree
from scry.bundle import Bundle, ContentFile, locate_project_file
from scry.config import DRAFT
from scry.errors import ManifestError, StructureError
from scry.manifest import load_tree
from scry.rtf import Interpreter


class Severity(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


@dataclass(frozen=True)
class Finding:
    """One line of a check report. `identity` names the node it concerns."""

    severity: Severity
    message: str
    identity: str | None = None


class ValidationResult:
    """Findings of one project check, in the order they were made."""

    def __init__(self) -> None:
        self.findings: list[Finding] = []

    def pass_(self, msg: str, identity: str | None = None) -> None:
        self.findings.append(Finding(Severity.PASS, msg, identity))

    def warn(self, msg: str, identity: str | None = None) -> None:
        self.findings.append(Finding(Severity.WARN, msg, identity))

    def fail(self, msg: str, identity: str | None = None) -> None:
        self.findings.append(Finding(Severity.FAIL, msg, identity))

    def messages(self, severity: Severity) -> list[str]:
        return [f.message for f in self.findings if f.severity is severity]

    @property
    def passed(self) -> list[str]:
        return self.messages(Severity.PASS)

    @property
    def warnings(self) -> list[str]:
        return self.messages(Severity.WARN)

    @property
    def failures(self) -> list[str]:
        return self.messages(Severity.FAIL)

    @property
    def ok(self) -> bool:
        return not self.failures

    def counts(self) -> dict[Severity, int]:
        """Number of findings per severity, zero included."""
        totals = {severity: 0 for severity in Severity}
        for finding in self.findings:
            totals[finding.severity] += 1
        return totals


def check_project(path: Path, scopes: Iterable[str] = (DRAFT,)) -> ValidationResult:
    """
    Check a project bundle or manifest file.

    Only a missing or unreadable binder fails the check; content problems
    are warnings, since extraction recovers from them.
    """
    result = ValidationResult()

    try:
        project_file = locate_project_file(path)
    except FileNotFoundError as e:
        result.fail(str(e))
        return result

    try:
        tree = load_tree(project_file)
    except (ManifestError, StructureError) as e:
        result.fail(f"Cannot load binder from {project_file.name}: {e}")
        return result

    result.pass_(f"Binder loaded from {project_file.name} ({len(tree)} items).")

    _check_folders(tree, result)
    _check_documents(tree, Bundle.for_project(project_file), list(scopes), result)

    return result


# ──────────────────────────────────────────────
# Binder checks
# ──────────────────────────────────────────────


def _check_folders(tree: ProjectTree, result: ValidationResult) -> None:
    if tree.subtree(DRAFT) is None:
        result.warn("No Draft folder in binder.")
    else:
        result.pass_("Draft folder present.")


# ──────────────────────────────────────────────
# Content checks
# ──────────────────────────────────────────────


def _check_documents(
    tree: ProjectTree,
    bundle: Bundle,
    scopes: list[str],
    result: ValidationResult,
) -> None:
    """Warn on documents without content and content that fails to convert."""
    selected = tree.select(scopes)
    if not selected:
        return

    interpreter = Interpreter()
    clean = 0

    for node in tree.walk(*selected):
        if node.kind is not NodeKind.DOCUMENT:
            continue

        try:
            data = bundle.read(node, ContentFile.CONTENT)
        except OSError as e:
            result.warn(f"Cannot read '{node.title}': {e}", node.identity)
            continue

        if data is None:
            result.warn(f"Document '{node.title}' has no content.", node.identity)
            continue

        conversion = interpreter.convert(data)
        if conversion.ok:
            clean += 1
        else:
            for error in conversion.errors:
                result.warn(f"Document '{node.title}': {error}", node.identity)

    if clean:
        result.pass_(f"{clean} document(s) convert cleanly.")
