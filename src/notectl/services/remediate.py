"""RemediationService — load findings and the schema, then run a fix mode.

This is the seam between the CLI and the two orchestrators. Input
problems (missing or malformed findings, an unusable schema) come back
as an error :class:`ServiceResult`; per-issue failures are counted in
the summary and surfaced as warnings.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from ruamel.yaml.error import YAMLError

from notectl.domain.results import FixContext, FixSummary, ManualReviewQueue
from notectl.infrastructure.filesystem import load_findings, load_schema
from notectl.output.reporter import FixReporter
from notectl.services.autofix import AutoFixService
from notectl.services.interactive import InteractiveFixService
from notectl.services.result import ErrorCode, ServiceResult

if TYPE_CHECKING:
    from notectl.config.settings import NoteSettings
    from notectl.domain.issues import FileAuditResult
    from notectl.output.prompts import Prompter

logger = logging.getLogger(__name__)

OP = "fix"


def _error(code: ErrorCode, message: str, **detail: Any) -> ServiceResult:
    return ServiceResult.failure(OP, code, message, **detail)


def _review_entries(queue: ManualReviewQueue) -> list[dict[str, Any]]:
    return [
        {
            "file": entry.file,
            "code": entry.issue.code.value,
            "field": entry.issue.field,
            "message": entry.issue.message,
        }
        for entry in queue
    ]


class RemediationService:
    """Runs a batch or interactive remediation for one findings file."""

    def __init__(
        self,
        settings: NoteSettings,
        *,
        prompter: Prompter | None = None,
        reporter: FixReporter | None = None,
    ) -> None:
        self._settings = settings
        self._prompter = prompter
        self._reporter = reporter

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fix(self, findings_path: Path, *, auto: bool = False, dry_run: bool = False) -> ServiceResult:
        """Fix the issues listed in *findings_path*.

        Batch mode is used when *auto* is set or the CLI runs with
        ``--no-interact``. A dry run can come from the flag or from
        ``[fix] dry_run`` in the config file.
        """
        vault_root = self._settings.vault_root
        schema_path = self._settings.schema_path
        try:
            schema = load_schema(schema_path)
        except FileNotFoundError:
            return _error(
                ErrorCode.SCHEMA_NOT_FOUND, f"Schema not found: {schema_path}", path=str(schema_path)
            )
        except (OSError, ValueError, YAMLError) as exc:
            logger.debug("Schema %s unusable", schema_path, exc_info=True)
            return _error(
                ErrorCode.SCHEMA_INVALID, f"Invalid schema {schema_path}: {exc}", path=str(schema_path)
            )

        try:
            results = load_findings(findings_path, vault_root)
        except FileNotFoundError:
            return _error(
                ErrorCode.FINDINGS_NOT_FOUND, f"Findings not found: {findings_path}", path=str(findings_path)
            )
        except (OSError, ValueError) as exc:
            logger.debug("Findings %s unusable", findings_path, exc_info=True)
            return _error(
                ErrorCode.FINDINGS_INVALID, f"Invalid findings {findings_path}: {exc}", path=str(findings_path)
            )

        reason: str | None = None
        if dry_run:
            reason = "--dry-run"
        elif self._settings.fix.dry_run:
            reason = "fix.dry_run in config"

        context = FixContext(schema=schema, vault_root=vault_root, dry_run=reason is not None)
        mode = "auto" if auto or self._settings.no_interact else "interactive"
        with structlog.contextvars.bound_contextvars(
            findings=str(findings_path), mode=mode, dry_run=context.dry_run
        ):
            if mode == "auto":
                return self._auto(context, results, reason)
            return self._interactive(context, results)

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _auto(
        self,
        context: FixContext,
        results: list[FileAuditResult],
        reason: str | None,
    ) -> ServiceResult:
        service = AutoFixService(context, reporter=self._reporter)
        summary = service.run(results, dry_run_reason=reason)
        return self._result("auto", summary, _review_entries(service.manual_review))

    def _interactive(self, context: FixContext, results: list[FileAuditResult]) -> ServiceResult:
        limits = self._settings.fix
        service = InteractiveFixService(
            context,
            prompter=self._prompter,
            reporter=self._reporter,
            similar_file_limit=limits.similar_file_limit,
            relation_limit=limits.relation_option_limit,
            field_candidate_limit=limits.field_candidate_limit,
        )
        return self._result("interactive", service.run(results), [])

    def _result(self, mode: str, summary: FixSummary, review: list[dict[str, Any]]) -> ServiceResult:
        warnings: list[str] = []
        if summary.failed:
            warnings.append(f"{summary.failed} fix(es) failed")
        data: dict[str, Any] = {"mode": mode, **summary.model_dump(exclude_none=True)}
        if review:
            data["manual_review"] = review
        return ServiceResult(ok=True, op=OP, data=data, warnings=warnings)

