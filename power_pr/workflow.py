"""The open-or-reuse, then merge workflow.

The run is an ordered list of named steps. Each step owns its checks and
external calls and returns a StepResult; the Pipeline runs them in order,
stops at the first fatal (or early "done") result and turns the outcome
into a process exit code.
"""

from __future__ import annotations

import abc
import shlex
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from power_pr import compose, console, locks
from power_pr.config import Options
from power_pr.errors import (
    CommandError,
    CommandTimeoutError,
    EnvironmentCheckError,
    ForgeError,
    OperationError,
    PowerPrError,
    PreconditionError,
)
from power_pr.forge import GitHubCLI
from power_pr.git import Git
from power_pr.models import AuthStatus, PullRequestStatus, RepoIdentity

OK = "ok"
WARNING = "warning"
FATAL = "fatal"
DONE = "done"


@dataclass
class StepResult:
    """What a step reports back to the pipeline.

    ok       continue with the next step
    warning  soft failure; message (and upstream details) are reported, run continues
    fatal    stop, exit with exit_code
    done     stop early, successfully (dry runs)
    """

    status: str
    message: str = ""
    details: str = ""
    exit_code: int = 0

    @classmethod
    def ok(cls) -> "StepResult":
        return cls(OK)

    @classmethod
    def warning(cls, message: str, details: str = "") -> "StepResult":
        return cls(WARNING, message, details)

    @classmethod
    def fatal(cls, message: str, exit_code: int = 1) -> "StepResult":
        return cls(FATAL, message, exit_code=exit_code)

    @classmethod
    def done(cls, message: str = "") -> "StepResult":
        return cls(DONE, message)


@dataclass
class RunState:
    """Facts discovered while the run progresses."""

    repo_root: str = ""
    remote_url: str = ""
    auth: Optional[AuthStatus] = None
    repo: Optional[RepoIdentity] = None
    source_ref: str = ""
    pr_url: str = ""
    pr_created: bool = False
    merge_succeeded: Optional[bool] = None
    final_status: Optional[PullRequestStatus] = None


class Step(abc.ABC):
    """Base class for all workflow steps."""

    name = ""

    def __init__(
        self,
        options: Options,
        git: Git,
        forge: GitHubCLI,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.options = options
        self.git = git
        self.forge = forge
        self.clock = clock

    @abc.abstractmethod
    def run(self, state: RunState) -> StepResult:
        """Run the step."""
        raise NotImplementedError


# ---------------------------------------------------------------------------
# Steps
# ---------------------------------------------------------------------------


class PreflightStep(Step):
    """Tools present, inside a repository with an origin, clean tree."""

    name = "preflight"

    def run(self, state: RunState) -> StepResult:
        if not self.git.is_available():
            raise EnvironmentCheckError("git not found in PATH")
        if not self.forge.is_available():
            raise EnvironmentCheckError("gh (GitHub CLI) not found in PATH")
        if not self.git.is_inside_work_tree():
            raise EnvironmentCheckError("Run this inside a Git repository")

        state.repo_root = self.git.toplevel()
        remote_url = self.git.remote_url()
        if remote_url is None:
            raise EnvironmentCheckError(f"Remote '{self.git.remote}' not configured")
        state.remote_url = remote_url
        console.say(f"Repository: {state.repo_root}")
        console.say(f"Remote '{self.git.remote}': {remote_url}")

        if not self.options.allow_dirty:
            if self.git.has_uncommitted_changes():
                raise PreconditionError("Uncommitted changes detected. Commit or use --allow-dirty.")
        else:
            console.warn("Proceeding with dirty working tree (--allow-dirty).")
        return StepResult.ok()


class AuthStep(Step):
    name = "auth"

    def run(self, state: RunState) -> StepResult:
        auth = self.forge.auth_status()
        if auth is None:
            raise EnvironmentCheckError("Not authenticated to GitHub CLI. Run: gh auth login")
        state.auth = auth
        console.say(f"Auth: {auth.state} as {auth.login}@{auth.host} (git protocol: {auth.git_protocol})")
        return StepResult.ok()


class ResolveRepoStep(Step):
    """owner/name from gh, falling back to parsing the remote URL."""

    name = "resolve-repo"

    def run(self, state: RunState) -> StepResult:
        repo = self.forge.repo_identity()
        if repo is None:
            repo = RepoIdentity.from_remote_url(state.remote_url)
        if repo is None:
            raise OperationError("Unable to determine owner/repo.")
        state.repo = repo
        console.say(f"GitHub repo: {repo.name_with_owner}")
        return StepResult.ok()


class SyncBranchesStep(Step):
    """Fetch, make sure both branches exist, push the source branch."""

    name = "sync-branches"

    def run(self, state: RunState) -> StepResult:
        opts = self.options
        remote = self.git.remote

        console.say(f"Fetching latest from '{remote}'...")
        self.git.fetch(prune=True)

        if self.git.local_branch_exists(opts.source):
            state.source_ref = opts.source
        elif self.git.remote_branch_exists(opts.source):
            if opts.dry_run:
                console.say(f"[dry-run] Would create local branch '{opts.source}' tracking '{remote}/{opts.source}'")
                state.source_ref = f"{remote}/{opts.source}"
            else:
                console.say(f"Creating local branch '{opts.source}' tracking '{remote}/{opts.source}'")
                self.git.create_tracking_branch(opts.source)
                state.source_ref = opts.source
        else:
            raise PreconditionError(f"Source branch '{opts.source}' not found locally or on remote.")

        if not self.git.remote_branch_exists(opts.target):
            raise PreconditionError(f"Target branch '{opts.target}' not found on remote '{remote}'.")

        if not opts.push:
            console.warn("Skipping push (--no-push).")
        elif opts.dry_run:
            console.say(f"[dry-run] Would push '{opts.source}' to '{remote}/{opts.source}'")
        else:
            console.say(f"Pushing '{opts.source}' to '{remote}/{opts.source}'...")
            self.git.push(opts.source, set_upstream=True)
        return StepResult.ok()


class ReconcilePrStep(Step):
    """Reuse the open PR for source -> target, or create one."""

    name = "reconcile-pr"

    def run(self, state: RunState) -> StepResult:
        if self.options.dry_run:
            return self._reconcile(state)
        with locks.pair_lock(
            self.git.git_dir(), self.options.source, self.options.target, timeout=self.options.timeout
        ):
            return self._reconcile(state)

    def _compose_body(self, state: RunState) -> str:
        opts = self.options
        if opts.body:
            return opts.body
        subjects = self.git.commit_subjects(
            f"{self.git.remote}/{opts.target}",
            state.source_ref or opts.source,
            limit=compose.MAX_SUMMARY_LINES,
        )
        return compose.render_body(opts.source, opts.target, subjects, clock=self.clock)

    def _reconcile(self, state: RunState) -> StepResult:
        opts = self.options

        existing = self.forge.find_open_pr(base=opts.target, head=opts.source)
        if existing:
            console.say(f"Found existing open PR: {existing}")
            state.pr_url = existing
            return StepResult.ok()

        title = opts.title or compose.default_title(opts.source, opts.target)
        body = self._compose_body(state)
        create_args = compose.create_arguments(opts.source, opts.target, title, body, opts.labels)

        console.say(f"Creating PR: '{title}'")
        if opts.dry_run:
            console.say(f"[dry-run] gh pr create {shlex.join(create_args)}")
            return StepResult.done("Dry-run complete.")

        try:
            url = self.forge.create_pr(create_args)
        except (ForgeError, CommandTimeoutError) as exc:
            # A concurrent run, or the timed-out call itself, may have opened the PR.
            recovered = self.forge.find_open_pr(base=opts.target, head=opts.source)
            if not recovered:
                console.echo_output(exc.output if isinstance(exc, CommandError) else str(exc))
                raise OperationError("Failed to create PR.") from exc
            console.warn("Creation reported an error, but an open PR exists.")
            state.pr_url = recovered
            return StepResult.ok()

        if not url:
            url = self.forge.find_open_pr(base=opts.target, head=opts.source)
        if not url:
            raise OperationError("PR was created but its URL could not be determined.")
        state.pr_url = url
        state.pr_created = True
        console.say(f"Created PR: {url}")
        return StepResult.ok()


class MergeStep(Step):
    """Merge now, or hand the PR to GitHub auto-merge."""

    name = "merge"

    def run(self, state: RunState) -> StepResult:
        opts = self.options
        if opts.dry_run:
            suffix = " and enable auto-merge if needed" if opts.auto else ""
            console.say(f"[dry-run] Would now merge PR ({state.pr_url}) with strategy '{opts.strategy}'{suffix}.")
            return StepResult.done("Dry-run complete.")

        if opts.auto:
            console.say(f"Merging (or enabling auto-merge) with strategy '{opts.strategy}'...")
        else:
            console.say(
                f"Attempting immediate merge with strategy '{opts.strategy}' (auto-merge disabled by flag)..."
            )

        try:
            result = self.forge.merge_pr(state.pr_url, opts.strategy, auto=opts.auto)
        except PowerPrError as exc:
            state.merge_succeeded = False
            return StepResult.warning("Merge command did not complete successfully. Details:", str(exc))
        state.merge_succeeded = result.returncode == 0
        if not state.merge_succeeded:
            details = "\n".join(
                part.strip() for part in (result.stdout, result.stderr) if part and part.strip()
            )
            return StepResult.warning("Merge command did not complete successfully. Details:", details)
        return StepResult.ok()


class ReportStep(Step):
    """Re-read the PR and say whether it merged."""

    name = "report"

    def run(self, state: RunState) -> StepResult:
        try:
            status = self.forge.view_pr(state.pr_url)
        except PowerPrError as exc:
            console.warn(f"Could not read final PR status: {exc}")
            status = PullRequestStatus()
        state.final_status = status

        print()
        if status.is_merged:
            console.say(f"PR merged ✓  ({state.pr_url})")
            return StepResult.ok()

        console.say(f"PR is open ({state.pr_url}).")
        if self.options.auto:
            if status.is_in_merge_queue:
                console.say("PR is in the merge queue. GitHub will merge it when the queue reaches it.")
            else:
                console.say(
                    "Auto-merge is likely enabled (or merge queued). "
                    "GitHub will merge when requirements are satisfied."
                )
        else:
            console.warn("Auto-merge was disabled via --no-auto. Manual follow-up may be required.")
        return StepResult.ok()


DEFAULT_STEPS = (
    PreflightStep,
    AuthStep,
    ResolveRepoStep,
    SyncBranchesStep,
    ReconcilePrStep,
    MergeStep,
    ReportStep,
)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


@dataclass
class PipelineOutcome:
    exit_code: int
    state: RunState
    results: list[tuple[str, StepResult]] = field(default_factory=list)

    @property
    def warnings(self) -> list[StepResult]:
        return [result for _, result in self.results if result.status == WARNING]


class Pipeline:
    """Runs the workflow steps in order for one set of Options."""

    def __init__(
        self,
        options: Options,
        git: Optional[Git] = None,
        forge: Optional[GitHubCLI] = None,
        clock: Optional[Callable[[], datetime]] = None,
        steps=DEFAULT_STEPS,
    ) -> None:
        self.options = options
        self.git = git or Git(timeout=options.timeout, verbose=options.verbose)
        self.forge = forge or GitHubCLI(timeout=options.timeout, verbose=options.verbose)
        self.steps = [step_cls(options, self.git, self.forge, clock) for step_cls in steps]

    def _run_step(self, step: Step, state: RunState) -> StepResult:
        try:
            return step.run(state)
        except PowerPrError as exc:
            if isinstance(exc, CommandError):
                console.echo_output(exc.output)
            return StepResult.fatal(str(exc), exit_code=exc.exit_code)

    def run(self) -> PipelineOutcome:
        state = RunState()
        outcome = PipelineOutcome(exit_code=0, state=state)

        for step in self.steps:
            result = self._run_step(step, state)
            outcome.results.append((step.name, result))

            if result.status == FATAL:
                console.error(result.message)
                outcome.exit_code = result.exit_code
                return outcome
            if result.status == WARNING:
                console.warn(result.message)
                console.echo_output(result.details)
            elif result.status == DONE:
                print()
                console.say(result.message)
                return outcome

        return outcome
