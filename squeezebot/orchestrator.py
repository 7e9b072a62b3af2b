"""Pipeline orchestration for a single repository run."""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, Optional

from .compression import CompressionEngine
from .config import load_repo_configuration
from .constants import BRANCH_NAME
from .fallback import FallbackQueue
from .git.clone import CloneCoordinator
from .git.composer import CommitComposer
from .git.history import read_last_optimization
from .git.inspector import RepositoryState, RepositoryStateInspector
from .git.publisher import Publisher
from .image_query import find_images
from .logging import run_logger
from .models import PipelineOutcome, RunParameters
from .schedule import should_optimize
from .signing import CommitSigner, GpgSigner

SignerFactory = Callable[[RunParameters], CommitSigner]
HistoryReader = Callable[[Path], Optional[datetime]]


def _default_signer(params: RunParameters) -> CommitSigner:
    return GpgSigner(params.signing_key, params.signing_passphrase)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Orchestrator:
    """Runs clone, inspection, scheduling, compression, commit, and push in order.

    Every stage before the push is local to the working copy, so a run that
    raises or returns ``NO_ACTION`` leaves the remote untouched.
    """

    def __init__(
        self,
        cloner: CloneCoordinator | None = None,
        inspector: RepositoryStateInspector | None = None,
        engine: CompressionEngine | None = None,
        composer: CommitComposer | None = None,
        publisher: Publisher | None = None,
        *,
        signer_factory: SignerFactory | None = None,
        history_reader: HistoryReader | None = None,
        clock: Callable[[], datetime] | None = None,
        branch_name: str = BRANCH_NAME,
    ) -> None:
        self.cloner = cloner or CloneCoordinator(fallback_queue=FallbackQueue.from_env())
        self.inspector = inspector or RepositoryStateInspector(branch_name)
        self.engine = engine or CompressionEngine()
        self.composer = composer or CommitComposer(branch_name)
        self.publisher = publisher or Publisher()
        self.signer_factory = signer_factory or _default_signer
        self.history_reader = history_reader or read_last_optimization
        self.clock = clock or _utcnow
        self.branch_name = branch_name

    def run(self, params: RunParameters) -> PipelineOutcome:
        log = run_logger("orchestrator", params.full_name)
        log.info("Starting run")

        cloned = self.cloner.clone(
            params.clone_url,
            params.local_path,
            params.credentials,
            fallback_payload=params.fallback_payload,
        )
        if cloned.deferred or cloned.path is None:
            log.info("Clone failed; run handed to the fallback queue")
            return PipelineOutcome.DEFERRED
        repo_path = cloned.path

        state = self.inspector.inspect(repo_path, params.credentials)
        if state is RepositoryState.EMPTY:
            log.info("Remote has no references")
            return PipelineOutcome.NO_ACTION
        if state is RepositoryState.BRANCH_EXISTS:
            log.info("Branch %s already exists", self.branch_name)
            return PipelineOutcome.NO_ACTION

        config = load_repo_configuration(repo_path)
        last_optimized = self.history_reader(repo_path)
        if not should_optimize(config, last_optimized, self.clock()):
            log.info("Skipping optimization due to schedule")
            return PipelineOutcome.NO_ACTION

        images = find_images(repo_path, config)
        log.debug("Discovered %d candidate images", len(images))
        results = self.engine.compress(
            repo_path,
            images,
            aggressive=config.aggressive_compression,
        )
        if not results:
            log.info("No images could be reduced")
            return PipelineOutcome.NO_ACTION

        self.composer.prepare_branch(repo_path)
        self.composer.compose(repo_path, results, self.signer_factory(params))
        self.publisher.push(repo_path, self.branch_name, params.credentials)
        log.info("Pushed %d optimized images to %s", len(results), self.branch_name)
        return PipelineOutcome.PUSHED


__all__ = ["Orchestrator"]
