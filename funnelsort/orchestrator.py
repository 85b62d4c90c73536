"""
Funnel Orchestrator
===================

Sorts one directory: every regular file is classified by the cheapest
stage that can decide (filename rules, then metadata, then the inference
engine), moved into its taxonomy folder without ever overwriting an
existing file, and counted. Once all files are placed, each destination
folder gets a summary sidecar.

Up to ``funnel.concurrency`` files are in flight at once on a single
event loop. A failure while processing one file is reported and the run
continues with the rest.
"""

import asyncio
import os
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set

from funnelsort.actions import (
    ConflictAction,
    ConflictResolver,
    FileOperations,
    FolderSummarizer,
)
from funnelsort.classification import (
    ClassificationResult,
    Confidence,
    Stage,
    Tier1PatternClassifier,
    Tier2MetadataClassifier,
    Tier3LLMClassifier,
)
from funnelsort.config import Config, TaxonomyRegistry, DEFAULT_TAXONOMY, ASSET_EXTENSIONS
from funnelsort.inference import ModelManager, OllamaClient
from funnelsort.monitoring import events as ev
from funnelsort.monitoring import EventEmitter, FunnelStats
from funnelsort.utils.logging_config import get_logger, new_correlation_id, Timer
from funnelsort.utils.exceptions import FileProcessingError

logger = get_logger(__name__)


@dataclass
class FileTask:
    """A file enumerated for the current run."""
    filename: str
    path: Path
    stat: os.stat_result


@dataclass
class ProcessedFile:
    """A file that was moved into a destination folder."""
    name: str
    type: str
    size: str
    dest: str
    reason: str
    stage: str
    confidence: str
    final_path: Path

    def to_event(self) -> dict:
        """Payload of the file-processed event."""
        return {
            "name": self.name,
            "type": self.type,
            "size": self.size,
            "dest": self.dest,
            "reason": self.reason,
            "stage": self.stage,
        }


@dataclass
class RunReport:
    """Outcome of a directory run."""
    root: Path
    stats: Dict[str, int]
    processed: List[ProcessedFile]
    folders: List[str]
    elapsed: float
    failures: Dict[str, str] = field(default_factory=dict)


@dataclass
class _RunState:
    root: Path
    total: int
    completed: int = 0
    processed: List[ProcessedFile] = field(default_factory=list)
    touched_folders: Set[str] = field(default_factory=set)
    failures: Dict[str, str] = field(default_factory=dict)
    folder_locks: Dict[str, asyncio.Lock] = field(default_factory=dict)

    def lock_for(self, folder: str) -> asyncio.Lock:
        return self.folder_locks.setdefault(folder, asyncio.Lock())


class FunnelOrchestrator:
    """Runs the three-stage funnel over a directory."""

    LOG_LEVELS = {
        "info": "info",
        "process": "debug",
        "success": "info",
        "warning": "warning",
        "error": "error",
    }

    def __init__(
        self,
        config: Optional[Config] = None,
        taxonomy: Optional[TaxonomyRegistry] = None,
        model_manager: Optional[ModelManager] = None,
        vision_manager: Optional[ModelManager] = None,
        stage3: Optional[Tier3LLMClassifier] = None,
        summarizer: Optional[FolderSummarizer] = None,
        stage1: Optional[Tier1PatternClassifier] = None,
        stage2: Optional[Tier2MetadataClassifier] = None,
        file_ops: Optional[FileOperations] = None,
        conflict_resolver: Optional[ConflictResolver] = None,
        events: Optional[EventEmitter] = None,
    ):
        """Initialize the orchestrator.

        Args:
            config: Application configuration.
            taxonomy: Registry of legal destination folders.
            model_manager: Wake/sleep controller for the text model.
            vision_manager: Wake/sleep controller for the vision model.
            stage3: LLM arbiter. Stage 3 is skipped when None.
            summarizer: Folder summarizer. Summaries are skipped when None.
            stage1: Filename rule classifier.
            stage2: Metadata classifier.
            file_ops: Filesystem operations.
            conflict_resolver: Destination collision policy.
            events: Observer surface for progress events.
        """
        self.config = config or Config()
        self.taxonomy = taxonomy or DEFAULT_TAXONOMY
        self.model_manager = model_manager
        self.vision_manager = vision_manager
        self.stage1 = stage1 or Tier1PatternClassifier()
        self.stage2 = stage2 or Tier2MetadataClassifier(self.config.metadata)
        self.stage3 = stage3
        self.summarizer = summarizer
        self.file_ops = file_ops or FileOperations()
        self.conflict_resolver = conflict_resolver or ConflictResolver()
        self.events = events or EventEmitter()
        self.stats = FunnelStats()

    @classmethod
    def from_config(
        cls,
        config: Config,
        client: Optional[OllamaClient] = None,
        events: Optional[EventEmitter] = None,
    ) -> "FunnelOrchestrator":
        """Build an orchestrator and its inference components from config.

        Args:
            config: Application configuration.
            client: Inference client. Built from ``config.inference`` if None.
            events: Observer surface.
        """
        taxonomy = DEFAULT_TAXONOMY
        model_manager = None
        vision_manager = None
        stage3 = None
        summarizer = None

        if config.inference.enabled:
            inference = config.inference
            client = client or OllamaClient(
                host=inference.host,
                timeout=inference.request_timeout,
            )

            def manager(model_name: str) -> ModelManager:
                return ModelManager(
                    client,
                    model_name=model_name,
                    keep_alive_seconds=inference.keep_alive_seconds,
                    auto_unload_seconds=inference.auto_unload_seconds,
                    load_timeout=inference.load_timeout,
                )

            model_manager = manager(inference.text_model)
            if inference.vision_model != inference.text_model:
                vision_manager = manager(inference.vision_model)
            stage3 = Tier3LLMClassifier(client, taxonomy, inference)
            if config.summary.enabled:
                summarizer = FolderSummarizer(client, config.summary, config.inference)

        return cls(
            config=config,
            taxonomy=taxonomy,
            model_manager=model_manager,
            vision_manager=vision_manager,
            stage3=stage3,
            summarizer=summarizer,
            events=events,
        )

    # =====================
    # Event helpers
    # =====================

    def _log(self, msg: str, msg_type: str = "info", **extra) -> None:
        getattr(logger, self.LOG_LEVELS.get(msg_type, "info"))(msg, extra=extra or None)
        self.events.emit(ev.LOG_UPDATE, {"msg": msg, "type": msg_type})

    def _status(self, filename: str, status: str, stage: Optional[Stage]) -> None:
        self.events.emit(ev.FILE_PROCESSING_STATUS, {
            "filename": filename,
            "status": status,
            "stage": stage.value if stage else None,
        })

    def _emit_stats(self) -> None:
        self.events.emit(ev.FUNNEL_STATS, self.stats.to_dict())

    # =====================
    # Run
    # =====================

    async def process_directory(self, root: Path) -> RunReport:
        """Sort every candidate file directly inside ``root``.

        Args:
            root: Directory to sort.

        Returns:
            RunReport for the run.

        Raises:
            DirectoryAccessError: If ``root`` cannot be listed.
        """
        root = Path(root)
        self.stats = FunnelStats()

        candidates = await asyncio.to_thread(
            self.file_ops.list_candidates, root, self.config.funnel.ignored_filenames
        )
        candidates = await asyncio.to_thread(self._rename_folder_clashes, root, candidates)
        self.conflict_resolver.clear_history()

        run = _RunState(root=root, total=len(candidates))
        self.events.emit(ev.PROCESSING_START, {"total": run.total})
        self._log(f"Starting sort for {root} ({run.total} files)", "info")

        with Timer(logger, f"sort {root}") as timer:
            await self._drain(run, candidates)
            folders = sorted(run.touched_folders)
            await self._summarize_folders(run, folders)

        stats = self.stats.to_dict()
        self.events.emit(ev.PROCESSING_COMPLETE, {
            "totalMoved": len(run.processed),
            "totalProcessed": self.stats.total_processed,
            "duplicatesDeleted": self.stats.duplicates_deleted,
            "totalFolders": len(folders),
            "processingTime": round(timer.elapsed, 2),
            "funnelBreakdown": stats,
        })

        return RunReport(
            root=root,
            stats=stats,
            processed=list(run.processed),
            folders=folders,
            elapsed=timer.elapsed,
            failures=dict(run.failures),
        )

    def _rename_folder_clashes(self, root: Path, candidates):
        """Rename root files named like a taxonomy folder.

        The folder could not be created next to such a file. A file that
        cannot be renamed keeps its name and is logged.
        """
        folder_names = {folder.casefold() for folder in self.taxonomy.list_folders()}
        result = []
        for filename, stat_result in candidates:
            if filename.casefold() in folder_names:
                source = root / filename
                try:
                    renamed = self.file_ops.move_file(source, self.conflict_resolver.unique_name(source))
                except FileProcessingError as e:
                    logger.error(f"Cannot rename {filename} away from its folder name: {e}")
                else:
                    logger.warning(f"Renamed {filename} -> {renamed.name} (name reserved for a folder)")
                    filename = renamed.name
            result.append((filename, stat_result))
        return result

    async def _drain(self, run: _RunState, candidates) -> None:
        """Process the queue with at most ``concurrency`` tasks in flight."""
        queue = deque(candidates)
        in_flight: Set[asyncio.Task] = set()
        limit = self.config.funnel.concurrency

        while queue or in_flight:
            while queue and len(in_flight) < limit:
                filename, stat_result = queue.popleft()
                task = FileTask(filename=filename, path=run.root / filename, stat=stat_result)
                in_flight.add(asyncio.create_task(self._process_file(run, task)))

            done, in_flight = await asyncio.wait(in_flight, return_when=asyncio.FIRST_COMPLETED)
            for finished in done:
                finished.result()

    async def _process_file(self, run: _RunState, task: FileTask) -> None:
        """Classify and place one file. Never raises for per-file failures."""
        new_correlation_id()
        self._status(task.filename, "analyzing", None)
        self._log(f"Analyzing: {task.filename}", "process")

        try:
            result = await self._classify(task)
            await self._place(run, task, result)
        except Exception as e:
            self.stats.record_failure()
            run.failures[task.filename] = str(e)
            self._status(task.filename, "error", None)
            self._log(f"Error processing {task.filename}: {e}", "error", file_path=str(task.path))
        finally:
            run.completed += 1
            interval = self.config.funnel.stats_emit_interval
            if run.completed % interval == 0 or run.completed == run.total:
                self._emit_stats()

    async def _classify(self, task: FileTask) -> ClassificationResult:
        """Run the stages in order, stopping at the first hit."""
        result = self.stage1.classify(task.filename)
        if result:
            return result

        self._status(task.filename, "analyzing", Stage.STAGE2)
        result = self.stage2.classify(task.path, task.stat)
        if result:
            return result

        if self.stage3 is not None:
            self._status(task.filename, "analyzing", Stage.STAGE3)
            manager = self._manager_for(task.path)
            if manager is None or await manager.wake():
                result = await self.stage3.classify(task.path)
                if result:
                    return result
            else:
                self._log(f"AI unavailable, using fallback for {task.filename}", "warning")

        return ClassificationResult(
            folder=self.taxonomy.fallback,
            reason="No stage could classify the file",
            stage=Stage.FALLBACK,
            confidence=Confidence.NONE,
        )

    async def _place(self, run: _RunState, task: FileTask, result: ClassificationResult) -> None:
        """Move a classified file into its folder, or delete it as a duplicate."""
        folder = self.taxonomy.sanitize(result.folder)
        dest_dir = run.root / folder
        dest_path = dest_dir / task.filename

        # Check, compare and move must see a consistent destination folder
        async with run.lock_for(folder):
            await asyncio.to_thread(self.file_ops.ensure_directory, dest_dir)
            conflict = await asyncio.to_thread(
                self.conflict_resolver.resolve, task.path, dest_path
            )
            if conflict.action is ConflictAction.DUPLICATE:
                await asyncio.to_thread(self.file_ops.delete_file, task.path)
            else:
                final_path = await asyncio.to_thread(
                    self.file_ops.move_file, task.path, conflict.result_path
                )

        run.touched_folders.add(folder)

        if conflict.action is ConflictAction.DUPLICATE:
            self.stats.record(result.stage, duplicate=True)
            self.events.emit(ev.FILE_DUPLICATE_DETECTED, {
                "filename": task.filename,
                "originalPath": str(conflict.result_path),
            })
            self._status(task.filename, "duplicate", result.stage)
            self._log(f"Duplicate deleted: {task.filename} (same as {conflict.result_path.name})", "warning")
            return

        self.stats.record(result.stage)
        processed = ProcessedFile(
            name=task.filename,
            type="image" if task.path.suffix.lower() in ASSET_EXTENSIONS else "doc",
            size=f"{task.stat.st_size / 1024:.1f}KB",
            dest=folder,
            reason=result.reason,
            stage=result.stage.value,
            confidence=result.confidence.value,
            final_path=final_path,
        )
        run.processed.append(processed)
        self.events.emit(ev.FILE_PROCESSED, processed.to_event())
        self._status(task.filename, "done", result.stage)
        self._log(
            f"Moved {task.filename} -> {folder}", "success",
            file_path=str(final_path), folder=folder, stage=result.stage.value,
        )

    async def _summarize_folders(self, run: _RunState, folders: List[str]) -> None:
        """Write a summary sidecar into every touched folder."""
        if self.summarizer is None or not folders:
            return

        self._log("Generating folder context metadata...", "info")
        if self.model_manager is not None:
            await self.model_manager.wake()

        for folder in folders:
            try:
                summary = await self.summarizer.summarize(run.root / folder, folder)
            except Exception as e:
                self._log(f"Metadata failed: {folder} ({e})", "warning")
                continue

            if summary is None or summary.error:
                self._log(f"Metadata failed: {folder}", "warning")
            else:
                self._log(f"Context generated for: {folder}", "success")

    def _managers(self) -> List[ModelManager]:
        return [m for m in (self.model_manager, self.vision_manager) if m is not None]

    def _manager_for(self, path: Path) -> Optional[ModelManager]:
        """The manager owning the model Stage 3 will use for ``path``."""
        model = self.stage3.model_for(path)
        for manager in self._managers():
            if manager.model_name == model:
                return manager
        return None

    async def shutdown(self) -> None:
        """Release the inference engine's model memory."""
        for manager in self._managers():
            await manager.force_unload()
