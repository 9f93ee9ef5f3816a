"""
Collection orchestrator.

Drives one collection run end to end: fetch the trending list, enrich
every repository with its language breakdown and a README summary,
persist the snapshots, then rebuild the daily and weekly language rollups.

At most one run is active per process. trigger() claims the run through
ProgressTracker.start(), which is an atomic compare-and-set, and returns
immediately while the pipeline continues as a background task.
"""

import asyncio
import logging
import uuid
from datetime import date, datetime
from typing import Dict, List, Optional, Set

from gitbrief.collectors.interfaces import RemoteError, RepoSource, TrendSource
from gitbrief.observability.logging import log_context
from gitbrief.observability.metrics import (
    collection_running_gauge,
    collection_runs_counter,
    repos_processed_counter,
)
from gitbrief.processing.languages import LanguageNormalizer, NormalizedLanguages
from gitbrief.services.progress import ProgressTracker
from gitbrief.services.summarizer import Summarizer, SummaryError
from gitbrief.storage.interfaces import StorageError, TrendStore
from gitbrief.types import RepoOutcome, RepoSnapshot, Summary, TrendingRepo, TriggerResult

logger = logging.getLogger(__name__)

FETCHING_MESSAGE = "fetching trending list"
COMPLETED_MESSAGE = "completed"


class FatalPipelineError(Exception):
    """Raised when a run cannot continue (the trending list is unreachable)."""

    pass


class CollectionOrchestrator:
    """
    Single-flight collection pipeline.

    Repositories are processed by a bounded worker pool. A failure while
    enriching one repository is logged and degrades that repository to a
    partial snapshot; only a failed trending-list fetch aborts the run.

    Example:
        ```python
        orchestrator = CollectionOrchestrator(trend_source, repo_source, summarizer, store)
        result = await orchestrator.trigger()
        if result == TriggerResult.ALREADY_RUNNING:
            ...  # follow tracker.subscribe() instead
        ```
    """

    def __init__(
        self,
        trend_source: TrendSource,
        repo_source: RepoSource,
        summarizer: Summarizer,
        store: TrendStore,
        tracker: Optional[ProgressTracker] = None,
        normalizer: Optional[LanguageNormalizer] = None,
        concurrency: int = 4,
        trending_limit: int = 100,
    ):
        """
        Initialize the orchestrator.

        Args:
            trend_source: Remote trend index
            repo_source: Languages and README provider
            summarizer: README summarizer
            store: Snapshot persistence
            tracker: Shared run state (a fresh one if omitted)
            normalizer: Language normalizer (20% threshold if omitted)
            concurrency: Number of repositories enriched in parallel
            trending_limit: Maximum number of repositories per run
        """
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")

        self.trend_source = trend_source
        self.repo_source = repo_source
        self.summarizer = summarizer
        self.store = store
        self.tracker = tracker or ProgressTracker()
        self.normalizer = normalizer or LanguageNormalizer()
        self.concurrency = concurrency
        self.trending_limit = trending_limit

        # Track active runs so they are not garbage collected mid-flight
        self._active_tasks: Dict[str, asyncio.Task] = {}

    # ------------------------------------------------------------------
    # Trigger
    # ------------------------------------------------------------------

    async def trigger(self, target_date: Optional[date] = None) -> TriggerResult:
        """
        Start a collection run in the background.

        Args:
            target_date: Snapshot date (defaults to today, UTC)

        Returns:
            STARTED if this call launched a run, ALREADY_RUNNING otherwise
        """
        if not self.tracker.start(total=0, message=FETCHING_MESSAGE):
            logger.info("Collection trigger ignored: a run is already in progress")
            return TriggerResult.ALREADY_RUNNING

        day = target_date or datetime.utcnow().date()
        run_id = uuid.uuid4().hex[:8]

        task = asyncio.create_task(self._run(day, run_id), name=f"collect_{run_id}")
        self._active_tasks[run_id] = task
        task.add_done_callback(lambda t: self._active_tasks.pop(run_id, None))

        logger.info(f"Triggered collection run {run_id} for {day}")
        return TriggerResult.STARTED

    async def wait(self) -> None:
        """Wait for every active run to finish."""
        tasks = list(self._active_tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    @property
    def is_running(self) -> bool:
        return self.tracker.is_running

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, day: date, run_id: str) -> None:
        collection_running_gauge.set(1)
        # Overwritten below unless the task is cancelled mid-run
        message, status = "failed: cancelled", "cancelled"
        with log_context(run_id=run_id, date=day.isoformat()):
            logger.info(f"Collection run started for {day}")
            try:
                failure: Optional[str] = None
                outcomes: List[RepoOutcome] = []
                try:
                    outcomes = await self._collect(day)
                except FatalPipelineError as e:
                    logger.error(f"Collection run aborted: {e}", exc_info=True)
                    failure = str(e)
                except Exception as e:
                    logger.error(f"Unexpected error in collection run: {e}", exc_info=True)
                    failure = str(e) or type(e).__name__

                # Rollups are rebuilt from whatever was persisted, even after an abort
                await self._recompute_rollups(day)

                if failure is not None:
                    message, status = f"failed: {failure}", "failed"
                else:
                    counts = {outcome: outcomes.count(outcome) for outcome in RepoOutcome}
                    logger.info(
                        f"Collection run completed: {len(outcomes)} repos "
                        f"(full={counts[RepoOutcome.FULL]}, partial={counts[RepoOutcome.PARTIAL]}, "
                        f"skipped={counts[RepoOutcome.SKIPPED]}, failed={counts[RepoOutcome.FAILED]})"
                    )
                    message, status = COMPLETED_MESSAGE, "completed"
            finally:
                if status == "cancelled":
                    logger.warning("Collection run cancelled")
                self._finish(message, status=status)

    def _finish(self, message: str, status: str) -> None:
        self.tracker.finish(message)
        collection_runs_counter.labels(status=status).inc()
        collection_running_gauge.set(0)

    async def _collect(self, day: date) -> List[RepoOutcome]:
        repos = await self._fetch_trending()
        self.tracker.set_total(len(repos))

        try:
            summarized_ids = await self.store.get_summarized_repo_ids(day)
        except StorageError as e:
            logger.warning(f"Could not read existing summaries for {day}: {e}")
            summarized_ids = set()

        semaphore = asyncio.Semaphore(self.concurrency)

        async def process_with_semaphore(rank: int, repo: TrendingRepo) -> RepoOutcome:
            async with semaphore:
                return await self._process_repo(day, rank, repo, summarized_ids)

        return await asyncio.gather(
            *[process_with_semaphore(rank, repo) for rank, repo in enumerate(repos, start=1)]
        )

    async def _fetch_trending(self) -> List[TrendingRepo]:
        try:
            repos = await self.trend_source.get_trending_repos(self.trending_limit)
        except RemoteError as e:
            raise FatalPipelineError(f"trending list unavailable: {e}") from e
        return repos[: self.trending_limit]

    async def _process_repo(
        self,
        day: date,
        rank: int,
        repo: TrendingRepo,
        summarized_ids: Set[int],
    ) -> RepoOutcome:
        """
        Enrich, persist and summarize one repository.

        Always advances the tracker exactly once, whatever happens.
        """
        try:
            outcome = await self._enrich(day, rank, repo, summarized_ids)
        except Exception as e:
            logger.warning(f"Failed to process {repo.repo_name}: {e}", exc_info=True)
            outcome = RepoOutcome.FAILED
        finally:
            self.tracker.advance(repo.repo_name)

        repos_processed_counter.labels(outcome=outcome.value).inc()
        return outcome

    async def _enrich(
        self,
        day: date,
        rank: int,
        repo: TrendingRepo,
        summarized_ids: Set[int],
    ) -> RepoOutcome:
        complete = True

        languages: Optional[NormalizedLanguages] = None
        try:
            raw = await self.repo_source.get_languages(repo.repo_name)
            languages = self.normalizer.normalize(raw)
        except Exception as e:
            logger.warning(f"Language fetch failed for {repo.repo_name}: {e}")
            complete = False

        if repo.repo_id in summarized_ids:
            # Summary already stored for this date; refresh index data only
            await self.store.upsert_snapshot(self._build_snapshot(day, rank, repo, languages, None))
            return RepoOutcome.SKIPPED

        readme: Optional[str] = None
        readme_fetched = True
        try:
            readme = await self.repo_source.get_readme(repo.repo_name)
        except Exception as e:
            logger.warning(f"README fetch failed for {repo.repo_name}: {e}")
            readme_fetched = False
            complete = False

        await self.store.upsert_snapshot(self._build_snapshot(day, rank, repo, languages, readme))

        if not readme_fetched:
            return RepoOutcome.PARTIAL

        try:
            text = await self.summarizer.summarize(readme, repo_name=repo.repo_name)
        except SummaryError as e:
            logger.warning(f"Summary unavailable for {repo.repo_name}: {e}")
            return RepoOutcome.PARTIAL

        try:
            await self.store.save_summary(Summary(repo_id=repo.repo_id, date=day, text=text))
        except StorageError as e:
            logger.warning(f"Failed to save summary for {repo.repo_name}: {e}")
            return RepoOutcome.PARTIAL

        return RepoOutcome.FULL if complete else RepoOutcome.PARTIAL

    def _build_snapshot(
        self,
        day: date,
        rank: int,
        repo: TrendingRepo,
        languages: Optional[NormalizedLanguages],
        readme: Optional[str],
    ) -> RepoSnapshot:
        if languages is not None:
            primary_language = languages.primary_language
            shares = languages.shares
        else:
            primary_language = repo.primary_language
            shares = None

        return RepoSnapshot(
            date=day,
            repo_id=repo.repo_id,
            repo_name=repo.repo_name,
            url=repo.url,
            rank=rank,
            score=repo.total_score,
            primary_language=primary_language,
            languages=shares,
            description=repo.description,
            readme_text=readme,
            stars=repo.stars,
            forks=repo.forks,
            pull_requests=repo.pull_requests,
            pushes=repo.pushes,
            contributor_logins=repo.contributor_logins,
            collection_names=repo.collection_names,
        )

    async def _recompute_rollups(self, day: date) -> None:
        try:
            daily = await self.store.recompute_daily_language_trends(day)
            weekly = await self.store.recompute_weekly_language_trends(day)
            logger.info(f"Recomputed language trends: {len(daily)} daily, {len(weekly)} weekly")
        except StorageError as e:
            logger.error(f"Failed to recompute language trends for {day}: {e}")

    async def close(self, timeout: float = 30.0) -> None:
        """
        Release remote clients and storage.

        An active run gets `timeout` seconds to finish before it is cancelled.
        """
        tasks = list(self._active_tasks.values())
        if tasks:
            _, pending = await asyncio.wait(tasks, timeout=timeout)
            for task in pending:
                logger.warning(f"Cancelling collection task {task.get_name()} on shutdown")
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        for component in (self.trend_source, self.repo_source, self.summarizer):
            close = getattr(component, "close", None)
            if close is not None:
                await close()
        await self.store.close()


def build_orchestrator(settings, tracker: Optional[ProgressTracker] = None) -> CollectionOrchestrator:
    """
    Wire the production components from settings.

    Args:
        settings: gitbrief.config.Settings
        tracker: Shared run state (a fresh one if omitted)
    """
    from gitbrief.collectors.github import GitHubRepoSource
    from gitbrief.collectors.oss_insight import OssInsightTrendSource
    from gitbrief.services.retry import RetryPolicy
    from gitbrief.storage.sqlite import SQLiteTrendStore

    retry_policy = RetryPolicy(
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay_seconds,
    )
    timeout = settings.request_timeout_seconds

    return CollectionOrchestrator(
        trend_source=OssInsightTrendSource(
            base_url=settings.oss_insight_base_url,
            token=settings.oss_insight_token,
            timeout=timeout,
            retry_policy=retry_policy,
        ),
        repo_source=GitHubRepoSource(
            api_url=settings.github_api_url,
            raw_url=settings.github_raw_url,
            token=settings.github_token,
            timeout=timeout,
            retry_policy=retry_policy,
        ),
        summarizer=Summarizer(
            base_url=settings.deepseek_base_url,
            api_key=settings.deepseek_api_key,
            model=settings.deepseek_model,
            language=settings.summary_language,
            max_input_chars=settings.readme_max_chars,
            timeout=timeout,
            retry_policy=retry_policy,
        ),
        store=SQLiteTrendStore.open(settings.database_path),
        tracker=tracker,
        normalizer=LanguageNormalizer(
            threshold=settings.language_threshold_percent,
            renormalize=settings.renormalize_repo_languages,
        ),
        concurrency=settings.collect_concurrency,
        trending_limit=settings.trending_limit,
    )
