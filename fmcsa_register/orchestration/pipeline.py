"""
Pipeline orchestrator for the FMCSA Register scraper.
"""

import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, date, timedelta, timezone
from typing import Callable, List, Optional, Dict
import structlog

from ..core.cache import RegisterCache
from ..core.config import settings
from ..core.dates import format_register_date, today_utc
from ..core.exceptions import InvalidDocument, PersistenceFailure, SourceUnavailable
from ..core.models import ExtractionResult, PipelineRun
from ..ingestion import FMCSARegisterClient
from ..processing import RegisterExtractor
from ..storage import RegisterDB

logger = structlog.get_logger(__name__)


class RegisterPipeline:
    """Fetch -> validate -> normalize -> extract -> persist, one register date at a time."""

    def __init__(self,
                 client: Optional[FMCSARegisterClient] = None,
                 extractor: Optional[RegisterExtractor] = None,
                 db: Optional[RegisterDB] = None,
                 cache: Optional[RegisterCache] = None,
                 client_factory: Callable[[], FMCSARegisterClient] = FMCSARegisterClient):
        self.client = client or FMCSARegisterClient()
        # run_range builds one client per date; requests.Session is not thread-safe
        self.client_factory = client_factory
        self.extractor = extractor or RegisterExtractor()
        self.db = db or RegisterDB()
        if cache is None and settings.cache_enabled:
            cache = RegisterCache.from_settings()
        self.cache = cache

    def fetch_and_extract(self, target_date: date,
                          client: Optional[FMCSARegisterClient] = None) -> ExtractionResult:
        """Fetch and extract the register for a date.

        Raises:
            SourceUnavailable: If the page could not be retrieved
            InvalidDocument: If the page is not a register document
        """
        register_date = format_register_date(target_date)
        markup = (client or self.client).fetch_register_page(register_date)
        result = self.extractor.extract(markup, register_date)
        result.entries = [entry.model_copy(update={"fetch_date": target_date})
                          for entry in result.entries]
        return result

    def run(self, target_date: Optional[date] = None, refresh: bool = False,
            client: Optional[FMCSARegisterClient] = None) -> PipelineRun:
        """
        Execute the pipeline for one register date.

        Args:
            target_date: Date to scrape. Defaults to today (UTC).
            refresh: Ignore any cached extraction for the date.
            client: Client to fetch with instead of the pipeline's own.

        Returns:
            PipelineRun: Results of the pipeline execution.
        """
        if target_date is None:
            target_date = today_utc()

        pipeline_run = PipelineRun(
            run_id=str(uuid.uuid4()),
            fetch_date=target_date,
            register_date=format_register_date(target_date),
            start_time=datetime.now(timezone.utc),
        )
        log = logger.bind(run_id=pipeline_run.run_id, register_date=pipeline_run.register_date)
        log.info("Starting register pipeline", refresh=refresh)

        if self.cache is not None and not refresh:
            cached = self.cache.get_cached_entries(target_date)
            if cached is not None:
                log.info("Using cached register entries", count=len(cached))
                pipeline_run.entries = cached
                pipeline_run.entries_extracted = len(cached)
                pipeline_run.from_cache = True
                return self._finish(pipeline_run, "completed")

        try:
            result = self.fetch_and_extract(target_date, client=client)
        except SourceUnavailable as e:
            log.error("Register source unavailable", error=str(e), status_code=e.status_code)
            return self._finish(pipeline_run, "source_unavailable", str(e))
        except InvalidDocument as e:
            log.error("Invalid register document", error=str(e))
            return self._finish(pipeline_run, "invalid_document", str(e))

        pipeline_run.entries = result.entries
        pipeline_run.entries_extracted = result.count

        try:
            pipeline_run.entries_saved = self.db.upsert_entries(result.entries, target_date)
        except PersistenceFailure as e:
            log.error("Failed to save register entries", error=str(e), count=result.count)
            return self._finish(pipeline_run, "persistence_failed", str(e))

        if self.cache is not None:
            self.cache.cache_entries(target_date, result.entries)

        self._finish(pipeline_run, "completed")
        log.info("Register pipeline completed",
                 entries_extracted=pipeline_run.entries_extracted,
                 entries_saved=pipeline_run.entries_saved,
                 duration_seconds=(pipeline_run.end_time - pipeline_run.start_time).total_seconds())
        return pipeline_run

    def run_range(self, start_date: date, end_date: date,
                  max_workers: Optional[int] = None) -> List[PipelineRun]:
        """Run the pipeline for every date in [start_date, end_date] in parallel.

        Each date is an independent run; results are returned in date order.
        """
        if end_date < start_date:
            raise ValueError(f"end_date {end_date} is before start_date {start_date}")

        dates = [start_date + timedelta(days=offset)
                 for offset in range((end_date - start_date).days + 1)]
        workers = max_workers or settings.max_workers

        logger.info("Starting register backfill",
                    start_date=str(start_date),
                    end_date=str(end_date),
                    dates=len(dates),
                    workers=workers)

        runs: Dict[date, PipelineRun] = {}
        with ThreadPoolExecutor(max_workers=workers) as executor:
            future_to_date = {executor.submit(self._run_with_own_client, target_date): target_date
                              for target_date in dates}
            for future in as_completed(future_to_date):
                target_date = future_to_date[future]
                runs[target_date] = future.result()

        succeeded = sum(1 for run in runs.values() if run.succeeded)
        logger.info("Register backfill finished",
                    succeeded=succeeded,
                    failed=len(runs) - succeeded)
        return [runs[target_date] for target_date in dates]

    def _run_with_own_client(self, target_date: date) -> PipelineRun:
        client = self.client_factory()
        try:
            return self.run(target_date, client=client)
        finally:
            client.close()

    def health_check(self) -> Dict[str, bool]:
        """Check the health of pipeline collaborators."""
        health = {
            "register_source": self.client.health_check(),
            "database": self.db.health_check(),
        }
        if self.cache is not None:
            health["cache"] = self.cache.health_check()
        return health

    @staticmethod
    def _finish(pipeline_run: PipelineRun, status: str,
                error_message: Optional[str] = None) -> PipelineRun:
        pipeline_run.end_time = datetime.now(timezone.utc)
        pipeline_run.status = status
        pipeline_run.error_message = error_message
        return pipeline_run
