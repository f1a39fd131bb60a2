import logging
import threading
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional, Union

from googleapiclient.discovery import build

from ga_reporting.config import AnalyticsConfig, build_credentials
from ga_reporting.query import DateLike, Query, format_date
from ga_reporting.records import (
    PERIOD_FORMATS,
    PageViews,
    VisitorsAndPageViews,
    to_page_views,
    to_visitors_and_page_views,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "analytics"
API_VERSION = "v3"
SITE_ID_PREFIX = "ga:"


class SiteNotFoundError(LookupError):
    def __init__(self, url: str):
        super().__init__(f"Site {url} is not present in your Analytics account.")
        self.url = url


class Analytics:
    """Facade over the Google Analytics v3 Core Reporting and Management APIs."""

    def __init__(self, credentials):
        if credentials is None:
            raise ValueError("Analytics requires authenticated credentials")
        self.credentials = credentials
        self.service = build(SERVICE_NAME, API_VERSION, credentials=credentials, cache_discovery=False)
        self._site_ids: dict[str, str] = {}
        self._state = threading.local()

    @classmethod
    def from_config(cls, config: AnalyticsConfig) -> "Analytics":
        return cls(build_credentials(config))

    # -- batch mode --------------------------------------------------------

    @property
    def use_batch(self) -> bool:
        """True while the calling thread is inside batch_mode()."""
        return getattr(self._state, "use_batch", False)

    @contextmanager
    def batch_mode(self):
        """Make query() return unexecuted requests for the calling thread.

        The previous mode is restored on exit, whether or not the block raised.
        """
        previous = self.use_batch
        self._state.use_batch = True
        try:
            yield self
        finally:
            self._state.use_batch = previous

    # -- reporting ---------------------------------------------------------

    def build_query(
        self,
        ids: str,
        start_date: DateLike,
        end_date: DateLike,
        metrics: str,
        options: Optional[Mapping[str, Any]] = None,
    ):
        """Return the unexecuted data.ga.get request.

        Option names may use the API spelling ('max-results') or the
        Python one ('max_results').
        """
        params = {name.replace("-", "_"): value for name, value in (options or {}).items()}
        logger.debug("Building query for %s (%s..%s): %s %s", ids, start_date, end_date, metrics, params)
        return self.service.data().ga().get(
            ids=ids,
            start_date=format_date(start_date),
            end_date=format_date(end_date),
            metrics=metrics,
            **params,
        )

    def query(
        self,
        ids: str,
        start_date: DateLike,
        end_date: DateLike,
        metrics: str,
        options: Optional[Mapping[str, Any]] = None,
        deferred: Optional[bool] = None,
    ):
        """Run a report query.

        Returns the parsed response, or the unexecuted request when deferred.
        deferred=None follows the current batch mode.
        """
        request = self.build_query(ids, start_date, end_date, metrics, options)
        if deferred is None:
            deferred = self.use_batch
        if deferred:
            return request
        return request.execute()

    def batch_queries(self, queries: Iterable[Union[Query, Mapping[str, Any]]]) -> dict[str, Any]:
        """Run several queries in one HTTP batch.

        Each query may carry a 'key' used to identify its result; otherwise
        the batch assigns one. Returns {key: response}, where a failed
        sub-request maps to its exception instead of a response.
        """
        results: dict[str, Any] = {}

        def _collect(request_id, response, exception):
            if exception is not None:
                logger.warning("Batched query %s failed: %s", request_id, exception)
                results[request_id] = exception
            else:
                results[request_id] = response

        with self.batch_mode():
            batch = self.service.new_batch_http_request(callback=_collect)
            count = 0
            for item in queries:
                query = item if isinstance(item, Query) else Query.from_mapping(item)
                request = self.query(**query.arguments())
                batch.add(request, request_id=query.key)
                count += 1
            logger.info("Executing batch of %d queries", count)
            batch.execute()

        return results

    # -- management --------------------------------------------------------

    def segments(self):
        return self.service.management().segments()

    def accounts(self):
        return self.service.management().accounts()

    def goals(self):
        return self.service.management().goals()

    def profiles(self):
        return self.service.management().profiles()

    def webproperties(self):
        return self.service.management().webproperties()

    # -- site ids ----------------------------------------------------------

    def _refresh_site_ids(self) -> None:
        """Add newly listed sites to the cache; ids already cached are kept."""
        logger.info("Listing all Analytics profiles")
        sites = self.profiles().list(accountId="~all", webPropertyId="~all").execute()
        listed = {}
        for site in sites.get("items", []):
            url = site.get("websiteUrl")
            if not url:
                logger.debug("Skipping profile %s without websiteUrl", site.get("id"))
                continue
            listed[url] = SITE_ID_PREFIX + site["id"]
        for url, site_id in listed.items():
            self._site_ids.setdefault(url, site_id)
        logger.info("Cached %d site ids", len(self._site_ids))

    def get_all_sites_ids(self) -> dict[str, str]:
        if not self._site_ids:
            self._refresh_site_ids()
        return dict(self._site_ids)

    def get_site_id_by_url(self, url: str) -> str:
        if url not in self._site_ids:
            self._refresh_site_ids()

        if url in self._site_ids:
            return self._site_ids[url]

        raise SiteNotFoundError(url)

    # -- derived reports ---------------------------------------------------

    def get_visitors_and_page_views(
        self, ids: str, number_of_days: int = 365, group_by: str = "date"
    ) -> list[VisitorsAndPageViews]:
        """Visitors and pageviews for the last number_of_days, grouped by 'date' or 'yearMonth'."""
        start_date, end_date = self._calculate_number_of_days(number_of_days)
        return self.get_visitors_and_page_views_for_period(ids, start_date, end_date, group_by)

    def get_visitors_and_page_views_for_period(
        self, ids: str, start_date: DateLike, end_date: DateLike, group_by: str = "date"
    ) -> list[VisitorsAndPageViews]:
        if group_by not in PERIOD_FORMATS:
            raise ValueError(f"group_by must be one of {sorted(PERIOD_FORMATS)}, got {group_by!r}")
        answer = self.query(
            ids, start_date, end_date, "ga:visits,ga:pageviews",
            {"dimensions": f"ga:{group_by}"},
            deferred=False,
        )
        return to_visitors_and_page_views(answer.get("rows"), group_by)

    def get_most_visited_pages(
        self, ids: str, number_of_days: int = 365, max_results: int = 20
    ) -> list[PageViews]:
        """Most visited page paths for the last number_of_days, by descending pageviews."""
        start_date, end_date = self._calculate_number_of_days(number_of_days)
        return self.get_most_visited_pages_for_period(ids, start_date, end_date, max_results)

    def get_most_visited_pages_for_period(
        self, ids: str, start_date: DateLike, end_date: DateLike, max_results: int = 20
    ) -> list[PageViews]:
        answer = self.query(
            ids, start_date, end_date, "ga:pageviews",
            {"dimensions": "ga:pagePath", "sort": "-ga:pageviews", "max-results": max_results},
            deferred=False,
        )
        return to_page_views(answer.get("rows"), max_results)

    @staticmethod
    def _calculate_number_of_days(number_of_days: int) -> tuple[str, str]:
        """Return (start_date, end_date): number_of_days calendar days ago and today."""
        today = date.today()
        start = today - timedelta(days=number_of_days)
        return start.strftime("%Y-%m-%d"), today.strftime("%Y-%m-%d")
