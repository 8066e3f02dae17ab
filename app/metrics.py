"""Prometheus metrics for the results scraper.

All custom metrics use the 'results_scraper_' prefix to avoid conflicts
with other applications in a shared observability stack.
"""

from prometheus_client import Counter, Gauge, Histogram, Info

# Application info
APP_INFO = Info(
    "results_scraper_app",
    "Results scraper application info"
)
APP_INFO.info({"version": "1.0.0", "name": "results-scraper"})

# Scrape runs
SCRAPE_DURATION_SECONDS = Histogram(
    "results_scraper_scrape_duration_seconds",
    "Duration of scrape runs in seconds",
    buckets=[1, 2, 5, 10, 30, 60, 120],
)

SCRAPE_RUNS_TOTAL = Counter(
    "results_scraper_runs_total",
    "Total number of scrape runs by status",
    ["trigger", "status"],  # trigger: api, schedule; status: completed, empty, failed
)

RECORDS_PARSED = Gauge(
    "results_scraper_records_parsed",
    "Number of records parsed in the last run",
)

# Fetch / auth
FETCH_ATTEMPTS_TOTAL = Counter(
    "results_scraper_fetch_attempts_total",
    "Fetch attempts against the target page by outcome",
    ["outcome"],  # success, auth_rejected, transient
)

TOKEN_EXCHANGES_TOTAL = Counter(
    "results_scraper_token_exchanges_total",
    "Token endpoint exchanges by grant and status",
    ["grant_type", "status"],  # status: ok, error
)

# Data quality
ROWS_SKIPPED_TOTAL = Counter(
    "results_scraper_rows_skipped_total",
    "Table rows dropped by the parser",
    ["reason"],  # short_row, bad_date, empty, error
)

# Storage
STORAGE_POSTS_TOTAL = Counter(
    "results_scraper_storage_posts_total",
    "Records posted to the storage API by status",
    ["status"],  # stored, failed
)

# Scheduler
SCHEDULER_LAST_RUN = Gauge(
    "results_scraper_scheduler_last_run_timestamp",
    "Unix timestamp of last scheduled scrape run",
)
