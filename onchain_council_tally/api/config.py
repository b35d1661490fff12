import os

from ..candidates import load_roster


def _optional_int(name):
    value = os.environ.get(name)
    return int(value) if value else None


indexer_url = os.environ.get("INDEXER_URL", "https://mainnet-idx.4160.nodely.dev")
voting_account = os.environ.get(
    "VOTING_ACCOUNT", "RW466IANOKLA36QARHMBX5VCY3PYDR3H2N5XHPDARG6UBOKCIK7WAMLSCA"
)
# default: first round of the council voting period
voting_start_round = int(os.environ.get("VOTING_START_ROUND", 51363025))
indexer_page_limit = int(os.environ.get("INDEXER_PAGE_LIMIT", 1000))

# the indexer provider throttles above 20 requests per second
indexer_max_requests = int(os.environ.get("INDEXER_MAX_REQUESTS", 20))
indexer_window_seconds = float(os.environ.get("INDEXER_WINDOW_SECONDS", 1.0))

governance_period_url = os.environ.get(
    "GOVERNANCE_PERIOD_URL",
    "https://governance.algorand.foundation/api/periods/governance-period-15/",
)

registration_csv = os.environ.get("REGISTRATION_CSV", "data/commit-amount.csv")
withdrawal_csv = os.environ.get("WITHDRAWAL_CSV", "data/withdrawn-addresses.csv")
eligible_csv = os.environ.get("ELIGIBLE_CSV", "data/final-commit-amount.csv")

roster = load_roster(os.environ.get("ROSTER_FILE"))

database_path = os.environ.get("DATABASE_PATH", "onchain_council_tally.db")

refresh_interval_seconds = int(os.environ.get("REFRESH_INTERVAL_SECONDS", 3600))
timeseries_buckets = int(os.environ.get("TIMESERIES_BUCKETS", 200))
timeseries_min_bucket_millis = (
    int(os.environ.get("TIMESERIES_MIN_BUCKET_SECONDS", 60)) * 1000
)

# independent estimate of the total eligible stake in micro units, if known
expected_total_stake = _optional_int("EXPECTED_TOTAL_STAKE")
expected_total_tolerance = float(os.environ.get("EXPECTED_TOTAL_TOLERANCE", 0.01))
