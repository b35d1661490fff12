import logging

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from onchain_council_tally.api.db_models import db
from onchain_council_tally.api.db_queries import tally

# logger setup
_LOGGER = logging.getLogger(__name__)


app = FastAPI(
    default_response_class=ORJSONResponse,
    title="Council Election Tally API.",
    description="The Council Election Tally API provides the reconstructed on-chain votes of the council election.",
    version="0.0.1",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


#################################################################################################
#                                            Endpoints                                          #
#################################################################################################

CandidateQuery = Query(
    description="Name of a candidate as listed in the roster",
    examples=["Robbie Baxter"],
)


def _or_404(result, candidate: str):
    if result is None:
        raise HTTPException(status_code=404, detail=f"Unknown candidate {candidate}")
    return ORJSONResponse(result)


@app.get("/api/v1/health")
def health():
    last_refresh = db.Refresh.select().order_by(db.Refresh.id.desc()).first()
    return ORJSONResponse(
        {
            "status": "ok" if last_refresh else "nok",
            "last_refresh": {
                "finished_at": last_refresh.finished_at.isoformat(),
                "transaction_count": last_refresh.transaction_count,
            }
            if last_refresh
            else None,
        }
    )


@app.get("/api/v1/tallies")
def tallies(
    sort_by_voters: bool = Query(
        default=False,
        description="Order candidates by number of unique voters",
        examples=["true", "false", "1", "0"],
    ),
):
    """
    Get the stake weighted tally of every candidate
    """
    return ORJSONResponse(tally.query_tallies(sort_by_voters))


@app.get("/api/v1/stats")
def stats():
    """
    Get participation and stake statistics over all candidates
    """
    return ORJSONResponse(tally.query_stats())


@app.get("/api/v1/timeseries")
def timeseries():
    """
    Get the net stake of every candidate over the voting period
    """
    return ORJSONResponse(tally.query_timeseries())


@app.get("/api/v1/candidates/voters")
def candidate_voters(
    candidate: str = CandidateQuery,
    min_stake: float = Query(
        default=0,
        description="Only show voters with at least this much stake",
        examples=[0, 10000],
    ),
):
    """
    Get the voters of a candidate, largest stake first
    """
    return _or_404(tally.query_candidate_voters(candidate, min_stake), candidate)


@app.get("/api/v1/candidates/stake_breakdown")
def candidate_stake_breakdown(candidate: str = CandidateQuery):
    """
    Get the votes of a candidate grouped by voter stake size
    """
    return _or_404(tally.query_stake_breakdown(candidate), candidate)


@app.get("/api/v1/candidates/popular_vote")
def candidate_popular_vote(candidate: str = CandidateQuery):
    """
    Get the head count of yes, no, abstain and missing votes of a candidate
    """
    return _or_404(tally.query_popular_vote(candidate), candidate)


@app.get("/api/v1/non_voters")
def non_voters():
    """
    Get the eligible governors that have not voted, largest stake first
    """
    return ORJSONResponse(tally.query_non_voters())
