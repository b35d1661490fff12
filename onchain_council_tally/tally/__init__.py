from .types import (
    Ballot,
    Candidate,
    CandidateTally,
    Choice,
    IndexerTransaction,
    TallyResult,
    TimeSeriesPoint,
    VotingStats,
)
from .note import decode_note, RegistrationNote, VotingNote, UnknownNote
from .registry import VoterRegistry, UnknownVoterId
from .stake_ledger import AmountTable, StakeLedger
from .reconstruct import VoteReconstructor
from .aggregate import aggregate
from .timeseries import TimeSeriesReplayer, bucket_boundaries
from .pipeline import run_refresh, TallySnapshot
