"""
Reward API Routes — FastAPI router over RewardPoolEngine.

Endpoints:
  - GET  /api/rewards/pools              — allocation / claimed / remaining
  - GET  /api/rewards/mode               — launch mode and pause state
  - GET  /api/rewards/users/{address}    — per-user eligibility and claimables
  - POST /api/rewards/claim              — user pull claim
  - POST /api/rewards/admin/tiers        — assign bug bounty tier
  - POST /api/rewards/admin/deployers    — whitelist deployers
  - POST /api/rewards/admin/dapp-rounds  — open a dapp round
  - POST /api/rewards/admin/launch       — PRE_LAUNCH -> LIVE
  - POST /api/rewards/admin/pause        — stop claims
  - POST /api/rewards/admin/unpause      — resume claims
  - POST /api/rewards/admin/sweep        — emergency sweep of custody

Admin routes identify the caller with the X-Caller-Address header. The
engine decides whether that caller is privileged.

Handlers are plain functions. The engine blocks on its transaction lock,
so FastAPI runs them in its threadpool.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from pydantic import BaseModel

from incentive_pool.engine import RewardPoolEngine
from incentive_pool.errors import InvalidTier, RewardPoolError
from incentive_pool.types import BugCriticality, ClaimKind

logger = logging.getLogger(__name__)

reward_router = APIRouter(prefix="/api/rewards", tags=["rewards"])

_STATUS_BY_CODE = {
    "NOT_AUTHORIZED": 403,
    "NOT_WHITELISTED": 403,
    "UNKNOWN_ROUND": 404,
    "ALREADY_ASSIGNED": 409,
    "ALREADY_REGISTERED": 409,
    "DUPLICATE_IN_ROUND": 409,
    "ALREADY_CLAIMED": 409,
    "REENTRANT_CALL": 409,
    "MODE_NOT_LIVE": 423,
    "PAUSED": 423,
    "COOLDOWN_ACTIVE": 429,
    "INSUFFICIENT_POOL_OR_BALANCE": 409,
}


# =============================================================================
# REQUEST MODELS
# =============================================================================

class ClaimRequest(BaseModel):
    user: str
    kind: Optional[ClaimKind] = None
    round_id: Optional[int] = None


class TierAssignmentRequest(BaseModel):
    users: List[str]
    tier: str


class DeployerRequest(BaseModel):
    users: List[str]


class DappRoundRequest(BaseModel):
    users: List[str]
    uptime_flags: List[bool]


# =============================================================================
# HELPERS
# =============================================================================

def get_engine(request: Request) -> RewardPoolEngine:
    engine = getattr(request.app.state, "reward_engine", None)
    if engine is None:
        raise HTTPException(status_code=503, detail="Reward engine not initialized")
    return engine


def _rejected(e: RewardPoolError) -> HTTPException:
    status = _STATUS_BY_CODE.get(e.code, 400)
    logger.warning(f"REQUEST_REJECTED: {e}")
    return HTTPException(status_code=status, detail={"error": e.code, "detail": str(e)})


def _parse_tier(name: str) -> BugCriticality:
    try:
        return BugCriticality[name.strip().upper()]
    except KeyError:
        raise InvalidTier(f"unknown tier {name!r}")


# =============================================================================
# READ ROUTES
# =============================================================================

@reward_router.get("/pools")
def get_pools(engine: RewardPoolEngine = Depends(get_engine)):
    return engine.pool_summary()


@reward_router.get("/mode")
def get_mode(engine: RewardPoolEngine = Depends(get_engine)):
    return {
        "mode": engine.mode.name,
        "launched": engine.launched,
        "paused": engine.paused,
    }


@reward_router.get("/users/{address}")
def get_user(address: str, engine: RewardPoolEngine = Depends(get_engine)):
    return engine.user_status(address)


# =============================================================================
# CLAIM ROUTE
# =============================================================================

@reward_router.post("/claim")
def post_claim(req: ClaimRequest, engine: RewardPoolEngine = Depends(get_engine)):
    try:
        payout = engine.claim(req.user, req.kind, req.round_id)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"claimed": True, **payout.to_dict()}


# =============================================================================
# ADMIN ROUTES
# =============================================================================

@reward_router.post("/admin/tiers")
def post_tiers(req: TierAssignmentRequest,
                     x_caller_address: str = Header(default=""),
                     engine: RewardPoolEngine = Depends(get_engine)):
    try:
        tier = _parse_tier(req.tier)
        rate = engine.assign_tier(x_caller_address, req.users, tier)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"tier": tier.name, "assigned": len(req.users), "per_user": rate}


@reward_router.post("/admin/deployers")
def post_deployers(req: DeployerRequest,
                         x_caller_address: str = Header(default=""),
                         engine: RewardPoolEngine = Depends(get_engine)):
    try:
        total = engine.register_deployer(x_caller_address, req.users)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"registered": len(req.users), "total_deployers": total}


@reward_router.post("/admin/dapp-rounds")
def post_dapp_round(req: DappRoundRequest,
                          x_caller_address: str = Header(default=""),
                          engine: RewardPoolEngine = Depends(get_engine)):
    try:
        round_id = engine.register_dapp_round(x_caller_address, req.users, req.uptime_flags)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"round_id": round_id, "members": len(req.users)}


@reward_router.post("/admin/launch")
def post_launch(x_caller_address: str = Header(default=""),
                      engine: RewardPoolEngine = Depends(get_engine)):
    try:
        return engine.set_live(x_caller_address)
    except RewardPoolError as e:
        raise _rejected(e)


@reward_router.post("/admin/pause")
def post_pause(x_caller_address: str = Header(default=""),
                     engine: RewardPoolEngine = Depends(get_engine)):
    try:
        changed = engine.pause(x_caller_address)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"paused": True, "changed": changed}


@reward_router.post("/admin/unpause")
def post_unpause(x_caller_address: str = Header(default=""),
                       engine: RewardPoolEngine = Depends(get_engine)):
    try:
        changed = engine.unpause(x_caller_address)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"paused": False, "changed": changed}


@reward_router.post("/admin/sweep")
def post_sweep(x_caller_address: str = Header(default=""),
                     engine: RewardPoolEngine = Depends(get_engine)):
    try:
        amount = engine.emergency_sweep(x_caller_address, engine.token)
    except RewardPoolError as e:
        raise _rejected(e)
    return {"swept": amount, "to": x_caller_address}


# =============================================================================
# APP FACTORY
# =============================================================================

def create_app(engine: RewardPoolEngine) -> FastAPI:
    app = FastAPI(title="Incentive Pool Rewards")
    app.state.reward_engine = engine
    app.include_router(reward_router)

    @app.get("/health")
    def health():
        return {"status": "ok", "mode": engine.mode.name}

    return app
