from __future__ import annotations
from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import logging, typing as t

from union_core.config import load_config, AUDIT_EXPORT_ENABLED
from union_core.audit_export import to_json as audit_to_json, to_csv as audit_to_csv
from union_core.errors import UnionError
from union_core.orchestrator import TestOrchestrator
from union_core.store import InMemoryStore, JsonFileStore, utcnow_iso

log = logging.getLogger(__name__)


def _build_orchestrator() -> TestOrchestrator:
    cfg = load_config()
    ttl = cfg.get("SESSION_TTL_SEC") or 0
    data_dir = cfg.get("DATA_DIR")
    if data_dir:
        log.info("using JSON file store at %s", data_dir)
        return TestOrchestrator(store=JsonFileStore(data_dir, ttl_sec=ttl))
    return TestOrchestrator(store=InMemoryStore(ttl_sec=ttl))


ORCH = _build_orchestrator()

app = FastAPI(title="Union Ladder API")

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,  # keep False unless you use cookies
)

_STATUS_BY_CODE: dict[str, int] = {
    "SESSION_NOT_FOUND": 404,
    "QUESTION_NOT_FOUND": 404,
    "RESULT_NOT_FOUND": 404,
    "SESSION_ALREADY_COMPLETED": 409,
    "DUPLICATE_ANSWER": 409,
    "RESULT_NOT_AVAILABLE": 409,
}


@app.exception_handler(UnionError)
async def _union_error(_request: Request, exc: UnionError) -> JSONResponse:
    status = _STATUS_BY_CODE.get(exc.code, 422)
    return JSONResponse(status_code=status, content=exc.to_dict())


# ---- Schemas ----
class StartReq(BaseModel):
    mode: str                 # "self" | "partner_assessment" | "potential" | "pair_discussion"
    relationship_status: str  # "in_relationship" | "single_past" | "single_potential" | "pair_together"

class AnswerReq(BaseModel):
    question_id: str
    option_level: int
    mode: str | None = None
    response_ms: int | None = None


@app.get("/")
def root():
    return {"status": "ok", "service": "union-ladder-api"}


@app.get("/health")
def health():
    return {"ok": True, "time": utcnow_iso(), "questions": len(ORCH.bank)}


@app.post("/sessions")
def start(req: StartReq):
    sid = ORCH.initialize_test_session(req.mode, req.relationship_status)
    return {"session_id": sid, "status": ORCH.get_session_status(sid).to_dict()}


@app.get("/sessions/{sid}/next")
def next_question(sid: str):
    q = ORCH.get_next_test_question(sid)
    return {"done": q is None, "question": q.to_dict() if q else None}


@app.post("/sessions/{sid}/answers")
def answer(sid: str, req: AnswerReq):
    ORCH.submit_test_answer(sid, req.question_id, req.option_level, req.mode, response_ms=req.response_ms)
    return {"ok": True, "status": ORCH.get_session_status(sid).to_dict()}


@app.post("/sessions/{sid}/complete")
def complete(sid: str):
    return ORCH.complete_test_session(sid).to_dict()


@app.get("/sessions")
def active_sessions():
    return {"sessions": [s.to_dict() for s in ORCH.get_all_active_sessions()]}


@app.get("/sessions/{sid}")
def status(sid: str):
    return ORCH.get_session_status(sid).to_dict()


@app.get("/sessions/{sid}/result")
def result(sid: str):
    return ORCH.get_test_result(sid).to_dict()


@app.delete("/sessions/{sid}")
def delete_session(sid: str):
    ORCH.delete_test_session(sid)
    return {"ok": True}


@app.get("/results")
def completed_results():
    return {"results": [r.to_dict() for r in ORCH.get_all_completed_results()]}


@app.get("/results/compare")
def compare(a: str = Query(..., description="first result id"), b: str = Query(..., description="second result id")):
    return ORCH.compare_test_results(a, b).to_dict()


def _audit_events(sid: str) -> list[dict[str, t.Any]]:
    if not AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")
    return ORCH.export_answer_trace(sid)


@app.get("/sessions/{sid}/audit.json")
def get_audit_json(sid: str):
    payload = audit_to_json(_audit_events(sid))
    return {"session_id": sid, **payload}


@app.get("/sessions/{sid}/audit.csv")
def get_audit_csv(sid: str):
    body = audit_to_csv(_audit_events(sid))
    filename = f"{sid}_audit.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )
