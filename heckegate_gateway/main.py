
import logging

from fastapi import BackgroundTasks, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from heckegate import (
    HeckeGateError,
    ProofRecorder,
    ProofVerifier,
    RewriteEngine,
    SigningService,
    Transaction,
    VerificationEngine,
    __version__,
    format_word,
    validate_word,
)
from heckegate.engine import ENGINE_NAME

from . import config
from .logging_config import audit_log, configure_logging, set_request_id
from .models import ReduceRequest, ReplayRequest, VerifyRequest, WebhookRegistration
from .webhooks import WebhookDispatcher, WebhookRegistry, build_webhook_events

logger = logging.getLogger(__name__)

app = FastAPI(title="HeckeGate Verification Gateway", version=__version__)

ENGINE = None
SIGNER = None
REWRITER = RewriteEngine()
WEBHOOKS = WebhookRegistry()
DISPATCHER = WebhookDispatcher(WEBHOOKS, timeout=config.WEBHOOK_TIMEOUT)


def get_signer():
    if not config.SIGNING_KEY_PATH:
        return None
    signer = SigningService()
    signer.load_key_file(config.SIGNING_KEY_PATH)
    if config.KEY_ID:
        signer.set_active_key(config.KEY_ID)
    return signer


@app.on_event("startup")
def _startup():
    global ENGINE, SIGNER
    level = "DEBUG" if config.is_debug() else config.LOG_LEVEL
    configure_logging(level, config.LOG_JSON, config.LOG_FILE or None)
    SIGNER = get_signer()
    if SIGNER is None and config.is_production():
        logger.warning("Proof signing is disabled in production; set HECKE_SIGNING_KEY_PATH")
    ENGINE = VerificationEngine(config.load_catalog(), engine=REWRITER, recorder=ProofRecorder(SIGNER))


def get_engine() -> VerificationEngine:
    if ENGINE is None:
        _startup()
    return ENGINE


def to_transaction(req: VerifyRequest) -> Transaction:
    return Transaction.from_dict(req.model_dump())


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = set_request_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(HeckeGateError)
async def heckegate_error_handler(request: Request, exc: HeckeGateError):
    audit_log.validation_rejected(None, type(exc).__name__, str(exc))
    return JSONResponse(status_code=422, content={"error": type(exc).__name__, "detail": str(exc)})


@app.get("/health")
def health():
    catalog = get_engine().catalog
    return {
        "status": "ok",
        "engine": ENGINE_NAME,
        "version": __version__,
        "environment": config.ENV,
        "catalog": {"id": catalog.id, "version": catalog.version, "hash": catalog.get_hash()},
        "signing": SIGNER is not None,
        "config": config.validate_config(),
        "webhooks": len(WEBHOOKS),
    }


@app.post("/verify")
def verify(req: VerifyRequest, background_tasks: BackgroundTasks):
    engine = get_engine()
    audit_log.verification_request(req.id, req.type, len(req.lifecycleWord), req.amount)

    tx = to_transaction(req)
    result = engine.verify(tx)

    audit_log.verification_decision(
        tx.id,
        result.verdict.value,
        result.proof.content_hash,
        finding_code=result.finding.code if result.finding else None,
        severity=result.finding.severity if result.finding else None,
        violated=list(result.proof.fired_rules),
        latency_micros=result.latency_micros
    )

    events = build_webhook_events(result, tx)
    if events and config.WEBHOOK_ENABLED:
        background_tasks.add_task(DISPATCHER.dispatch, events)

    return result.to_dict()


@app.get("/catalog/{tx_type}")
def catalog_registry(tx_type: str):
    engine = get_engine()
    registry = engine.catalog.registry(tx_type)

    signatures = []
    for priority, (sig, red) in enumerate(engine.fingerprints(tx_type), 1):
        entry = sig.to_dict()
        entry["priority"] = priority
        entry["canonical"] = format_word(red.canonical)
        entry["fired"] = red.sorted_rules()
        signatures.append(entry)

    return {
        "type": registry.transaction_class.value,
        "baseline": format_word(registry.baseline),
        "signatures": signatures,
        "catalogHash": engine.catalog.get_hash(),
    }


@app.post("/reduce")
def reduce(req: ReduceRequest):
    catalog = get_engine().catalog
    word = validate_word(req.lifecycleWord, catalog.max_generator, catalog.max_word_length)
    result = REWRITER.reduce(word)
    return {
        "input": format_word(result.input),
        "canonical": format_word(result.canonical),
        "steps": [
            {
                "rule": s.rule.value,
                "position": s.position,
                "description": s.description,
                "word": format_word(s.word),
            }
            for s in result.trace
        ],
        "fired": result.sorted_rules(),
    }


@app.post("/replay")
def replay(req: ReplayRequest):
    engine = get_engine()
    trust_store = SIGNER.get_trust_store() if SIGNER is not None else None
    tx = to_transaction(req.transaction)
    return ProofVerifier(engine, trust_store).verify(tx, req.result).to_dict()


@app.post("/webhooks", status_code=201)
def register_webhook(req: WebhookRegistration):
    return WEBHOOKS.register(req.url, req.events, req.secret).to_dict()


@app.delete("/webhooks/{subscription_id}", status_code=204)
def unregister_webhook(subscription_id: str):
    if not WEBHOOKS.unregister(subscription_id):
        raise HTTPException(404, "NOT_FOUND")
