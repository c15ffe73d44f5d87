from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from .config import Settings, get_settings
from .errors import EntryNotFound, ErrorKind, PipelineError, StoreUnavailable, error_response
from .formatting import to_tsv
from .history import HistoryStore
from .kv import build_backend
from .logging_config import LoggingConfig
from .models import ParseRequest
from .orchestrator import ImageSubmission, MatchupOrchestrator
from .vision import OpenAIVisionClient, VisionClient

logger = LoggingConfig.get_logger(__name__)


def _bad_request(message: str):
  return error_response(PipelineError(ErrorKind.INVALID_INPUT, message))


async def read_submission(request: Request):
  """Build an ImageSubmission from a JSON data-URL body or a multipart upload."""
  content_type = request.headers.get("content-type", "")

  if content_type.startswith("multipart/form-data"):
    form = await request.form()
    upload = form.get("file") or form.get("image")
    if upload is None or isinstance(upload, str):
      return None, "No file provided"
    data = await upload.read()
    return ImageSubmission(
      data=data,
      mime=upload.content_type,
      filename=form.get("filename") or upload.filename,
      week=form.get("week"),
      previous_id=form.get("previousId") or None,
    ), None

  try:
    payload = ParseRequest.model_validate(await request.json())
  except (ValueError, ValidationError):
    return None, "Send JSON {imageDataUrl, week} or multipart/form-data with field \"file\""
  return ImageSubmission(
    data_url=payload.imageDataUrl,
    filename=payload.filename,
    week=payload.week,
    previous_id=payload.previousId,
  ), None


def create_app(settings: Optional[Settings] = None,
               vision: Optional[VisionClient] = None,
               store: Optional[HistoryStore] = None) -> FastAPI:
  settings = settings or get_settings()
  LoggingConfig.configure(settings.log_level, settings.log_format)

  vision = vision or OpenAIVisionClient.from_settings(settings)
  store = store or HistoryStore(build_backend(settings), capacity=settings.history_capacity,
                                prefix=settings.kv_key_prefix)
  orchestrator = MatchupOrchestrator(vision, store, policy=settings.invalid_record_policy)

  app = FastAPI(title=settings.app_name)
  app.state.settings = settings
  app.state.store = store
  app.state.orchestrator = orchestrator
  app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
  )

  @app.exception_handler(StoreUnavailable)
  async def store_unavailable(request: Request, exc: StoreUnavailable):
    logger.error("store unavailable on %s: %s", request.url.path, exc)
    return error_response(PipelineError(ErrorKind.STORE_UNAVAILABLE, str(exc)))

  @app.exception_handler(EntryNotFound)
  async def entry_not_found(request: Request, exc: EntryNotFound):
    return error_response(PipelineError(ErrorKind.NOT_FOUND, "Not found"))

  @app.exception_handler(RequestValidationError)
  async def invalid_request(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p not in ("query", "body"))
    return _bad_request(f"{where}: {first.get('msg', 'invalid value')}" if where else "Invalid request")

  @app.exception_handler(Exception)
  async def unexpected(request: Request, exc: Exception):
    logger.exception("unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or exc.__class__.__name__})

  @app.post("/api/parse-matchups")
  async def parse_matchups(request: Request):
    sub, problem = await read_submission(request)
    if problem:
      return _bad_request(problem)
    result = await run_in_threadpool(orchestrator.parse, sub)
    if not result.ok:
      return error_response(result.error)
    return result.value

  @app.get("/api/history/list")
  def history_list(week: Optional[int] = Query(None, ge=1)):
    return {"items": [s.model_dump() for s in store.list(week)]}

  @app.get("/api/history/get")
  def history_get(id: str = Query(..., min_length=1)):
    entry = store.get(id)
    return {
      "id": entry.id,
      "week": entry.week,
      "matchups": [m.model_dump() for m in entry.matchups],
      "meta": entry.meta,
      "label": entry.label,
      "savedAt": entry.savedAt,
      "previousId": entry.previousId,
    }

  @app.get("/api/history/tsv", response_class=PlainTextResponse)
  def history_tsv(id: str = Query(..., min_length=1)):
    return to_tsv(store.get(id).matchups)

  @app.api_route("/api/history/delete", methods=["DELETE", "POST"])
  def history_delete(id: str = Query(..., min_length=1)):
    store.delete(id)
    return {"ok": True}

  @app.post("/api/clear-week")
  def clear_week(week: int = Query(..., ge=1)):
    return {"ok": True, "deleted": store.clear_week(week)}

  @app.get("/api/health")
  def health():
    env = {
      "hasOpenAIKey": bool(settings.openai_api_key),
      "kvBackend": settings.kv_backend,
      "hasKvUrl": bool(settings.upstash_redis_rest_url),
      "hasKvToken": bool(settings.upstash_redis_rest_token),
    }
    try:
      kv_ok = bool(store.backend.ping())
    except StoreUnavailable as e:
      return JSONResponse(status_code=503, content={"ok": False, "env": env, "kv": False, "error": str(e)})
    return {"ok": kv_ok, "env": env, "kv": kv_ok}

  return app


app = create_app()
